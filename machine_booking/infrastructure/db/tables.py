from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
)

metadata = MetaData()

machines = Table(
    "machines",
    metadata,
    Column("id", String(40), primary_key=True),
    Column("machine_name", String(150), nullable=False),
    Column("type", String(16), nullable=False),
    Column("price", Numeric(12, 2), nullable=False),
    Column("status", String(16), nullable=False),
)

orders = Table(
    "orders",
    metadata,
    Column("id", String(40), primary_key=True),
    Column("user_id", String(128), nullable=False),
    Column("machine_id", String(40), nullable=False),
    Column("machine_name", String(150)),
    Column("temperature", String(16)),
    Column("start_time", DateTime),
    Column("end_time", DateTime),
    Column("status", String(16), nullable=False),
    Column("total_amount", Numeric(12, 2), nullable=False),
    Column("payment_id", String(40)),
    Column("created_at", DateTime),
    Column("updated_at", DateTime),
    Index("ix_orders_machine_status", "machine_id", "status"),
    Index("ix_orders_user_created", "user_id", "created_at"),
    Index("ix_orders_payment_id", "payment_id"),
)

payments = Table(
    "payments",
    metadata,
    Column("id", String(40), primary_key=True),
    Column("order_id", String(40), nullable=False),
    Column("amount", Numeric(12, 2), nullable=False),
    Column("status", String(16), nullable=False),
    Column("payment_method", String(64)),
    Column("transaction_id", String(64)),
    Column("paid_at", DateTime),
    Index("ix_payments_order_status", "order_id", "status"),
)

tokens = Table(
    "tokens",
    metadata,
    Column("id", String(40), primary_key=True),
    Column("user_id", String(128), nullable=False),
    Column("order_id", String(40)),
    Column("used", Boolean, nullable=False, default=False),
    Index("ix_tokens_user_used", "user_id", "used"),
    Index("ix_tokens_order_id", "order_id"),
)

vouchers = Table(
    "vouchers",
    metadata,
    Column("id", String(40), primary_key=True),
    Column("user_id", String(128), nullable=False),
    Column("type", String(32), nullable=False),
    Column("used", Boolean, nullable=False, default=False),
    Column("order_id", String(40)),
    Column("expires_at", DateTime),
    Column("created_at", DateTime),
    Index("ix_vouchers_user_created", "user_id", "created_at"),
)

outbox_events = Table(
    "outbox_events",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("event_type", String(64), nullable=False),
    Column("aggregate_type", String(32), nullable=False),
    Column("aggregate_id", String(40), nullable=False),
    Column("payload", JSON, nullable=False),
    Column("status", String(16), nullable=False, default="NEW"),
    Column("attempts", Integer, nullable=False, default=0),
    Column("next_attempt_at", DateTime),
    Column("locked_by", String(64)),
    Column("locked_at", DateTime),
    Column("lock_expires_at", DateTime),
    Column("error_code", String(64)),
    Column("error_message", Text),
    Column("created_at", DateTime),
    Column("updated_at", DateTime),
    Index("ix_outbox_status_next_attempt", "status", "next_attempt_at"),
)

machine_locks = Table(
    "machine_locks",
    metadata,
    Column("machine_id", String(40), primary_key=True),
    Column("owner", String(64), nullable=False),
    Column("acquired_at", DateTime, nullable=False),
    Column("expires_at", DateTime, nullable=False),
)

COLLECTION_TABLES: dict[str, Table] = {
    "machines": machines,
    "orders": orders,
    "payments": payments,
    "tokens": tokens,
    "vouchers": vouchers,
}
