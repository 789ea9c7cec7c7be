"""Application layer interfaces (ports)."""

from machine_booking.application.interfaces.clock import Clock, FakeClock, SystemClock
from machine_booking.application.interfaces.document_store import (
    Document,
    DocumentNotFoundError,
    DocumentStore,
    Filter,
    FilterOp,
    MissingIndexError,
    OrderBy,
    PermissionDeniedError,
    Query,
    StoreError,
    WriteConflictError,
)
from machine_booking.application.interfaces.id_generator import (
    FakeIdGenerator,
    IdGenerator,
    RealIdGenerator,
)
from machine_booking.application.interfaces.machine_lock import MachineLock
from machine_booking.application.interfaces.machine_repo import MachineRepo
from machine_booking.application.interfaces.order_repo import OrderRepo
from machine_booking.application.interfaces.outbox_repo import OutboxEvent, OutboxRepo
from machine_booking.application.interfaces.payment_repo import PaymentRepo
from machine_booking.application.interfaces.token_repo import TokenRepo
from machine_booking.application.interfaces.voucher_repo import VoucherRepo

__all__ = [
    # Store
    "Document",
    "DocumentStore",
    "Filter",
    "FilterOp",
    "OrderBy",
    "Query",
    "StoreError",
    "PermissionDeniedError",
    "MissingIndexError",
    "DocumentNotFoundError",
    "WriteConflictError",
    # Repositories
    "MachineRepo",
    "OrderRepo",
    "PaymentRepo",
    "TokenRepo",
    "VoucherRepo",
    "OutboxRepo",
    "OutboxEvent",
    # Concurrency
    "MachineLock",
    # Utilities
    "Clock",
    "SystemClock",
    "FakeClock",
    "IdGenerator",
    "RealIdGenerator",
    "FakeIdGenerator",
]
