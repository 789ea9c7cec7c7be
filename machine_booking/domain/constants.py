"""Domain constants: statuses, collections, booking limits."""

from decimal import Decimal

# Collections
COLLECTION_MACHINES = "machines"
COLLECTION_ORDERS = "orders"
COLLECTION_PAYMENTS = "payments"
COLLECTION_TOKENS = "tokens"
COLLECTION_VOUCHERS = "vouchers"

# Machines
MACHINE_TYPE_WASHER = "washer"
MACHINE_TYPE_DRYER = "dryer"
MACHINE_STATUS_AVAILABLE = "available"
MACHINE_STATUS_MAINTENANCE = "maintenance"
MACHINE_STATUS_UNAVAILABLE = "unavailable"

# Orders
ORDER_STATUS_PENDING = "pending"
ORDER_STATUS_ACTIVE = "active"
ORDER_STATUS_COMPLETED = "completed"
ORDER_STATUS_CANCELLED = "cancelled"

TEMPERATURE_COLD = "cold"
TEMPERATURE_WARM = "warm"
TEMPERATURE_HOT = "hot"
TEMPERATURES = (TEMPERATURE_COLD, TEMPERATURE_WARM, TEMPERATURE_HOT)

# Payments
PAYMENT_STATUS_PENDING = "pending"
PAYMENT_STATUS_COMPLETED = "completed"
PAYMENT_STATUS_FAILED = "failed"

TRANSACTION_ID_PREFIX = "TXN-"

# Vouchers
VOUCHER_TYPE_RM5_OFF = "rm5_off"
VOUCHER_DISCOUNTS: dict[str, Decimal] = {
    VOUCHER_TYPE_RM5_OFF: Decimal("5.00"),
}

# Booking limits
MIN_BOOKING_MINUTES = 30
MAX_BOOKING_MINUTES = 180

# Document store "in" filters accept at most this many values
IN_FILTER_MAX_VALUES = 30

# Saga repair events (outbox)
OUTBOX_EVENT_LINK_ORDER_PAYMENT = "LINK_ORDER_PAYMENT"
OUTBOX_EVENT_PROMOTE_ORDER_STATUS = "PROMOTE_ORDER_STATUS"
OUTBOX_EVENT_MINT_REWARD_TOKEN = "MINT_REWARD_TOKEN"

OUTBOX_STATUS_NEW = "NEW"
OUTBOX_STATUS_IN_PROGRESS = "IN_PROGRESS"
OUTBOX_STATUS_RETRY = "RETRY"
OUTBOX_STATUS_DONE = "DONE"
OUTBOX_STATUS_FAILED = "FAILED"

# Degraded-mode policy for permission-denied reads
FAIL_OPEN = "fail_open"
FAIL_CLOSED = "fail_closed"
