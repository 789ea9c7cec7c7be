"""
Domain layer - machine booking system.

Pure business logic with no framework dependencies.

Structure:
- entities/: Machine, Order, Payment, Token, Voucher
- value_objects/: Money, TimeSlot
- errors.py: domain exceptions
- constants.py: statuses, collections and limits
"""

from machine_booking.domain.entities import Machine, Order, Payment, Token, Voucher
from machine_booking.domain.errors import (
    DomainError,
    InvalidBookingDurationError,
    MachineLockTimeoutError,
    MachineNotBookableError,
    MachineNotFoundError,
    NoAvailableTokensError,
    OrderNotFoundError,
    PaymentAlreadyProcessedError,
    PaymentNotFoundError,
    SlotUnavailableError,
    ValidationError,
    VoucherNotFoundError,
)
from machine_booking.domain.value_objects import Money, TimeSlot

__all__ = [
    # Entities
    "Machine",
    "Order",
    "Payment",
    "Token",
    "Voucher",
    # Value objects
    "Money",
    "TimeSlot",
    # Errors
    "DomainError",
    "InvalidBookingDurationError",
    "MachineLockTimeoutError",
    "MachineNotBookableError",
    "MachineNotFoundError",
    "NoAvailableTokensError",
    "OrderNotFoundError",
    "PaymentAlreadyProcessedError",
    "PaymentNotFoundError",
    "SlotUnavailableError",
    "ValidationError",
    "VoucherNotFoundError",
]
