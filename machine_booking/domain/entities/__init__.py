"""Domain entities."""

from machine_booking.domain.entities.machine import Machine
from machine_booking.domain.entities.order import Order, status_for_start
from machine_booking.domain.entities.payment import Payment
from machine_booking.domain.entities.token import Token
from machine_booking.domain.entities.voucher import Voucher

__all__ = [
    "Machine",
    "Order",
    "Payment",
    "Token",
    "Voucher",
    "status_for_start",
]
