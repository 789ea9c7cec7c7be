"""Repositories mapping entities onto document store collections."""

from machine_booking.infrastructure.repositories.index_fallback import (
    query_with_index_fallback,
    sort_documents,
)
from machine_booking.infrastructure.repositories.machine_repo import DocumentMachineRepo
from machine_booking.infrastructure.repositories.order_repo import DocumentOrderRepo
from machine_booking.infrastructure.repositories.payment_repo import DocumentPaymentRepo
from machine_booking.infrastructure.repositories.token_repo import DocumentTokenRepo
from machine_booking.infrastructure.repositories.voucher_repo import DocumentVoucherRepo

__all__ = [
    "DocumentMachineRepo",
    "DocumentOrderRepo",
    "DocumentPaymentRepo",
    "DocumentTokenRepo",
    "DocumentVoucherRepo",
    "query_with_index_fallback",
    "sort_documents",
]
