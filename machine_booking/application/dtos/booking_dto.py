"""Results returned by the booking and settlement workflows."""

from dataclasses import dataclass
from decimal import Decimal


@dataclass
class BookingResult:
    """Outcome of a successful ``CreateOrderUseCase`` run."""

    order_id: str
    payment_id: str
    status: str
    total_amount: Decimal
    currency_code: str = "MYR"

    # False when the order was created but its payment_id link is still
    # pending in the outbox.
    linkage_complete: bool = True


@dataclass
class SettlementResult:
    """Outcome of a successful ``CompletePaymentUseCase`` run."""

    payment_id: str
    order_id: str | None
    amount: Decimal
    discount: Decimal
    transaction_id: str
    order_status: str | None = None
    token_id: str | None = None
    voucher_id: str | None = None
    currency_code: str = "MYR"

    @property
    def voucher_applied(self) -> bool:
        return self.voucher_id is not None
