"""Value Object Money - an amount with its currency."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


@dataclass(frozen=True)
class Money:
    """
    Immutable monetary amount.

    Attributes:
        amount: Decimal amount, kept at two decimal places.
        currency_code: ISO 4217 code (MYR, USD...).
    """

    amount: Decimal
    currency_code: str

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, "amount", Decimal(str(self.amount)))
        object.__setattr__(self, "amount", self.amount.quantize(CENT, rounding=ROUND_HALF_UP))

        if len(self.currency_code) != 3:
            raise ValueError(f"currency_code must have 3 characters: {self.currency_code}")

        if self.amount < 0:
            raise ValueError(f"amount cannot be negative: {self.amount}")

    def minus_floored(self, discount: Decimal) -> "Money":
        """Subtracts a discount without going below zero."""
        return Money(
            amount=max(Decimal("0"), self.amount - Decimal(str(discount))),
            currency_code=self.currency_code,
        )

    def __str__(self) -> str:
        return f"{self.amount:.2f} {self.currency_code}"

    @classmethod
    def for_duration(cls, hourly_price: Decimal, minutes: int, currency_code: str) -> "Money":
        """Prices a booking: hourly rate times the booked fraction of an hour."""
        amount = Decimal(str(hourly_price)) * Decimal(minutes) / Decimal(60)
        return cls(amount=amount, currency_code=currency_code)
