from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation


@dataclass(frozen=True)
class Money:
    amount_cents: int
    currency: str

    def __post_init__(self) -> None:
        if self.amount_cents < 0:
            raise ValueError("amount_cents must be >= 0")
        if len(self.currency) != 3 or not self.currency.isalpha() or not self.currency.isupper():
            raise ValueError("currency must be a 3-letter uppercase code")

    @classmethod
    def from_major(cls, amount: Decimal | int | str, currency: str) -> Money:
        """Builds Money from a major-unit amount such as ``Decimal("12.50")``."""
        try:
            value = Decimal(str(amount))
        except InvalidOperation as exc:
            raise ValueError(f"invalid amount: {amount!r}") from exc
        if not value.is_finite():
            raise ValueError(f"invalid amount: {amount!r}")
        cents = value * 100
        if cents != cents.to_integral_value():
            raise ValueError("amount must have at most two decimal places")
        return cls(amount_cents=int(cents), currency=currency)

    def times(self, quantity: int) -> Money:
        return Money(amount_cents=self.amount_cents * quantity, currency=self.currency)


def sum_money(amounts: list[Money], currency: str) -> Money:
    for amount in amounts:
        if amount.currency != currency:
            raise ValueError("cannot sum amounts with different currencies")
    return Money(amount_cents=sum(amount.amount_cents for amount in amounts), currency=currency)
