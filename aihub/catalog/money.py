"""Money values for token costs.

All costs are stored in the canonical currency (USD) as ``Decimal`` so that
per-token prices like ``0.00003`` never pick up binary float error.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional, Union

CANONICAL_CURRENCY = "USD"

Number = Union[Decimal, int, float, str]


def to_decimal(value: Any) -> Optional[Decimal]:
    """Convert value to Decimal if not None."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("bool is not a monetary amount")
    return Decimal(str(value))


@dataclass(frozen=True)
class Money:
    """An amount in a single currency."""

    amount: Decimal = Decimal("0")
    currency: str = CANONICAL_CURRENCY

    def __post_init__(self):
        # frozen: go through object.__setattr__ to normalise the amount
        object.__setattr__(self, "amount", to_decimal(self.amount))
        object.__setattr__(self, "currency", self.currency.upper())

    @classmethod
    def zero(cls, currency: str = CANONICAL_CURRENCY) -> "Money":
        return cls(Decimal("0"), currency)

    @classmethod
    def usd(cls, amount: Number) -> "Money":
        return cls(to_decimal(amount), CANONICAL_CURRENCY)

    @property
    def is_zero(self) -> bool:
        return self.amount == 0

    def __add__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            return NotImplemented
        if other.currency != self.currency:
            raise ValueError(
                f"Cannot add {other.currency} to {self.currency} without conversion"
            )
        return Money(self.amount + other.amount, self.currency)

    def __mul__(self, factor: Union[int, Decimal]) -> "Money":
        if isinstance(factor, (bool, float)) or not isinstance(factor, (int, Decimal)):
            return NotImplemented
        return Money(self.amount * factor, self.currency)

    __rmul__ = __mul__

    def to_dict(self) -> dict:
        """Convert Money to dictionary."""
        return {"amount": str(self.amount), "currency": self.currency}
