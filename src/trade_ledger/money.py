"""Fixed-point money stored as integer minor units."""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

_CENT = Decimal("0.01")


@dataclass(frozen=True, slots=True, order=True)
class Money:
    """A signed amount of money in minor units (cents).

    All ledger arithmetic happens on the integer ``cents`` value. Conversion
    from and to major units (dollars) only happens at the edges: when a leg's
    prices are turned into a posting amount, and when a value is displayed.

    Example:
        >>> Money.from_major(Decimal("199.35"))
        Money(cents=19935)
        >>> str(Money(-5065))
        '-$50.65'
    """

    cents: int

    def __post_init__(self) -> None:
        if isinstance(self.cents, bool) or not isinstance(self.cents, int):
            raise TypeError(f"Money requires integer minor units, got {self.cents!r}")

    @classmethod
    def zero(cls) -> "Money":
        return cls(0)

    @classmethod
    def from_major(cls, amount: Decimal | int | str) -> "Money":
        """Convert a major-unit amount, rounding half away from zero to the cent."""
        value = Decimal(str(amount)) if not isinstance(amount, Decimal) else amount
        return cls(int((value.quantize(_CENT, rounding=ROUND_HALF_UP) * 100).to_integral_value()))

    @property
    def major(self) -> Decimal:
        """Return the amount in major units with two decimal places."""
        return (Decimal(self.cents) / 100).quantize(_CENT)

    def is_zero(self) -> bool:
        return self.cents == 0

    def is_negative(self) -> bool:
        return self.cents < 0

    def __add__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.cents + other.cents)

    def __sub__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.cents - other.cents)

    def __neg__(self) -> "Money":
        return Money(-self.cents)

    def __abs__(self) -> "Money":
        return Money(abs(self.cents))

    def __bool__(self) -> bool:
        return self.cents != 0

    def __str__(self) -> str:
        sign = "-" if self.cents < 0 else ""
        return f"{sign}${abs(self.major):,.2f}"


def sum_money(amounts: Iterable[Money]) -> Money:
    """Sum Money values (an empty iterable sums to zero)."""
    return Money(sum(m.cents for m in amounts))
