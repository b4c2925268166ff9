"""
Currency and precision handling for SuccessionLab.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import ROUND_DOWN, ROUND_HALF_EVEN, ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any

from .errors import CurrencyMismatchError


class RoundingPolicy(Enum):
    """Rounding policies for currency calculations."""

    BANKERS = ROUND_HALF_EVEN
    HALF_UP = ROUND_HALF_UP


class Currency:
    """
    Currency definition with precision and rounding rules.

    Attributes:
        code: ISO currency code (e.g., 'KES', 'USD')
        decimals: Number of decimal places for this currency
        rounding: Rounding policy for calculations
    """

    def __init__(
        self,
        code: str,
        decimals: int = 2,
        rounding: RoundingPolicy = RoundingPolicy.BANKERS,
    ):
        self.code = code.upper()
        self.decimals = decimals
        self.rounding = rounding

    @property
    def quantum(self) -> Decimal:
        """Smallest representable unit (e.g. 0.01 for 2 dp)."""
        return Decimal("1").scaleb(-self.decimals)

    def quantize(self, amount: Decimal) -> Decimal:
        """Quantize amount to currency precision."""
        return amount.quantize(self.quantum, rounding=self.rounding.value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Currency):
            return False
        return self.code == other.code

    def __hash__(self) -> int:
        return hash(self.code)

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"Currency('{self.code}', decimals={self.decimals})"


def _to_decimal(value: Decimal | float | str | int) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class Money:
    """
    Immutable monetary amount with currency and precision.

    Values are quantized to the currency's precision on construction. All
    binary operations require both operands to share a currency.

    Attributes:
        value: Decimal amount value
        currency: Currency object
    """

    __slots__ = ("_value", "_currency")

    def __init__(
        self,
        value: Decimal | float | str | int,
        currency: Currency | str = "KES",
    ):
        if isinstance(currency, str):
            currency = get_currency(currency)
        object.__setattr__(self, "_currency", currency)
        object.__setattr__(self, "_value", currency.quantize(_to_decimal(value)))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Money is immutable")

    def __reduce__(self):
        return (Money, (self._value, self._currency))

    @property
    def value(self) -> Decimal:
        return self._value

    @property
    def amount(self) -> Decimal:
        """Alias of ``value``."""
        return self._value

    @property
    def currency(self) -> Currency:
        return self._currency

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def zero(cls, currency: Currency | str = "KES") -> Money:
        return cls(Decimal("0"), currency)

    @classmethod
    def sum(cls, items: Iterable[Money], currency: Currency | str = "KES") -> Money:
        """Sum an iterable of Money; an empty iterable yields zero in ``currency``."""
        total = cls.zero(currency)
        for item in items:
            total = total + item
        return total

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Money:
        return cls(data["amount"], data.get("currency", "KES"))

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------

    def _check_currency(self, other: Money, op: str) -> None:
        if not isinstance(other, Money):
            raise TypeError(f"Cannot {op} Money and {type(other).__name__}")
        if self.currency.code != other.currency.code:
            raise CurrencyMismatchError(op, self.currency.code, other.currency.code)

    def __add__(self, other: Money) -> Money:
        self._check_currency(other, "add")
        return Money(self.value + other.value, self.currency)

    def __sub__(self, other: Money) -> Money:
        self._check_currency(other, "subtract")
        return Money(self.value - other.value, self.currency)

    def subtract_clamped(self, other: Money) -> Money:
        """Subtract ``other``, clamping the result at zero."""
        result = self - other
        if result.is_negative():
            return Money.zero(self.currency)
        return result

    def multiply(self, factor: Decimal | float | int | str) -> Money:
        return Money(self.value * _to_decimal(factor), self.currency)

    def divide(self, divisor: Decimal | float | int | str) -> Money:
        divisor = _to_decimal(divisor)
        if divisor == 0:
            raise ZeroDivisionError("Cannot divide Money by zero")
        return Money(self.value / divisor, self.currency)

    def percentage(self, pct: Decimal | float | int | str) -> Money:
        """Return ``pct`` percent of this amount."""
        return Money(self.value * _to_decimal(pct) / Decimal("100"), self.currency)

    def ratio_to(self, other: Money) -> Decimal | None:
        """Return self / other as a Decimal, or None when other is zero."""
        self._check_currency(other, "compare")
        if other.value == 0:
            return None
        return self.value / other.value

    def allocate(self, ratios: Sequence[Decimal | int | float | str]) -> list[Money]:
        """
        Split this amount across ``ratios`` without losing or creating units.

        Each part is rounded down to the currency quantum and leftover units
        are handed out by largest fractional remainder (ties go to the earlier
        ratio), so the parts always sum exactly to the original amount.

        Raises:
            ValueError: If ratios are empty, negative or all zero
        """
        weights = [_to_decimal(r) for r in ratios]
        if not weights:
            raise ValueError("allocate() requires at least one ratio")
        if any(w < 0 for w in weights):
            raise ValueError("allocate() ratios must be non-negative")
        total_weight = sum(weights, Decimal("0"))
        if total_weight == 0:
            raise ValueError("allocate() ratios must not all be zero")

        quantum = self.currency.quantum
        sign = Decimal("-1") if self.value < 0 else Decimal("1")
        magnitude = abs(self.value)

        exact = [magnitude * w / total_weight for w in weights]
        floored = [e.quantize(quantum, rounding=ROUND_DOWN) for e in exact]
        leftover_units = int((magnitude - sum(floored, Decimal("0"))) / quantum)

        order = sorted(
            range(len(weights)), key=lambda i: (-(exact[i] - floored[i]), i)
        )
        for i in order[:leftover_units]:
            floored[i] += quantum

        return [Money(sign * part, self.currency) for part in floored]

    def __neg__(self) -> Money:
        return Money(-self.value, self.currency)

    def __pos__(self) -> Money:
        return Money(+self.value, self.currency)

    def __abs__(self) -> Money:
        return Money(abs(self.value), self.currency)

    # ------------------------------------------------------------------
    # Predicates and comparisons
    # ------------------------------------------------------------------

    def is_zero(self) -> bool:
        return self.value == 0

    def is_negative(self) -> bool:
        return self.value < 0

    def is_positive(self) -> bool:
        return self.value > 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Money):
            return False
        return self.value == other.value and self.currency.code == other.currency.code

    def __hash__(self) -> int:
        return hash((self.value, self.currency.code))

    def __lt__(self, other: Money) -> bool:
        self._check_currency(other, "compare")
        return self.value < other.value

    def __le__(self, other: Money) -> bool:
        self._check_currency(other, "compare")
        return self.value <= other.value

    def __gt__(self, other: Money) -> bool:
        self._check_currency(other, "compare")
        return self.value > other.value

    def __ge__(self, other: Money) -> bool:
        self._check_currency(other, "compare")
        return self.value >= other.value

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, str]:
        return {"amount": str(self.value), "currency": self.currency.code}

    def format(self) -> str:
        return f"{self.currency.code} {self.value:,.{self.currency.decimals}f}"

    def __str__(self) -> str:
        return f"{self.value} {self.currency.code}"

    def __repr__(self) -> str:
        return f"Money({self.value}, {self.currency})"


# Standard currency definitions
KES = Currency("KES", decimals=2)
USD = Currency("USD", decimals=2)
EUR = Currency("EUR", decimals=2)
GBP = Currency("GBP", decimals=2)
UGX = Currency("UGX", decimals=0)

# Currency registry
CURRENCIES: dict[str, Currency] = {
    "KES": KES,
    "USD": USD,
    "EUR": EUR,
    "GBP": GBP,
    "UGX": UGX,
}

DEFAULT_CURRENCY = KES


def get_currency(code: str) -> Currency:
    """Get currency by code."""
    code = code.upper()
    if code not in CURRENCIES:
        # Default to 2 decimal places for unknown currencies
        return Currency(code, decimals=2)
    return CURRENCIES[code]


def create_money(value: Decimal | float | str | int, currency_code: str = "KES") -> Money:
    """Create a Money value with the specified currency."""
    return Money(value, get_currency(currency_code))


def as_money(value: Money | Decimal | float | str | int, currency: Currency | str) -> Money:
    """Coerce plain numbers to Money in ``currency``; Money passes through."""
    if isinstance(value, Money):
        return value
    return Money(value, currency)
