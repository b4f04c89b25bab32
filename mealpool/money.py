"""
Decimal Money

Every monetary value in the settlement engine flows through this module.

DESIGN DECISION: Amounts are held as `decimal.Decimal` under one fixed
context (28 significant digits, ROUND_HALF_UP). Binary floats never enter
the arithmetic: a float operand is converted through its string form.

Rounding is explicit. Intermediate results (per-meal rate, precise shares)
keep full precision; only `round()` collapses a value to whole currency
units.
"""

from decimal import ROUND_HALF_UP, Context, Decimal, InvalidOperation
from functools import reduce
from typing import Iterable, Union


MONEY_CONTEXT = Context(prec=28, rounding=ROUND_HALF_UP)

MoneyLike = Union["Money", Decimal, int, float, str]


class MoneyParseError(ValueError):
    """A value could not be read as a decimal amount."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Not a valid decimal amount: {value!r}")


def _to_decimal(value: MoneyLike) -> Decimal:
    if isinstance(value, Money):
        return value.amount
    if isinstance(value, bool):
        raise MoneyParseError(value)
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise MoneyParseError(value)
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        value = repr(value)
    if not isinstance(value, str):
        raise MoneyParseError(value)

    try:
        parsed = Decimal(value.strip())
    except InvalidOperation:
        raise MoneyParseError(value) from None
    if not parsed.is_finite():
        raise MoneyParseError(value)
    return parsed


class Money:
    """
    Immutable exact decimal amount.

    USAGE:
        rate = Money("1000").divide(30)
        share = rate.multiply(10).round()     # Money("333")
        str(share)                            # "333"
    """

    __slots__ = ("_amount",)

    def __init__(self, value: MoneyLike = 0):
        object.__setattr__(self, "_amount", _to_decimal(value))

    def __setattr__(self, name, value):
        raise AttributeError("Money is immutable")

    @classmethod
    def zero(cls) -> "Money":
        return cls(0)

    @property
    def amount(self) -> Decimal:
        """The underlying Decimal value."""
        return self._amount

    # -------------------------------------------------------------------------
    # Arithmetic
    # -------------------------------------------------------------------------

    def add(self, other: MoneyLike) -> "Money":
        return Money(MONEY_CONTEXT.add(self._amount, _to_decimal(other)))

    def subtract(self, other: MoneyLike) -> "Money":
        return Money(MONEY_CONTEXT.subtract(self._amount, _to_decimal(other)))

    def multiply(self, other: MoneyLike) -> "Money":
        return Money(MONEY_CONTEXT.multiply(self._amount, _to_decimal(other)))

    def divide(self, other: MoneyLike) -> "Money":
        """
        Exact division to the context precision.

        Callers guard zero divisors themselves; dividing by zero raises
        `decimal.DivisionByZero` (a ZeroDivisionError).
        """
        return Money(MONEY_CONTEXT.divide(self._amount, _to_decimal(other)))

    def round(self, places: int = 0) -> "Money":
        """Round half-up to `places` decimals (whole currency units by default)."""
        quantum = Decimal(1).scaleb(-places)
        return Money(self._amount.quantize(quantum, rounding=ROUND_HALF_UP, context=MONEY_CONTEXT))

    def __add__(self, other: MoneyLike) -> "Money":
        return self.add(other)

    def __radd__(self, other: MoneyLike) -> "Money":
        return Money(other).add(self)

    def __sub__(self, other: MoneyLike) -> "Money":
        return self.subtract(other)

    def __rsub__(self, other: MoneyLike) -> "Money":
        return Money(other).subtract(self)

    def __mul__(self, other: MoneyLike) -> "Money":
        return self.multiply(other)

    def __rmul__(self, other: MoneyLike) -> "Money":
        return Money(other).multiply(self)

    def __truediv__(self, other: MoneyLike) -> "Money":
        return self.divide(other)

    def __neg__(self) -> "Money":
        return Money(-self._amount)

    def __abs__(self) -> "Money":
        return Money(abs(self._amount))

    # -------------------------------------------------------------------------
    # Comparison
    # -------------------------------------------------------------------------

    def equals(self, other: MoneyLike) -> bool:
        return self._amount == _to_decimal(other)

    def greater_than(self, other: MoneyLike) -> bool:
        return self._amount > _to_decimal(other)

    def less_than(self, other: MoneyLike) -> bool:
        return self._amount < _to_decimal(other)

    def is_zero(self) -> bool:
        return self._amount.is_zero()

    def is_positive(self) -> bool:
        return self._amount > 0

    def is_negative(self) -> bool:
        return self._amount < 0

    def __eq__(self, other: object) -> bool:
        if isinstance(other, (Money, Decimal, int, str)) and not isinstance(other, bool):
            try:
                return self.equals(other)
            except MoneyParseError:
                return False
        return NotImplemented

    def __lt__(self, other: MoneyLike) -> bool:
        return self.less_than(other)

    def __le__(self, other: MoneyLike) -> bool:
        return self._amount <= _to_decimal(other)

    def __gt__(self, other: MoneyLike) -> bool:
        return self.greater_than(other)

    def __ge__(self, other: MoneyLike) -> bool:
        return self._amount >= _to_decimal(other)

    def __hash__(self) -> int:
        return hash(self._amount)

    # -------------------------------------------------------------------------
    # Output
    # -------------------------------------------------------------------------

    def to_string(self) -> str:
        """
        Plain decimal string for crossing the engine boundary.

        No exponent, no trailing zeros, and "0" for any zero value.
        """
        if self._amount.is_zero():
            return "0"
        return format(self._amount.normalize(MONEY_CONTEXT), "f")

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"Money('{self.to_string()}')"


# =============================================================================
# FUNCTIONAL HELPERS
# =============================================================================

def add_money(amounts: Iterable[MoneyLike]) -> Money:
    """Exact sum of `amounts`, folded from zero."""
    return reduce(lambda total, amount: total.add(amount), amounts, Money.zero())


def subtract_money(minuend: MoneyLike, subtrahend: MoneyLike) -> Money:
    return Money(minuend).subtract(subtrahend)


def multiply_money(amount: MoneyLike, multiplier: MoneyLike) -> Money:
    return Money(amount).multiply(multiplier)


def divide_money(dividend: MoneyLike, divisor: MoneyLike) -> Money:
    return Money(dividend).divide(divisor)


def round_money(amount: MoneyLike) -> Money:
    return Money(amount).round()


def format_currency(value: MoneyLike, symbol: str = "৳") -> str:
    """
    Display form in whole currency units, e.g. `৳1,234` or `-৳250`.

    Display only. Never parse this back into an amount.
    """
    rounded = Money(value).round().amount
    sign = "-" if rounded < 0 else ""
    return f"{sign}{symbol}{abs(rounded):,}"
