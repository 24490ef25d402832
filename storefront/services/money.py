"""
Money helpers

All cart arithmetic runs on Decimal. Amounts are rounded to the cent with
ROUND_HALF_UP, so 0.125 becomes 0.13 and -0.125 becomes -0.13.
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Union

CENT = Decimal("0.01")

Amount = Union[Decimal, int, float, str]


def to_decimal(value: Amount) -> Decimal:
    """
    Convert an amount to Decimal.

    Floats go through repr() so 0.1 becomes Decimal("0.1") rather than the
    exact binary expansion.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("Boolean is not a monetary amount")
    if isinstance(value, float):
        return Decimal(repr(value))
    try:
        return Decimal(value)
    except InvalidOperation as e:
        raise ValueError(f"Invalid monetary amount: {value!r}") from e


def round2(value: Amount) -> Decimal:
    """Round to the nearest cent."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(value: Amount) -> str:
    """Two fractional digits, no currency symbol."""
    return f"{round2(value):.2f}"
