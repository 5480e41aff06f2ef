"""
Decimal helpers shared by the pricing stages.
"""
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Optional, Union

Number = Union[Decimal, int, float, str]

CENT = Decimal("0.01")
HUNDRED = Decimal("100")
ZERO = Decimal("0")


def to_decimal(value: Number) -> Decimal:
    """Convert a numeric input to Decimal without float artefacts."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("Boolean is not a valid amount")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Not a numeric amount: {value!r}")


def to_optional_decimal(value: Optional[Number]) -> Optional[Decimal]:
    if value is None:
        return None
    return to_decimal(value)


def round_money(value: Decimal) -> Decimal:
    """Round to cents using round-half-up."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def percent_off(price: Decimal, percent: Decimal) -> Decimal:
    """price * (1 - percent/100), unrounded."""
    return price * (1 - percent / HUNDRED)


def to_date(value: Optional[Union[date, datetime, str]]) -> Optional[date]:
    """Normalise a date-like value to a calendar date."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromisoformat(str(value)).date()


def format_money(value: Decimal) -> str:
    return f"${round_money(value):,.2f}"
