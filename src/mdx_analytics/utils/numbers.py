"""Numeric helpers shared by the aggregation and query layers."""
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[int, float]


def round_half_up(value: Number, digits: int = 0) -> Number:
    """
    Round half away from zero.

    Python's ``round`` uses banker's rounding (2.5 -> 2); analytics figures
    are expected to round 2.5 -> 3 and -2.5 -> -3.

    Args:
        value: Number to round
        digits: Decimal places to keep

    Returns:
        An int when ``digits`` is 0, otherwise a float
    """
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    if digits == 0:
        return int(rounded)
    return float(rounded)


def format_number(value: Number) -> str:
    """Format a number with thousands separators, dropping a zero fraction."""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, int):
        return f"{value:,}"
    return f"{value:,.2f}".rstrip("0").rstrip(".")
