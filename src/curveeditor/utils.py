from decimal import Decimal, InvalidOperation
from typing import Union

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    """Convert a number to Decimal; floats go through their shortest repr so 0.1 stays 0.1."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("Booleans are not numeric quantities.")
    if isinstance(value, float):
        return Decimal(repr(value))
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError):
        raise ValueError(f"Not a numeric value: {value!r}") from None


def normalize_decimal(value: Decimal) -> str:
    """Render a Decimal without trailing zeros or exponent: 2304.00 -> '2304', 8.50 -> '8.5'."""
    if value == 0:
        return "0"
    return format(value.normalize(), "f")
