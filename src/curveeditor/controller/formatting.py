"""
Numeric display helpers.

The unit engine keeps values exact; trimming trailing zeros and hiding float
artefacts is done here, at the presentation edge only.
"""
import math
from decimal import Decimal, ROUND_HALF_EVEN

from curveeditor.config import DEFAULT_DISPLAY_DECIMAL_PLACES, PRECISION_ERROR_THRESHOLD
from curveeditor.utils import Number, normalize_decimal, to_decimal

MAX_DECIMAL_PLACES = 15


def _check_precision(precision: int) -> None:
    if precision < 0:
        raise ValueError("Precision cannot be negative.")


def format_fixed(value: Number, precision: int = DEFAULT_DISPLAY_DECIMAL_PLACES) -> str:
    """Always show `precision` decimals: 2.5 -> '2.50'."""
    _check_precision(precision)
    rounded = to_decimal(value).quantize(Decimal(1).scaleb(-precision), rounding=ROUND_HALF_EVEN)
    return f"{rounded:f}"


def format_number(value: Number, precision: int = DEFAULT_DISPLAY_DECIMAL_PLACES,
                  exclude_from_rounding: bool = False) -> str:
    """
    Round to at most `precision` decimals and drop trailing zeros: 2.50 -> '2.5', 3.00 -> '3'.
    Values such as rotor inertia are shown in full with exclude_from_rounding=True.
    """
    if exclude_from_rounding:
        return normalize_decimal(to_decimal(value))
    _check_precision(precision)
    rounded = to_decimal(value).quantize(Decimal(1).scaleb(-precision), rounding=ROUND_HALF_EVEN)
    return normalize_decimal(rounded)


def correct_precision_error(value: float, threshold: float = PRECISION_ERROR_THRESHOLD) -> float:
    """
    Snap a float to the shortest decimal representation within `threshold`,
    e.g. 88.50750000000001 -> 88.5075. Values without such an artefact are returned as is.
    """
    if threshold <= 0 or math.isnan(value) or math.isinf(value):
        return value

    for decimals in range(MAX_DECIMAL_PLACES + 1):
        rounded = round(value, decimals)
        if abs(value - rounded) <= threshold:
            return rounded
    return value
