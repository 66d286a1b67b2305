"""
Configuration & Constants
=========================
This module serves as the central registry for the editing core's constants.

Why is this file needed?
------------------------
1. Consistency: The curve generator, the unit engine and the command stack all
   agree on point counts, rounding and default units from one place.
2. Deployment: Session options can be overridden through environment variables
   without touching the code (useful for frozen builds and CI).

Exports:
    CURVE_POINT_COUNT (int): Number of points in a freshly generated curve.
    DEFAULT_UNITS (dict): Default unit symbol per stored dimension.
    EditorSettings: Tunable options of one editing session.
"""
import os
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_EVEN
from typing import Dict

logger = logging.getLogger(__name__)


# Global Constants
SCHEMA_VERSION: str = "1.0.0"

# Curves are sampled at every whole percent, 0..100 inclusive
CURVE_POINT_COUNT: int = 101
CURVE_DECIMAL_PLACES: int = 2
CURVE_ROUNDING: str = ROUND_HALF_EVEN

TWO_PI: Decimal = Decimal("6.283185307179586476925286766559")
SECONDS_PER_MINUTE: Decimal = Decimal(60)

DEFAULT_UNDO_CAPACITY: int = 100
DEFAULT_DISPLAY_DECIMAL_PLACES: int = 2
PRECISION_ERROR_THRESHOLD: float = 1e-10

DEFAULT_UNITS: Dict[str, str] = {
    "torque": "Nm",
    "speed": "rpm",
    "power": "W",
    "weight": "kg",
    "current": "A",
    "response_time": "ms",
    "backlash": "arcmin",
    "inertia": "kg-m^2",
}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid integer in {name}: {raw!r}")
        return default


@dataclass
class EditorSettings:
    """
    Options of one editing session.

    Attributes:
        convert_stored_data: When True, unit changes rewrite the stored values
            (hard conversion). When False, only the displayed values change.
        display_decimal_places: Decimal places used when formatting values.
        undo_capacity: Maximum number of commands kept on the undo stack,
            or None for an unbounded history.
    """
    convert_stored_data: bool = False
    display_decimal_places: int = DEFAULT_DISPLAY_DECIMAL_PLACES
    undo_capacity: int | None = DEFAULT_UNDO_CAPACITY

    @classmethod
    def from_env(cls) -> "EditorSettings":
        """Build settings from CURVEEDITOR_* environment variables."""
        capacity = _env_int("CURVEEDITOR_UNDO_CAPACITY", DEFAULT_UNDO_CAPACITY)
        return cls(
            convert_stored_data=_env_bool("CURVEEDITOR_CONVERT_STORED_DATA", False),
            display_decimal_places=_env_int("CURVEEDITOR_DECIMAL_PLACES", DEFAULT_DISPLAY_DECIMAL_PLACES),
            undo_capacity=capacity if capacity > 0 else None,
        )
