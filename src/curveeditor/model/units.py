"""
Quantity / Unit Table
=====================
Static conversion factors between unit symbols, grouped by physical dimension.

Every symbol maps to exactly one dimension and to a multiplicative factor that
converts a value in that unit into the dimension's base unit:

    value_in_base = value * factor(symbol)

Base units: torque N·m, speed rpm, power W, weight kg, voltage V, current A,
inertia kg·m², torque constant N·m/A, backlash arcsec, response time s.

Classes:
    Dimension: The physical quantity categories.
    UnitSettings: The unit symbol currently associated with each stored dimension.
"""
from __future__ import annotations

from dataclasses import dataclass, fields, asdict
from decimal import Decimal
from enum import StrEnum
from typing import Dict, List, Optional, Tuple

from curveeditor.config import DEFAULT_UNITS


class UnsupportedUnitError(ValueError):
    """Raised when a unit symbol is not present in the unit table."""

    def __init__(self, symbol: str):
        super().__init__(f"Unsupported unit: {symbol!r}")
        self.symbol = symbol


class Dimension(StrEnum):
    TORQUE = "torque"
    SPEED = "speed"
    POWER = "power"
    WEIGHT = "weight"
    VOLTAGE = "voltage"
    CURRENT = "current"
    INERTIA = "inertia"
    TORQUE_CONSTANT = "torque_constant"
    BACKLASH = "backlash"
    RESPONSE_TIME = "response_time"
    PERCENTAGE = "percentage"


# Exact SI definitions of the imperial units used below
_POUND_FORCE_N = Decimal("4.4482216152605")
_INCH_M = Decimal("0.0254")
_FOOT_M = Decimal("0.3048")
_POUND_KG = Decimal("0.45359237")
_HP_W = Decimal("745.699872")  # mechanical horsepower

UNIT_TABLE: Dict[Dimension, Dict[str, Decimal]] = {
    Dimension.TORQUE: {
        "Nm": Decimal(1),
        "lbf-ft": _POUND_FORCE_N * _FOOT_M,
        "lbf-in": _POUND_FORCE_N * _INCH_M,
        "oz-in": _POUND_FORCE_N * _INCH_M / 16,
    },
    Dimension.SPEED: {
        "rpm": Decimal(1),
    },
    Dimension.POWER: {
        "W": Decimal(1),
        "kW": Decimal(1000),
        "hp": _HP_W,
    },
    Dimension.WEIGHT: {
        "kg": Decimal(1),
        "g": Decimal("0.001"),
        "lbs": _POUND_KG,
        "oz": _POUND_KG / 16,
    },
    Dimension.VOLTAGE: {
        "V": Decimal(1),
        "kV": Decimal(1000),
    },
    Dimension.CURRENT: {
        "A": Decimal(1),
        "mA": Decimal("0.001"),
    },
    Dimension.INERTIA: {
        "kg-m^2": Decimal(1),
        "g-cm^2": Decimal("1E-7"),
    },
    Dimension.TORQUE_CONSTANT: {
        "Nm/A": Decimal(1),
    },
    Dimension.BACKLASH: {
        "arcmin": Decimal(60),
        "arcsec": Decimal(1),
    },
    Dimension.RESPONSE_TIME: {
        "ms": Decimal("0.001"),
        "s": Decimal(1),
    },
    Dimension.PERCENTAGE: {
        "%": Decimal(1),
    },
}

# Reverse index: symbol -> (dimension, factor)
_SYMBOL_INDEX: Dict[str, Tuple[Dimension, Decimal]] = {
    symbol: (dimension, factor)
    for dimension, units in UNIT_TABLE.items()
    for symbol, factor in units.items()
}


def is_unit_supported(symbol: Optional[str]) -> bool:
    return bool(symbol) and symbol in _SYMBOL_INDEX


def lookup(symbol: str) -> Tuple[Dimension, Decimal]:
    """Return (dimension, factor-to-base) for a symbol."""
    try:
        return _SYMBOL_INDEX[symbol]
    except (KeyError, TypeError):
        raise UnsupportedUnitError(symbol) from None


def dimension_of(symbol: str) -> Dimension:
    return lookup(symbol)[0]


def factor_of(symbol: str) -> Decimal:
    return lookup(symbol)[1]


def supported_units(dimension: Dimension | str) -> List[str]:
    """List the symbols of a dimension, in table order."""
    try:
        return list(UNIT_TABLE[Dimension(dimension)])
    except ValueError:
        raise ValueError(f"Unknown dimension: {dimension!r}") from None


# Dimensions whose unit choice is recorded per motor definition
STORED_DIMENSIONS: Tuple[Dimension, ...] = (
    Dimension.TORQUE,
    Dimension.SPEED,
    Dimension.POWER,
    Dimension.WEIGHT,
    Dimension.CURRENT,
    Dimension.RESPONSE_TIME,
    Dimension.BACKLASH,
    Dimension.INERTIA,
)


@dataclass
class UnitSettings:
    """
    The unit symbol in which each stored dimension of a motor definition is expressed.
    Field names equal the matching `Dimension` values.
    """
    torque: str = DEFAULT_UNITS["torque"]
    speed: str = DEFAULT_UNITS["speed"]
    power: str = DEFAULT_UNITS["power"]
    weight: str = DEFAULT_UNITS["weight"]
    current: str = DEFAULT_UNITS["current"]
    response_time: str = DEFAULT_UNITS["response_time"]
    backlash: str = DEFAULT_UNITS["backlash"]
    inertia: str = DEFAULT_UNITS["inertia"]

    def get(self, dimension: Dimension | str) -> str:
        return getattr(self, self._field_for(dimension))

    def set(self, dimension: Dimension | str, symbol: str) -> None:
        """Assign a unit to a dimension, rejecting symbols of another dimension."""
        name = self._field_for(dimension)
        if dimension_of(symbol) != Dimension(name):
            raise ValueError(f"Unit {symbol!r} is not a {name} unit.")
        setattr(self, name, symbol)

    def copy(self) -> UnitSettings:
        return UnitSettings(**asdict(self))

    def changed_dimensions(self, other: UnitSettings) -> List[Dimension]:
        """Dimensions whose symbol differs between self and other."""
        return [Dimension(f.name) for f in fields(self) if getattr(self, f.name) != getattr(other, f.name)]

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)

    @staticmethod
    def from_dict(data: Dict[str, str]) -> UnitSettings:
        known = {f.name for f in fields(UnitSettings)}
        return UnitSettings(**{k: v for k, v in data.items() if k in known})

    @staticmethod
    def _field_for(dimension: Dimension | str) -> str:
        dim = Dimension(dimension)
        if dim not in STORED_DIMENSIONS:
            raise ValueError(f"Dimension {dim!r} is not stored in unit settings.")
        return dim.value
