"""
Unit Conversion Engine
======================
Converts physical quantities between the unit symbols of `model.units`.

Two services live here:

- `UnitService`: stateless scalar conversion and formatting.
      convert(v, from, to) = v * factor(from) / factor(to)
- `UnitConversionService`: the session-level engine holding the
  `convert_stored_data` flag.

      Display mode (convert_stored_data = False)
          Values are converted on the way to and from the UI only.
          Bulk conversions of curves / motors are no-ops.
      Stored mode  (convert_stored_data = True)
          Bulk conversions rewrite every field of a changed dimension across
          the whole Drive / VoltageConfiguration / Curve graph, in place.

Bulk conversions are planned first and applied afterwards, so an unsupported
symbol fails before any field has been touched.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_EVEN
import logging
from typing import Any, Iterable, List, Optional, Tuple

from curveeditor.config import DEFAULT_DISPLAY_DECIMAL_PLACES
from curveeditor.model.motor import (
    Curve, MotorDefinition, MOTOR_FIELDS, POINT_FIELDS, VOLTAGE_FIELDS
)
from curveeditor.model.units import (
    Dimension, UnitSettings, UnsupportedUnitError, is_unit_supported, lookup
)
from curveeditor.utils import Number, to_decimal

logger = logging.getLogger(__name__)


class IncompatibleUnitsError(ValueError):
    """Raised when converting between units of different dimensions."""

    def __init__(self, from_unit: str, to_unit: str):
        super().__init__(f"Cannot convert from {from_unit!r} to {to_unit!r}: different dimensions.")
        self.from_unit = from_unit
        self.to_unit = to_unit


class UnitService:
    """Scalar conversion between unit symbols."""

    def convert(self, value: Number, from_unit: str, to_unit: str) -> Number:
        """
        Convert `value` from `from_unit` to `to_unit`.

        Both symbols are validated first; identical symbols then return `value`
        itself (same object and type), without any arithmetic. Any other
        conversion returns a Decimal.

        Raises:
            UnsupportedUnitError: If a symbol is not in the unit table.
            IncompatibleUnitsError: If the symbols belong to different dimensions.
        """
        from_dim, from_factor = lookup(from_unit)
        to_dim, to_factor = lookup(to_unit)

        if from_unit == to_unit:
            return value
        if from_dim != to_dim:
            raise IncompatibleUnitsError(from_unit, to_unit)

        return to_decimal(value) * from_factor / to_factor

    def try_convert(self, value: Number, from_unit: str, to_unit: str) -> Tuple[bool, Number]:
        """Like `convert`, but returns (False, value) instead of raising."""
        try:
            return True, self.convert(value, from_unit, to_unit)
        except ValueError:
            return False, value

    def check_units(self, dimension: Dimension, from_unit: str, to_unit: str) -> None:
        """Raise unless both symbols are supported units of `dimension`."""
        for symbol in (from_unit, to_unit):
            if lookup(symbol)[0] != dimension:
                raise ValueError(f"Unit {symbol!r} is not a {dimension} unit.")

    def convert_in(self, dimension: Dimension, value: Number, from_unit: str, to_unit: str) -> Number:
        """Convert, additionally checking that both symbols belong to `dimension`."""
        self.check_units(dimension, from_unit, to_unit)
        return self.convert(value, from_unit, to_unit)

    @staticmethod
    def format(value: Number, unit: str, decimal_places: int = DEFAULT_DISPLAY_DECIMAL_PLACES) -> str:
        """Render '<value rounded to decimal_places> <unit>', e.g. '88.51 lbf-in'."""
        if not unit or not unit.strip():
            raise ValueError("Unit must be a non-empty string.")
        if decimal_places < 0:
            raise ValueError("Decimal places cannot be negative.")

        rounded = to_decimal(value).quantize(Decimal(1).scaleb(-decimal_places), rounding=ROUND_HALF_EVEN)
        return f"{rounded:f} {unit}"

    @staticmethod
    def is_unit_supported(unit: Optional[str]) -> bool:
        return is_unit_supported(unit)


@dataclass
class FieldChange:
    """One planned rewrite of an attribute, kept so it can be reverted exactly."""
    target: Any
    attribute: str
    old_value: Any
    new_value: Any

    def apply(self) -> None:
        setattr(self.target, self.attribute, self.new_value)

    def revert(self) -> None:
        setattr(self.target, self.attribute, self.old_value)


class UnitConversionService:
    """
    Session-level conversion engine.

    Attributes:
    ----------
    convert_stored_data : bool
        True for stored (hard) conversion, False for display-only conversion.

    display_decimal_places : int
        Decimal places used by `format_value`.
    """

    def __init__(
        self,
        convert_stored_data: bool = False,
        display_decimal_places: int = DEFAULT_DISPLAY_DECIMAL_PLACES,
        unit_service: Optional[UnitService] = None,
    ) -> None:
        self.convert_stored_data = convert_stored_data
        self.display_decimal_places = display_decimal_places
        self._units = unit_service or UnitService()

    # --- Scalar conversions ---

    def convert_torque(self, value: Number, from_unit: str, to_unit: str) -> Number:
        return self._units.convert_in(Dimension.TORQUE, value, from_unit, to_unit)

    def convert_speed(self, value: Number, from_unit: str, to_unit: str) -> Number:
        return self._units.convert_in(Dimension.SPEED, value, from_unit, to_unit)

    def convert_power(self, value: Number, from_unit: str, to_unit: str) -> Number:
        return self._units.convert_in(Dimension.POWER, value, from_unit, to_unit)

    def convert_mass(self, value: Number, from_unit: str, to_unit: str) -> Number:
        return self._units.convert_in(Dimension.WEIGHT, value, from_unit, to_unit)

    def convert(self, value: Number, from_unit: str, to_unit: str) -> Number:
        return self._units.convert(value, from_unit, to_unit)

    def format_value(self, value: Number, unit: str) -> str:
        return self._units.format(value, unit, self.display_decimal_places)

    def is_unit_supported(self, unit: Optional[str]) -> bool:
        return self._units.is_unit_supported(unit)

    # --- Display mode ---

    def get_display_value(self, stored_value: Number, stored_unit: str, display_unit: str) -> Number:
        """
        Value to show in `display_unit`. In stored mode the data is already in
        the display unit, so it is returned unchanged.
        """
        if self.convert_stored_data or stored_unit == display_unit:
            return stored_value
        return self._convert_like(stored_value, stored_unit, display_unit)

    def get_stored_value(self, display_value: Number, display_unit: str, stored_unit: str) -> Number:
        """Inverse of `get_display_value`."""
        if self.convert_stored_data or display_unit == stored_unit:
            return display_value
        return self._convert_like(display_value, display_unit, stored_unit)

    def _convert_like(self, value: Number, from_unit: str, to_unit: str) -> Number:
        # Chart code works in floats; keep the caller's numeric type
        converted = self._units.convert(value, from_unit, to_unit)
        return float(converted) if isinstance(value, float) else converted

    # --- Stored mode (bulk, in place) ---

    def convert_curve_torque(self, curve: Curve, from_unit: str, to_unit: str) -> None:
        """Rewrite every point torque of `curve`; no-op in display mode or for equal units, once both symbols are validated."""
        self._convert_curve(curve, Dimension.TORQUE, from_unit, to_unit)

    def convert_curve_speed(self, curve: Curve, from_unit: str, to_unit: str) -> None:
        """Rewrite every point speed of `curve`; no-op in display mode or for equal units, once both symbols are validated."""
        self._convert_curve(curve, Dimension.SPEED, from_unit, to_unit)

    def _convert_curve(self, curve: Curve, dimension: Dimension, from_unit: str, to_unit: str) -> None:
        if curve is None:
            raise ValueError("curve is required.")
        self._units.check_units(dimension, from_unit, to_unit)
        if from_unit == to_unit or not self.convert_stored_data:
            return
        changes = list(self._plan_points([curve], dimension, from_unit, to_unit))
        for change in changes:
            change.apply()
        logger.debug(f"Converted {len(changes)} {dimension} values of curve '{curve.name}' from {from_unit} to {to_unit}")

    def convert_motor_units(self, motor: MotorDefinition, old_units: UnitSettings, new_units: UnitSettings) -> List[FieldChange]:
        """
        Rewrite every stored value whose dimension differs between `old_units`
        and `new_units`: motor fields, voltage-configuration fields and every
        curve point. `motor.units` itself is left to the caller.

        Returns:
            The applied changes (empty in display mode).
        """
        if motor is None or old_units is None or new_units is None:
            raise ValueError("motor, old_units and new_units are required.")
        if not self.convert_stored_data:
            return []

        changes = self.plan_motor_conversion(motor, old_units, new_units)
        for change in changes:
            change.apply()

        if changes:
            logger.info(
                f"Converted {len(changes)} stored values of '{motor.motor_name}' "
                f"for dimensions {[str(d) for d in old_units.changed_dimensions(new_units)]}"
            )
        return changes

    def change_unit(self, motor: MotorDefinition, dimension: Dimension, new_unit: str) -> List[FieldChange]:
        """
        Switch one dimension of `motor.units` to `new_unit` and, in stored mode,
        rewrite every value of that dimension in the same step.

        Returns:
            The applied value changes (empty in display mode).
        """
        old_units = motor.units
        new_units = old_units.copy()
        new_units.set(dimension, new_unit)

        changes: List[FieldChange] = []
        if self.convert_stored_data:
            changes = self.plan_motor_conversion(motor, old_units, new_units)
            for change in changes:
                change.apply()

        logger.info(
            f"Unit of {dimension} changed from {old_units.get(dimension)} to {new_unit} "
            f"({'stored' if self.convert_stored_data else 'display'} mode, {len(changes)} values rewritten)"
        )
        motor.units = new_units
        return changes

    def plan_motor_conversion(self, motor: MotorDefinition, old_units: UnitSettings, new_units: UnitSettings) -> List[FieldChange]:
        """Compute (without applying) all rewrites needed to move `motor` from old to new units."""
        changes: List[FieldChange] = []
        for dimension in old_units.changed_dimensions(new_units):
            from_unit, to_unit = old_units.get(dimension), new_units.get(dimension)

            for name in MOTOR_FIELDS.get(dimension, ()):
                changes.append(self._plan_field(motor, name, dimension, from_unit, to_unit))

            for voltage in motor.iter_voltages():
                for name in VOLTAGE_FIELDS.get(dimension, ()):
                    changes.append(self._plan_field(voltage, name, dimension, from_unit, to_unit))

            changes.extend(self._plan_points(motor.iter_curves(), dimension, from_unit, to_unit))
        return changes

    def _plan_points(self, curves: Iterable[Curve], dimension: Dimension, from_unit: str, to_unit: str) -> Iterable[FieldChange]:
        names = POINT_FIELDS.get(dimension, ())
        for curve in curves:
            for point in curve.points:
                for name in names:
                    yield self._plan_field(point, name, dimension, from_unit, to_unit)

    def _plan_field(self, target: Any, name: str, dimension: Dimension, from_unit: str, to_unit: str) -> FieldChange:
        old = getattr(target, name)
        return FieldChange(target, name, old, self._units.convert_in(dimension, old, from_unit, to_unit))


__all__ = [
    "FieldChange",
    "IncompatibleUnitsError",
    "UnitConversionService",
    "UnitService",
    "UnsupportedUnitError",
]
