"""
Curve Generation Engine
=======================
Derives a 0-100 % torque/speed curve from three motor ratings using the
constant-torque / constant-power model:

    omega        = speed * 2*pi / 60                        [rad/s]
    corner_speed = (max_power * 60) / (max_torque * 2*pi)   [rpm]

    speed <= corner_speed  ->  torque = max_torque               (torque limited)
    speed >  corner_speed  ->  torque = max_power / omega        (power limited)

Values are Decimals. Generated points are rounded to CURVE_DECIMAL_PLACES with
banker's rounding (ROUND_HALF_EVEN), which is also what previously saved motor
files contain.
"""
from __future__ import annotations

from decimal import Decimal
import logging
from typing import List, TYPE_CHECKING

import numpy as np

from curveeditor.config import (
    CURVE_DECIMAL_PLACES, CURVE_POINT_COUNT, CURVE_ROUNDING, SECONDS_PER_MINUTE, TWO_PI
)
from curveeditor.model.motor import Curve, DataPoint
from curveeditor.utils import Number, to_decimal

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

_QUANTUM = Decimal(1).scaleb(-CURVE_DECIMAL_PLACES)
_ZERO = Decimal(0)
_HUNDRED = Decimal(100)


def _require_non_negative(name: str, value: Number) -> Decimal:
    number = to_decimal(value)
    if number.is_nan() or number < 0:
        raise ValueError(f"{name} must be a non-negative number, got {value!r}.")
    return number


def round_value(value: Decimal) -> Decimal:
    """Round to the curve precision."""
    return value.quantize(_QUANTUM, rounding=CURVE_ROUNDING)


class CurveGenerator:
    """
    Pure calculation service; holds no state, one instance can be shared.

    Example:
    -------
        generator = CurveGenerator()
        points = generator.interpolate(5000, 55, 1500)
        points[0].torque  # Decimal('55.00')
    """

    def interpolate(self, max_speed: Number, max_torque: Number, max_power: Number) -> List[DataPoint]:
        """
        Sample the curve at every whole percent of max_speed.

        Args:
            max_speed: Speed at 100 % (rpm).
            max_torque: Torque in the constant-torque region (N·m).
            max_power: Power held in the constant-power region (W).

        Returns:
            CURVE_POINT_COUNT points, percent 0..100.

        Raises:
            ValueError: If any input is negative.
        """
        speed_max = _require_non_negative("max_speed", max_speed)
        torque_max = _require_non_negative("max_torque", max_torque)
        power_max = _require_non_negative("max_power", max_power)

        logger.debug(
            f"Interpolating curve: max_speed={speed_max}, max_torque={torque_max}, max_power={power_max}"
        )

        # Any zero rating gives a flat zero-torque curve
        if speed_max <= 0 or torque_max <= 0 or power_max <= 0:
            return [
                DataPoint(percent=p, speed=self._speed_at(speed_max, p), torque=round_value(_ZERO))
                for p in range(CURVE_POINT_COUNT)
            ]

        corner = self.corner_speed(torque_max, power_max)
        logger.debug(f"Corner speed: {corner} rpm")

        points: List[DataPoint] = []
        for percent in range(CURVE_POINT_COUNT):
            speed = speed_max * percent / _HUNDRED
            if speed <= 0 or speed <= corner:
                torque = torque_max
            else:
                omega = speed * TWO_PI / SECONDS_PER_MINUTE
                torque = max(_ZERO, power_max / omega)
            points.append(DataPoint(percent=percent, speed=round_value(max(_ZERO, speed)), torque=round_value(torque)))

        return points

    def generate_curve(self, name: str, max_speed: Number, max_torque: Number, max_power: Number) -> Curve:
        """Build a named curve from the ratings."""
        logger.debug(f"Generating curve '{name}'")
        return Curve(name=name, points=self.interpolate(max_speed, max_torque, max_power))

    @staticmethod
    def calculate_power(torque: Number, speed: Number) -> Decimal:
        """Mechanical power (W) = torque (N·m) * speed (rpm) * 2*pi / 60."""
        return to_decimal(torque) * to_decimal(speed) * TWO_PI / SECONDS_PER_MINUTE

    @staticmethod
    def corner_speed(max_torque: Number, max_power: Number) -> Decimal:
        """Speed (rpm) at which the constant-power region begins; 0 when max_torque <= 0."""
        torque = to_decimal(max_torque)
        if torque <= 0:
            return _ZERO
        return (to_decimal(max_power) * SECONDS_PER_MINUTE) / (torque * TWO_PI)

    @staticmethod
    def power_curve(curve: Curve) -> npt.NDArray[np.float64]:
        """Per-point mechanical power of a curve (W, assuming N·m and rpm storage)."""
        _, speed, torque = curve.to_arrays()
        return torque * speed * (2.0 * np.pi / 60.0)

    @staticmethod
    def _speed_at(max_speed: Decimal, percent: int) -> Decimal:
        return round_value(max(_ZERO, max_speed * percent / _HUNDRED))
