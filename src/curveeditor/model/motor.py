"""
Motor Definition (Data Model)
=============================
This module defines the document graph edited by the application:

    MotorDefinition -> Drive -> VoltageConfiguration -> Curve -> DataPoint

Why is this file needed?
------------------------
1. Ownership: Every node is owned by exactly one parent list, so structural
   commands can insert and remove nodes by reference.
2. Units: All numeric quantities are stored in the units recorded by the
   owning MotorDefinition's `UnitSettings`. The `*_FIELDS` tables below tell
   the unit engine which attributes carry which dimension.

Classes:
    ValidationSignature, DataPoint, Curve, VoltageConfiguration, Drive, MotorDefinition
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
import logging
from typing import Any, Dict, Iterator, List, Optional, Tuple, TYPE_CHECKING

import numpy as np

from curveeditor.config import SCHEMA_VERSION
from curveeditor.model.units import Dimension, UnitSettings

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


@dataclass
class ValidationSignature:
    """
    Records that someone verified a motor, drive or curve.
    `checksum` is the lowercase SHA-256 hex digest of the signed data.
    """
    checksum: str = ""
    verified_by: str = ""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    algorithm: str = "SHA256"

    def is_valid(self) -> bool:
        """True when both the checksum and the verifier are present."""
        return bool(self.checksum.strip()) and bool(self.verified_by.strip())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "checksum": self.checksum,
            "timestamp": self.timestamp.isoformat(),
            "verifiedBy": self.verified_by,
            "algorithm": self.algorithm,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> ValidationSignature:
        timestamp = data.get("timestamp")
        return ValidationSignature(
            checksum=data.get("checksum", ""),
            verified_by=data.get("verifiedBy", ""),
            timestamp=datetime.fromisoformat(timestamp) if timestamp else datetime.now(timezone.utc),
            algorithm=data.get("algorithm", "SHA256"),
        )


@dataclass
class DataPoint:
    """One sample of a torque/speed curve."""
    percent: int
    speed: Decimal
    torque: Decimal

    def as_tuple(self) -> Tuple[int, Decimal, Decimal]:
        return self.percent, self.speed, self.torque


@dataclass(eq=False)
class Curve:
    """
    A named torque/speed series. `locked` is advisory: callers check it before
    issuing point edits, the model itself does not enforce it.
    """
    name: str
    points: List[DataPoint] = field(default_factory=list)
    locked: bool = False
    notes: str = ""
    signature: Optional[ValidationSignature] = None

    def snapshot(self) -> List[Tuple[int, Decimal, Decimal]]:
        """Value copy of the point data, for comparisons and undo bookkeeping."""
        return [p.as_tuple() for p in self.points]

    def to_arrays(self) -> tuple[npt.NDArray[np.int64], npt.NDArray[np.float64], npt.NDArray[np.float64]]:
        """Percent, speed and torque columns as numpy arrays (for charting)."""
        percent = np.fromiter((p.percent for p in self.points), dtype=np.int64, count=len(self.points))
        speed = np.fromiter((float(p.speed) for p in self.points), dtype=np.float64, count=len(self.points))
        torque = np.fromiter((float(p.torque) for p in self.points), dtype=np.float64, count=len(self.points))
        return percent, speed, torque


@dataclass(eq=False)
class VoltageConfiguration:
    voltage_value: Decimal = Decimal(0)
    max_speed: Decimal = Decimal(0)
    rated_speed: Decimal = Decimal(0)
    power: Decimal = Decimal(0)
    rated_peak_torque: Decimal = Decimal(0)
    rated_continuous_torque: Decimal = Decimal(0)
    peak_amperage: Decimal = Decimal(0)
    continuous_amperage: Decimal = Decimal(0)
    curves: List[Curve] = field(default_factory=list)


@dataclass(eq=False)
class Drive:
    name: str = ""
    part_number: str = ""
    manufacturer: str = ""
    voltage_configurations: List[VoltageConfiguration] = field(default_factory=list)
    signature: Optional[ValidationSignature] = None


@dataclass(eq=False)
class MotorDefinition:
    """
    Aggregate root of a motor document.
    Holds the motor-level physical fields, the unit settings and all drives.
    """
    motor_name: str = ""
    manufacturer: str = ""
    part_number: str = ""

    power: Decimal = Decimal(0)
    max_speed: Decimal = Decimal(0)
    rated_speed: Decimal = Decimal(0)
    rated_continuous_torque: Decimal = Decimal(0)
    rated_peak_torque: Decimal = Decimal(0)
    weight: Decimal = Decimal(0)
    rotor_inertia: Decimal = Decimal(0)
    feedback_ppr: int = 0

    has_brake: bool = False
    brake_torque: Decimal = Decimal(0)
    brake_amperage: Decimal = Decimal(0)
    brake_voltage: Decimal = Decimal(0)
    brake_release_time: Decimal = Decimal(0)
    brake_engage_time_diode: Decimal = Decimal(0)
    brake_engage_time_mov: Decimal = Decimal(0)
    brake_backlash: Decimal = Decimal(0)

    units: UnitSettings = field(default_factory=UnitSettings)
    drives: List[Drive] = field(default_factory=list)
    schema_version: str = SCHEMA_VERSION
    signature: Optional[ValidationSignature] = None

    def iter_voltages(self) -> Iterator[VoltageConfiguration]:
        for drive in self.drives:
            yield from drive.voltage_configurations

    def iter_curves(self) -> Iterator[Curve]:
        for voltage in self.iter_voltages():
            yield from voltage.curves


# Which attributes carry which stored dimension.
# Brake voltage and the voltage value itself are not covered by UnitSettings.
MOTOR_FIELDS: Dict[Dimension, Tuple[str, ...]] = {
    Dimension.TORQUE: ("rated_continuous_torque", "rated_peak_torque", "brake_torque"),
    Dimension.SPEED: ("max_speed", "rated_speed"),
    Dimension.POWER: ("power",),
    Dimension.WEIGHT: ("weight",),
    Dimension.INERTIA: ("rotor_inertia",),
    Dimension.CURRENT: ("brake_amperage",),
    Dimension.RESPONSE_TIME: ("brake_release_time", "brake_engage_time_diode", "brake_engage_time_mov"),
    Dimension.BACKLASH: ("brake_backlash",),
}

VOLTAGE_FIELDS: Dict[Dimension, Tuple[str, ...]] = {
    Dimension.TORQUE: ("rated_continuous_torque", "rated_peak_torque"),
    Dimension.SPEED: ("max_speed", "rated_speed"),
    Dimension.POWER: ("power",),
    Dimension.CURRENT: ("continuous_amperage", "peak_amperage"),
}

POINT_FIELDS: Dict[Dimension, Tuple[str, ...]] = {
    Dimension.TORQUE: ("torque",),
    Dimension.SPEED: ("speed",),
}
