"""
Input/Output Manager (JSON)
Maps the MotorDefinition graph to plain key-value data and back, and
reads / writes it as a JSON motor file.

Decimal quantities are written as normalised strings ("2304", "8.5") so that
no precision is lost; numbers are accepted on load as well.
"""
from __future__ import annotations

import json
import logging
import os
from decimal import Decimal
from typing import Any, Dict, Optional

from curveeditor.config import SCHEMA_VERSION
from curveeditor.model.motor import (
    Curve, DataPoint, Drive, MotorDefinition, ValidationSignature, VoltageConfiguration
)
from curveeditor.model.units import UnitSettings
from curveeditor.utils import normalize_decimal, to_decimal

# Get module logger
logger = logging.getLogger(__name__)

# attribute name -> file key
MOTOR_KEYS: Dict[str, str] = {
    "power": "power",
    "max_speed": "maxSpeed",
    "rated_speed": "ratedSpeed",
    "rated_continuous_torque": "ratedContinuousTorque",
    "rated_peak_torque": "ratedPeakTorque",
    "weight": "weight",
    "rotor_inertia": "rotorInertia",
    "brake_torque": "brakeTorque",
    "brake_amperage": "brakeAmperage",
    "brake_voltage": "brakeVoltage",
    "brake_release_time": "brakeReleaseTime",
    "brake_engage_time_diode": "brakeEngageTimeDiode",
    "brake_engage_time_mov": "brakeEngageTimeMOV",
    "brake_backlash": "brakeBacklash",
}

VOLTAGE_KEYS: Dict[str, str] = {
    "voltage_value": "voltage",
    "power": "power",
    "max_speed": "maxSpeed",
    "rated_speed": "ratedSpeed",
    "rated_continuous_torque": "ratedContinuousTorque",
    "rated_peak_torque": "ratedPeakTorque",
    "continuous_amperage": "continuousAmperage",
    "peak_amperage": "peakAmperage",
}

UNIT_KEYS: Dict[str, str] = {
    "torque": "torque",
    "speed": "speed",
    "power": "power",
    "weight": "weight",
    "current": "current",
    "response_time": "responseTime",
    "backlash": "backlash",
    "inertia": "inertia",
}


def _dec(value: Decimal) -> str:
    return normalize_decimal(value)


def _read_dec(data: Dict[str, Any], key: str) -> Decimal:
    return to_decimal(data.get(key, 0))


def _write_signature(data: Dict[str, Any], key: str, signature: Optional[ValidationSignature]) -> None:
    if signature is not None:
        data[key] = signature.to_dict()


def _read_signature(data: Dict[str, Any], key: str) -> Optional[ValidationSignature]:
    raw = data.get(key)
    return ValidationSignature.from_dict(raw) if raw else None


def curve_data_to_dict(curve: Curve) -> Dict[str, Any]:
    """Name, lock flag, notes and points of a curve (the signed part)."""
    return {
        "name": curve.name,
        "locked": curve.locked,
        "notes": curve.notes,
        "points": [
            {"percent": p.percent, "rpm": _dec(p.speed), "torque": _dec(p.torque)}
            for p in curve.points
        ],
    }


def curve_to_dict(curve: Curve) -> Dict[str, Any]:
    data = curve_data_to_dict(curve)
    _write_signature(data, "curveSignature", curve.signature)
    return data


def curve_from_dict(data: Dict[str, Any]) -> Curve:
    return Curve(
        name=data.get("name", "Unnamed"),
        locked=bool(data.get("locked", False)),
        notes=data.get("notes", ""),
        points=[
            DataPoint(percent=int(p["percent"]), speed=_read_dec(p, "rpm"), torque=_read_dec(p, "torque"))
            for p in data.get("points", [])
        ],
        signature=_read_signature(data, "curveSignature"),
    )


def voltage_properties_to_dict(voltage: VoltageConfiguration) -> Dict[str, Any]:
    return {key: _dec(getattr(voltage, attr)) for attr, key in VOLTAGE_KEYS.items()}


def voltage_to_dict(voltage: VoltageConfiguration) -> Dict[str, Any]:
    data = voltage_properties_to_dict(voltage)
    data["curves"] = [curve_to_dict(c) for c in voltage.curves]
    return data


def voltage_from_dict(data: Dict[str, Any]) -> VoltageConfiguration:
    voltage = VoltageConfiguration(**{attr: _read_dec(data, key) for attr, key in VOLTAGE_KEYS.items()})
    voltage.curves = [curve_from_dict(c) for c in data.get("curves", [])]
    return voltage


def drive_properties_to_dict(drive: Drive) -> Dict[str, Any]:
    """Drive fields and its voltage configurations, without any curve data (the signed part)."""
    return {
        "name": drive.name,
        "partNumber": drive.part_number,
        "manufacturer": drive.manufacturer,
        "voltages": [voltage_properties_to_dict(v) for v in drive.voltage_configurations],
    }


def drive_to_dict(drive: Drive) -> Dict[str, Any]:
    data = drive_properties_to_dict(drive)
    data["voltages"] = [voltage_to_dict(v) for v in drive.voltage_configurations]
    _write_signature(data, "driveSignature", drive.signature)
    return data


def drive_from_dict(data: Dict[str, Any]) -> Drive:
    return Drive(
        name=data.get("name", ""),
        part_number=data.get("partNumber", ""),
        manufacturer=data.get("manufacturer", ""),
        voltage_configurations=[voltage_from_dict(v) for v in data.get("voltages", [])],
        signature=_read_signature(data, "driveSignature"),
    )


def motor_properties_to_dict(motor: MotorDefinition) -> Dict[str, Any]:
    """Motor-level fields and unit settings, without drives (the signed part)."""
    data: Dict[str, Any] = {
        "schemaVersion": motor.schema_version,
        "motorName": motor.motor_name,
        "manufacturer": motor.manufacturer,
        "partNumber": motor.part_number,
        "feedbackPpr": motor.feedback_ppr,
        "hasBrake": motor.has_brake,
    }
    data.update({key: _dec(getattr(motor, attr)) for attr, key in MOTOR_KEYS.items()})
    data["units"] = {key: getattr(motor.units, attr) for attr, key in UNIT_KEYS.items()}
    return data


def motor_to_dict(motor: MotorDefinition) -> Dict[str, Any]:
    """Serialise the full graph into JSON-compatible data."""
    data = motor_properties_to_dict(motor)
    data["drives"] = [drive_to_dict(d) for d in motor.drives]
    _write_signature(data, "motorSignature", motor.signature)
    return data


def motor_from_dict(data: Dict[str, Any]) -> MotorDefinition:
    """Rebuild a MotorDefinition from `motor_to_dict` output; missing keys take defaults."""
    motor = MotorDefinition(
        motor_name=data.get("motorName", ""),
        manufacturer=data.get("manufacturer", ""),
        part_number=data.get("partNumber", ""),
        feedback_ppr=int(data.get("feedbackPpr", 0)),
        has_brake=bool(data.get("hasBrake", False)),
        schema_version=data.get("schemaVersion", SCHEMA_VERSION),
        signature=_read_signature(data, "motorSignature"),
    )
    for attr, key in MOTOR_KEYS.items():
        setattr(motor, attr, _read_dec(data, key))

    units_data = data.get("units", {})
    motor.units = UnitSettings.from_dict({attr: units_data[key] for attr, key in UNIT_KEYS.items() if key in units_data})

    motor.drives = [drive_from_dict(d) for d in data.get("drives", [])]
    return motor


class IOManager:
    """Reads and writes motor files."""

    @staticmethod
    def save_motor(motor: MotorDefinition, filepath: str) -> None:
        """
        Writes the motor to a JSON file.
        The data goes to a sibling temp file first and replaces `filepath` only once complete.
        """
        logger.info(f"Saving motor to: {filepath}")
        tmp_path = f"{filepath}.tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(motor_to_dict(motor), f, indent=2)
            os.replace(tmp_path, filepath)
        except Exception as e:
            logger.exception(f"Failed to save motor: {e}")
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    @staticmethod
    def load_motor(filepath: str) -> MotorDefinition:
        logger.info(f"Loading motor from: {filepath}")
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                data = json.load(f, parse_float=Decimal)
        except json.JSONDecodeError as e:
            msg = f"File '{filepath}' is not a valid motor file: {e}"
            logger.error(msg)
            raise ValueError(msg) from e

        if not isinstance(data, dict):
            raise ValueError(f"File '{filepath}' does not contain a motor definition.")

        motor = motor_from_dict(data)
        logger.info(f"Loaded '{motor.motor_name}' with {len(motor.drives)} drive(s).")
        return motor
