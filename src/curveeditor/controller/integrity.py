"""
Data Integrity
==============
SHA-256 checksums and validation signatures for motors, drives and curves.

The hashed text is the compact JSON (no whitespace, camelCase keys) of the
persisted key-value form, with decimals as normalised strings, so a value and
the same value after a save / load round-trip hash identically.

Checksum coverage:
    motor: motor-level fields and unit settings (no drives, no signatures)
    drive: drive fields and its voltage configurations (no curve data)
    curve: name, lock flag, notes and every data point

Changing the hashed layout invalidates every existing signature.
"""
from __future__ import annotations

import hashlib
import json
import logging
from typing import Any, Dict, Optional

from curveeditor.model.io import curve_data_to_dict, drive_properties_to_dict, motor_properties_to_dict
from curveeditor.model.motor import Curve, Drive, MotorDefinition, ValidationSignature

logger = logging.getLogger(__name__)


def _sha256(data: Dict[str, Any]) -> str:
    text = json.dumps(data, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def _require_verifier(verified_by: str) -> None:
    if not verified_by or not verified_by.strip():
        raise ValueError("verified_by must be a non-empty string.")


def _matches(signature: Optional[ValidationSignature], checksum: str) -> bool:
    if signature is None or not signature.is_valid():
        return False
    return signature.checksum.lower() == checksum


class DataIntegrityService:
    """Computes checksums, issues signatures and verifies them against current data."""

    @staticmethod
    def compute_motor_checksum(motor: MotorDefinition) -> str:
        return _sha256(motor_properties_to_dict(motor))

    @staticmethod
    def compute_drive_checksum(drive: Drive) -> str:
        return _sha256(drive_properties_to_dict(drive))

    @staticmethod
    def compute_curve_checksum(curve: Curve) -> str:
        return _sha256(curve_data_to_dict(curve))

    def sign_motor_properties(self, motor: MotorDefinition, verified_by: str) -> ValidationSignature:
        """
        Returns a signature over the current motor-level data.
        The caller stores it (e.g. on `motor.signature`).
        """
        _require_verifier(verified_by)
        logger.info(f"Signing motor '{motor.motor_name}' for {verified_by}")
        return ValidationSignature(checksum=self.compute_motor_checksum(motor), verified_by=verified_by)

    def verify_motor_properties(self, motor: MotorDefinition) -> bool:
        """False when unsigned, when the signature is incomplete, or when the data changed."""
        return _matches(motor.signature, self.compute_motor_checksum(motor))

    def sign_drive(self, drive: Drive, verified_by: str) -> ValidationSignature:
        _require_verifier(verified_by)
        logger.info(f"Signing drive '{drive.name}' for {verified_by}")
        return ValidationSignature(checksum=self.compute_drive_checksum(drive), verified_by=verified_by)

    def verify_drive(self, drive: Drive) -> bool:
        return _matches(drive.signature, self.compute_drive_checksum(drive))

    def sign_curve(self, curve: Curve, verified_by: str) -> ValidationSignature:
        _require_verifier(verified_by)
        logger.info(f"Signing series '{curve.name}' for {verified_by}")
        return ValidationSignature(checksum=self.compute_curve_checksum(curve), verified_by=verified_by)

    def verify_curve(self, curve: Curve) -> bool:
        return _matches(curve.signature, self.compute_curve_checksum(curve))
