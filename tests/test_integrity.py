"""
Data Integrity Tests
====================

Checksums, signing and verification of motors, drives and curves, including
signatures that survive a save / load round-trip.
"""

import os
import tempfile
import unittest
from datetime import datetime, timezone
from decimal import Decimal

from curveeditor.controller.curve_generator import CurveGenerator
from curveeditor.controller.integrity import DataIntegrityService
from curveeditor.model.io import IOManager, motor_from_dict, motor_to_dict
from curveeditor.model.motor import Drive, MotorDefinition, ValidationSignature, VoltageConfiguration


def make_motor():
    curve = CurveGenerator().generate_curve("Peak", 5000, 55, 1500)
    voltage = VoltageConfiguration(voltage_value=Decimal(230), power=Decimal(1500), curves=[curve])
    return MotorDefinition(
        motor_name="M1",
        max_speed=Decimal("2304.00"),
        drives=[Drive(name="D1", voltage_configurations=[voltage])],
    )


class TestValidationSignature(unittest.TestCase):

    def test_is_valid(self):
        self.assertTrue(ValidationSignature("abc", "qa@example.com").is_valid())
        self.assertFalse(ValidationSignature("", "qa@example.com").is_valid())
        self.assertFalse(ValidationSignature("abc", "  ").is_valid())

    def test_dict_round_trip(self):
        signed = ValidationSignature("abc", "qa", datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc))
        restored = ValidationSignature.from_dict(signed.to_dict())
        self.assertEqual(restored, signed)
        self.assertEqual(signed.to_dict()["verifiedBy"], "qa")


class TestChecksums(unittest.TestCase):

    def setUp(self):
        self.service = DataIntegrityService()

    def test_checksum_is_lowercase_sha256_hex(self):
        checksum = self.service.compute_motor_checksum(make_motor())
        self.assertEqual(len(checksum), 64)
        self.assertEqual(checksum, checksum.lower())

    def test_trailing_zeros_do_not_change_checksum(self):
        a, b = make_motor(), make_motor()
        b.max_speed = Decimal("2304")
        self.assertEqual(self.service.compute_motor_checksum(a), self.service.compute_motor_checksum(b))

    def test_motor_checksum_ignores_drives(self):
        motor = make_motor()
        before = self.service.compute_motor_checksum(motor)
        motor.drives[0].name = "Renamed"
        self.assertEqual(self.service.compute_motor_checksum(motor), before)

    def test_drive_checksum_ignores_curve_data(self):
        drive = make_motor().drives[0]
        before = self.service.compute_drive_checksum(drive)
        drive.voltage_configurations[0].curves[0].points[0].torque = Decimal(1)
        self.assertEqual(self.service.compute_drive_checksum(drive), before)
        drive.voltage_configurations[0].power = Decimal(1600)
        self.assertNotEqual(self.service.compute_drive_checksum(drive), before)


class TestSignAndVerify(unittest.TestCase):

    def setUp(self):
        self.service = DataIntegrityService()
        self.motor = make_motor()
        self.drive = self.motor.drives[0]
        self.curve = self.drive.voltage_configurations[0].curves[0]

    def test_unsigned_data_does_not_verify(self):
        self.assertFalse(self.service.verify_motor_properties(self.motor))
        self.assertFalse(self.service.verify_drive(self.drive))
        self.assertFalse(self.service.verify_curve(self.curve))

    def test_signed_data_verifies(self):
        self.motor.signature = self.service.sign_motor_properties(self.motor, "qa")
        self.drive.signature = self.service.sign_drive(self.drive, "qa")
        self.curve.signature = self.service.sign_curve(self.curve, "qa")
        self.assertTrue(self.service.verify_motor_properties(self.motor))
        self.assertTrue(self.service.verify_drive(self.drive))
        self.assertTrue(self.service.verify_curve(self.curve))

    def test_edited_curve_fails_verification(self):
        self.curve.signature = self.service.sign_curve(self.curve, "qa")
        self.curve.points[10].torque += Decimal("0.01")
        self.assertFalse(self.service.verify_curve(self.curve))

    def test_lock_flag_is_covered(self):
        self.curve.signature = self.service.sign_curve(self.curve, "qa")
        self.curve.locked = True
        self.assertFalse(self.service.verify_curve(self.curve))

    def test_edited_motor_fails_verification(self):
        self.motor.signature = self.service.sign_motor_properties(self.motor, "qa")
        self.motor.units.torque = "lbf-in"
        self.assertFalse(self.service.verify_motor_properties(self.motor))

    def test_incomplete_signature_does_not_verify(self):
        checksum = self.service.compute_curve_checksum(self.curve)
        self.curve.signature = ValidationSignature(checksum=checksum, verified_by="")
        self.assertFalse(self.service.verify_curve(self.curve))

    def test_verifier_is_required(self):
        with self.assertRaises(ValueError):
            self.service.sign_curve(self.curve, " ")


class TestSignaturePersistence(unittest.TestCase):

    def setUp(self):
        self.service = DataIntegrityService()

    def test_signatures_survive_mapping(self):
        motor = make_motor()
        curve = motor.drives[0].voltage_configurations[0].curves[0]
        motor.signature = self.service.sign_motor_properties(motor, "qa")
        curve.signature = self.service.sign_curve(curve, "qa")

        data = motor_to_dict(motor)
        self.assertIn("motorSignature", data)
        self.assertNotIn("driveSignature", data["drives"][0])

        restored = motor_from_dict(data)
        restored_curve = restored.drives[0].voltage_configurations[0].curves[0]
        self.assertEqual(restored.signature, motor.signature)
        self.assertTrue(self.service.verify_motor_properties(restored))
        self.assertTrue(self.service.verify_curve(restored_curve))
        self.assertIsNone(restored.drives[0].signature)

    def test_signatures_survive_file_round_trip(self):
        motor = make_motor()
        drive = motor.drives[0]
        drive.signature = self.service.sign_drive(drive, "qa")
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "signed.json")
            IOManager.save_motor(motor, path)
            loaded = IOManager.load_motor(path)
        self.assertTrue(self.service.verify_drive(loaded.drives[0]))
        self.assertEqual(loaded.drives[0].signature.verified_by, "qa")


if __name__ == "__main__":
    unittest.main()
