"""
Curve Generation Tests
======================

Checks the constant-torque / constant-power model against hand-computed values.

Reference motor: max speed 5000 rpm, max torque 55 N·m, max power 1500 W.
Corner speed = (1500 * 60) / (55 * 2*pi) = 260.44 rpm, i.e. between 5 % and 6 %.
"""

import math
import unittest
from decimal import Decimal

import numpy as np

from curveeditor.controller.curve_generator import CurveGenerator, round_value
from curveeditor.model.motor import Curve, DataPoint


class TestInterpolate(unittest.TestCase):
    """interpolate() output shape and values."""

    def setUp(self):
        self.generator = CurveGenerator()

    def test_zero_input_gives_flat_zero_curve(self):
        points = self.generator.interpolate(0, 0, 0)
        self.assertEqual(len(points), 101)
        self.assertEqual([p.percent for p in points], list(range(101)))
        self.assertTrue(all(p.torque == 0 for p in points))
        self.assertTrue(all(p.speed == 0 for p in points))

    def test_any_zero_rating_keeps_speeds(self):
        """A zero power rating still spreads the speeds over 0..max_speed."""
        points = self.generator.interpolate(5000, 55, 0)
        self.assertTrue(all(p.torque == 0 for p in points))
        self.assertEqual(points[50].speed, Decimal("2500.00"))
        self.assertEqual(points[100].speed, Decimal("5000.00"))

    def test_torque_limited_region(self):
        points = self.generator.interpolate(5000, 55, 1500)
        for percent in range(0, 6):
            self.assertEqual(points[percent].torque, Decimal("55.00"), f"percent {percent}")

    def test_power_limited_region_values(self):
        points = self.generator.interpolate(5000, 55, 1500)
        self.assertEqual(points[6].speed, Decimal("300.00"))
        self.assertEqual(points[6].torque, Decimal("47.75"))
        self.assertEqual(points[100].torque, Decimal("2.86"))

    def test_power_limited_region_strictly_decreasing(self):
        points = self.generator.interpolate(5000, 55, 1500)
        torques = [p.torque for p in points[6:]]
        for previous, current in zip(torques, torques[1:]):
            self.assertLess(current, previous)

    def test_values_have_two_decimals(self):
        points = self.generator.interpolate(3000, Decimal("12.345"), 2000)
        for p in points:
            self.assertEqual(p.speed.as_tuple().exponent, -2)
            self.assertEqual(p.torque.as_tuple().exponent, -2)

    def test_speed_never_negative(self):
        points = self.generator.interpolate(Decimal("0.001"), 10, 10)
        self.assertTrue(all(p.speed >= 0 for p in points))

    def test_negative_input_is_rejected(self):
        for args in ((-1, 55, 1500), (5000, -1, 1500), (5000, 55, -1)):
            with self.assertRaises(ValueError):
                self.generator.interpolate(*args)

    def test_generate_curve_names_the_series(self):
        curve = self.generator.generate_curve("Peak", 5000, 55, 1500)
        self.assertIsInstance(curve, Curve)
        self.assertEqual(curve.name, "Peak")
        self.assertFalse(curve.locked)
        self.assertEqual(len(curve.points), 101)


class TestDerivedHelpers(unittest.TestCase):

    def test_corner_speed_formula(self):
        corner = CurveGenerator.corner_speed(55, 1500)
        self.assertAlmostEqual(float(corner), (1500 * 60) / (55 * 2 * math.pi), places=6)

    def test_corner_speed_zero_torque(self):
        self.assertEqual(CurveGenerator.corner_speed(0, 1500), 0)
        self.assertEqual(CurveGenerator.corner_speed(-3, 1500), 0)

    def test_calculate_power(self):
        power = CurveGenerator.calculate_power(55, CurveGenerator.corner_speed(55, 1500))
        self.assertAlmostEqual(float(power), 1500.0, places=6)

    def test_power_curve(self):
        curve = Curve("c", [
            DataPoint(0, Decimal(0), Decimal(10)),
            DataPoint(50, Decimal(60), Decimal(10)),
        ])
        power = CurveGenerator.power_curve(curve)
        self.assertIsInstance(power, np.ndarray)
        np.testing.assert_allclose(power, [0.0, 10 * 2 * math.pi])

    def test_round_value_is_bankers_rounding(self):
        self.assertEqual(round_value(Decimal("2.345")), Decimal("2.34"))
        self.assertEqual(round_value(Decimal("2.355")), Decimal("2.36"))


if __name__ == "__main__":
    unittest.main()
