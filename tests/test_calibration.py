import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from pipelines.ceph.utils.ceph_calibration import scale_factor, scaled_xy_difference
from pipelines.ceph.utils.ceph_distances import scaled_distance


class TestScaleFactor(unittest.TestCase):
    def test_ruler_of_100_units(self):
        landmarks = {"Ruler Start": {"x": 0, "y": 0}, "Ruler End": {"x": 100, "y": 0}}
        self.assertEqual(scale_factor(landmarks), 0.2)

    def test_scaled_distance_uses_factor(self):
        landmarks = {
            "Ruler Start": {"x": 0, "y": 0},
            "Ruler End": {"x": 100, "y": 0},
            "P": {"x": 0, "y": 0},
            "Q": {"x": 50, "y": 0},
        }
        result = scaled_distance(landmarks, "P", "Q")
        self.assertEqual(result.raw_distance, 50.0)
        self.assertEqual(result.scaled_distance, 10.0)
        self.assertEqual(result.unit, "mm")

    def test_ruler_itself_measures_20mm(self):
        landmarks = {"Ruler Start": {"x": 10, "y": 10}, "Ruler End": {"x": 40, "y": 50}}
        self.assertEqual(scale_factor(landmarks), 0.4)
        self.assertEqual(scaled_distance(landmarks, "Ruler Start", "Ruler End").scaled_distance, 20.0)

    def test_factor_is_rounded_to_two_decimals(self):
        landmarks = {"Ruler Start": {"x": 0, "y": 0}, "Ruler End": {"x": 0, "y": 30}}
        self.assertEqual(scale_factor(landmarks), 0.67)

    def test_missing_ruler_defaults_to_one(self):
        self.assertEqual(scale_factor({"Ruler Start": {"x": 0, "y": 0}}), 1.0)
        self.assertEqual(scale_factor({}), 1.0)

    def test_zero_length_ruler_defaults_to_one(self):
        landmarks = {"Ruler Start": {"x": 5, "y": 5}, "Ruler End": {"x": 5, "y": 5}}
        self.assertEqual(scale_factor(landmarks), 1.0)

    def test_custom_ruler_length_and_default(self):
        landmarks = {"Ruler Start": {"x": 0, "y": 0}, "Ruler End": {"x": 100, "y": 0}}
        self.assertEqual(scale_factor(landmarks, ruler_length_mm=10.0), 0.1)
        self.assertEqual(scale_factor({}, default=0.5), 0.5)

    def test_explicit_scale_overrides_ruler(self):
        landmarks = {
            "Ruler Start": {"x": 0, "y": 0},
            "Ruler End": {"x": 100, "y": 0},
            "P": {"x": 0, "y": 0},
            "Q": {"x": 50, "y": 0},
        }
        self.assertEqual(scaled_distance(landmarks, "P", "Q", scale=1.0).scaled_distance, 50.0)


class TestScaledXYDifference(unittest.TestCase):
    def test_signed_components(self):
        landmarks = {
            "Ruler Start": {"x": 0, "y": 0},
            "Ruler End": {"x": 100, "y": 0},
            "Mn.1 cr": {"x": 10, "y": 20},
            "Mx.1 cr": {"x": 13, "y": 16},
        }
        self.assertEqual(scaled_xy_difference(landmarks, "Mn.1 cr", "Mx.1 cr"), (0.6, -0.8))

    def test_missing_returns_none(self):
        self.assertIsNone(scaled_xy_difference({"Mn.1 cr": (0, 0)}, "Mn.1 cr", "Mx.1 cr"))


if __name__ == "__main__":
    unittest.main()
