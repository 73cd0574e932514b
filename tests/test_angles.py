import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from pipelines.ceph.utils.ceph_angles import (
    ANGLE_DEFINITIONS,
    INTERSECTION,
    calculate_all_angles,
    intersection_angle,
    vertex_angle,
)
from pipelines.ceph.utils.ceph_landmarks import resolve_derived_landmarks
from pipelines.ceph.utils.ceph_results import STATUS_DEGENERATE_GEOMETRY, STATUS_MISSING_LANDMARKS

from ceph_fixtures import FULL_LANDMARKS, without

COMPOSITE_ANGLES = ("ANB", "FMIA", "Sum", "PPA", "FLOPA")


class TestVertexAngle(unittest.TestCase):
    def test_right_angle_sna(self):
        landmarks = {"Sella": (0, 0), "Nasion": (0, 10), "A-Point": (10, 10)}
        result = vertex_angle(landmarks, "Sella", "Nasion", "A-Point")
        self.assertEqual(result.angle, 90.0)
        self.assertEqual(result.landmarks, ("Sella", "Nasion", "A-Point"))

    def test_straight_and_zero_angles(self):
        landmarks = {"A": (-5, 0), "V": (0, 0), "C": (5, 0), "D": (9, 0)}
        self.assertEqual(vertex_angle(landmarks, "A", "V", "C").angle, 180.0)
        self.assertEqual(vertex_angle(landmarks, "C", "V", "D").angle, 0.0)

    def test_range(self):
        extended = resolve_derived_landmarks(FULL_LANDMARKS)
        names = list(extended)
        for a, v, c in zip(names, names[1:], names[2:]):
            result = vertex_angle(extended, a, v, c)
            if result is not None:
                self.assertGreaterEqual(result.angle, 0.0)
                self.assertLessEqual(result.angle, 180.0)

    def test_missing_landmark_returns_none(self):
        self.assertIsNone(vertex_angle({"Sella": (0, 0), "Nasion": (0, 10)}, "Sella", "Nasion", "A-Point"))

    def test_zero_length_ray_returns_none(self):
        landmarks = {"Sella": (0, 0), "Nasion": (0, 0), "A-Point": (10, 10)}
        self.assertIsNone(vertex_angle(landmarks, "Sella", "Nasion", "A-Point"))


class TestIntersectionAngle(unittest.TestCase):
    def test_obtuse_is_folded_to_acute(self):
        landmarks = {"A1": (0, 0), "A2": (1, 0), "B1": (0, 0), "B2": (-1, 1)}
        self.assertEqual(intersection_angle(landmarks, "A1", "A2", "B1", "B2").angle, 45.0)

    def test_direction_does_not_matter(self):
        landmarks = {"A1": (0, 0), "A2": (4, 1), "B1": (2, 5), "B2": (3, -1)}
        forward = intersection_angle(landmarks, "A1", "A2", "B1", "B2").angle
        reversed_ = intersection_angle(landmarks, "A2", "A1", "B1", "B2").angle
        self.assertEqual(forward, reversed_)

    def test_acuteness(self):
        extended = resolve_derived_landmarks(FULL_LANDMARKS)
        names = list(extended)
        for a1, a2, b1, b2 in zip(names, names[1:], names[2:], names[3:]):
            result = intersection_angle(extended, a1, a2, b1, b2)
            if result is not None:
                self.assertGreaterEqual(result.angle, 0.0)
                self.assertLessEqual(result.angle, 90.0)

    def test_zero_length_line_returns_none(self):
        landmarks = {"A1": (1, 1), "A2": (1, 1), "B1": (0, 0), "B2": (1, 0)}
        self.assertIsNone(intersection_angle(landmarks, "A1", "A2", "B1", "B2"))


class TestCalculateAllAngles(unittest.TestCase):
    def setUp(self):
        self.extended = resolve_derived_landmarks(FULL_LANDMARKS)
        self.angles = calculate_all_angles(self.extended)

    def test_all_angles_present(self):
        expected = {definition[0] for definition in ANGLE_DEFINITIONS} | set(COMPOSITE_ANGLES)
        self.assertEqual(set(self.angles), expected)

    def test_composites(self):
        a = self.angles
        self.assertAlmostEqual(a["ANB"], round(a["SNA"] - a["SNB"], 1), places=6)
        self.assertAlmostEqual(a["FMIA"], round(180 - a["FMA"] - a["IMPA"], 1), places=6)
        self.assertAlmostEqual(a["Sum"], round(a["NSAr"] + a["SGoGn"] + a["ArGoGn"], 1), places=6)
        self.assertAlmostEqual(a["PPA"], round(180 - a["FMA"] - a["PMA"], 1), places=6)
        self.assertAlmostEqual(a["FLOPA"], round(180 - a["FMA"] - a["MOP"], 1), places=6)

    def test_plane_angles_use_obtuse_fma(self):
        a = self.angles
        self.assertAlmostEqual(a["FMA"], 14.5, places=6)
        self.assertAlmostEqual(a["PMA"], 162.3, places=6)
        self.assertAlmostEqual(a["PPA"], 3.2, places=6)
        self.assertAlmostEqual(a["FLOPA"], 4.6, places=6)
        for name in ("PPA", "FLOPA"):
            with self.subTest(name=name):
                self.assertLess(abs(a[name]), 45.0)

    def test_line_angle_ranges(self):
        for name, kind, _, supplement in ANGLE_DEFINITIONS:
            if kind != INTERSECTION:
                continue
            with self.subTest(name=name):
                if supplement:
                    self.assertGreaterEqual(self.angles[name], 90.0)
                    self.assertLessEqual(self.angles[name], 180.0)
                else:
                    self.assertLessEqual(self.angles[name], 90.0)

    def test_values_have_one_decimal(self):
        for name, value in self.angles.items():
            with self.subTest(name=name):
                self.assertEqual(value, round(value, 1))

    def test_missing_ar_drops_only_go_dependents(self):
        skipped = []
        angles = calculate_all_angles(resolve_derived_landmarks(without("Ar")), skipped=skipped)
        for name in ("FMA", "ArGoGn", "NSAr", "UGA", "PCBA", "FMIA", "Sum", "PPA"):
            self.assertNotIn(name, angles)
        for name in ("SNA", "SNB", "ANB"):
            self.assertEqual(angles[name], self.angles[name])

        fma = next(s for s in skipped if s.name == "FMA")
        self.assertEqual(fma.status, STATUS_MISSING_LANDMARKS)
        self.assertEqual(fma.missing, ("Go",))

    def test_removing_one_landmark_keeps_independent_angles(self):
        angles = calculate_all_angles(resolve_derived_landmarks(without("Basion")))
        self.assertEqual(set(self.angles) - set(angles), {"Na-S-BaA", "FH<B"})
        for name, value in angles.items():
            self.assertEqual(value, self.angles[name])

    def test_degenerate_geometry_is_recorded(self):
        landmarks = dict(FULL_LANDMARKS, Columella=FULL_LANDMARKS["Subnasale"])
        skipped = []
        angles = calculate_all_angles(resolve_derived_landmarks(landmarks), skipped=skipped)
        self.assertNotIn("NALA", angles)
        nala = next(s for s in skipped if s.name == "NALA")
        self.assertEqual(nala.status, STATUS_DEGENERATE_GEOMETRY)


if __name__ == "__main__":
    unittest.main()
