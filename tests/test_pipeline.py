import copy
import sys
import unittest
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from pipelines.ceph.ceph_pipeline import CephAnalysis, CephPipeline
from pipelines.ceph.utils.ceph_diagnosis import INDEX_ORDER, calculate_diagnosis

from ceph_fixtures import FULL_LANDMARKS, without


class TestCephPipeline(unittest.TestCase):
    def setUp(self):
        self.pipeline = CephPipeline()

    def test_run_full_set(self):
        analysis = self.pipeline.run(FULL_LANDMARKS)
        self.assertIsInstance(analysis, CephAnalysis)
        self.assertEqual(analysis.scale_factor, 0.2)
        self.assertIn("Go", analysis.landmarks)
        self.assertIn("Gn", analysis.landmarks)
        self.assertEqual(set(analysis.indices), set(INDEX_ORDER))
        self.assertEqual(analysis.skipped, [])

    def test_matches_stage_functions(self):
        analysis = self.pipeline.run(FULL_LANDMARKS)
        expected = calculate_diagnosis(FULL_LANDMARKS)
        self.assertEqual(analysis.measurements, expected["measurements"])
        self.assertEqual(analysis.indices, expected["indices"])
        self.assertEqual(analysis.warnings, expected["warnings"])

    def test_input_is_not_mutated(self):
        source = copy.deepcopy(FULL_LANDMARKS)
        self.pipeline.run(source)
        self.assertEqual(source, FULL_LANDMARKS)

    def test_deterministic(self):
        first = self.pipeline.run(FULL_LANDMARKS)
        second = self.pipeline.run(FULL_LANDMARKS)
        self.assertEqual(first.measurements, second.measurements)
        self.assertEqual(first.indices, second.indices)

    def test_missing_ar_scenario(self):
        analysis = self.pipeline.run(without("Ar"))
        full = self.pipeline.run(FULL_LANDMARKS)
        self.assertNotIn("Go", analysis.landmarks)
        self.assertNotIn("FMA", analysis.measurements)
        for name in ("SNA", "SNB", "ANB"):
            self.assertEqual(analysis.measurements[name], full.measurements[name])
        self.assertIn("FMA", [s.name for s in analysis.skipped])
        self.assertEqual(set(analysis.indices), set(INDEX_ORDER))

    def test_missing_ruler_degrades_to_unit_scale(self):
        analysis = self.pipeline.run(without("Ruler Start"))
        self.assertEqual(analysis.scale_factor, 1.0)
        self.assertEqual(analysis.measurements["Cal"], 1.0)
        self.assertIn("SNA", analysis.measurements)

    def test_to_dict(self):
        data = self.pipeline.run(FULL_LANDMARKS).to_dict()
        self.assertEqual(
            set(data),
            {"measurements", "diagnosis", "warnings", "skipped", "scaleFactor", "derivedLandmarks"},
        )
        self.assertEqual(set(data["derivedLandmarks"]), {"Go", "Gn"})
        self.assertEqual(set(data["derivedLandmarks"]["Go"]), {"x", "y"})

    def test_timer_records_stages(self):
        analysis = self.pipeline.run(FULL_LANDMARKS)
        for stage in ("calibration", "derived", "angles", "distances", "diagnosis"):
            self.assertIn(f"ceph_calc.{stage}", analysis.durations)

        quiet = CephPipeline(timer_enabled=False).run(FULL_LANDMARKS)
        self.assertEqual(quiet.durations, {})

    def test_malformed_input_raises(self):
        with self.assertRaises(ValueError):
            self.pipeline.run({"Sella": {"x": "left", "y": 0}})
        with self.assertRaises(TypeError):
            self.pipeline.run([("Sella", (0, 0))])

    def test_parallel_runs_are_independent(self):
        inputs = [FULL_LANDMARKS, without("Ar"), without("Ruler End"), without("Basion")] * 4
        sequential = [self.pipeline.run(item).measurements for item in inputs]
        with ThreadPoolExecutor(max_workers=4) as executor:
            parallel = [analysis.measurements for analysis in executor.map(self.pipeline.run, inputs)]
        self.assertEqual(parallel, sequential)


class TestPipelineConfig(unittest.TestCase):
    def test_from_config(self):
        config = {
            "calculation": {"ruler_length_mm": 10.0, "default_scale_factor": 0.5, "index_formula": "weighted"},
            "timer": {"enabled": False},
        }
        pipeline = CephPipeline.from_config(config)
        self.assertEqual(pipeline.index_formula, "weighted")
        self.assertFalse(pipeline.timer_enabled)
        self.assertEqual(pipeline.run(FULL_LANDMARKS).scale_factor, 0.1)
        self.assertEqual(pipeline.run(without("Ruler End")).scale_factor, 0.5)

    def test_from_empty_config_uses_defaults(self):
        pipeline = CephPipeline.from_config({})
        self.assertEqual(pipeline.ruler_length_mm, 20.0)
        self.assertEqual(pipeline.index_formula, "simplified")

    def test_invalid_settings_raise(self):
        with self.assertRaises(ValueError):
            CephPipeline(index_formula="exact")
        with self.assertRaises(ValueError):
            CephPipeline(ruler_length_mm=0)

    def test_run_level_formula_override(self):
        pipeline = CephPipeline()
        simplified = pipeline.run(FULL_LANDMARKS)
        weighted = pipeline.run(FULL_LANDMARKS, index_formula="weighted")
        self.assertEqual(simplified.measurements, weighted.measurements)
        self.assertNotEqual(simplified.indices["APDI"], weighted.indices["APDI"])


if __name__ == "__main__":
    unittest.main()
