# -*- coding: utf-8 -*-
"""Cephalometric measurement pipeline that conforms to BasePipeline."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from pipelines.base_pipeline import BasePipeline
from pipelines.ceph.utils.ceph_angles import calculate_all_angles
from pipelines.ceph.utils.ceph_calibration import (
    DEFAULT_RULER_LENGTH_MM,
    DEFAULT_SCALE_FACTOR,
    scale_factor,
)
from pipelines.ceph.utils.ceph_diagnosis import (
    FORMULA_SIMPLIFIED,
    INDEX_FORMULAS,
    ValidationWarning,
    calculate_indices,
    validate_measurements,
)
from pipelines.ceph.utils.ceph_distances import calculate_all_distances
from pipelines.ceph.utils.ceph_landmarks import DERIVED_LANDMARKS, LandmarkSet, resolve_derived_landmarks
from pipelines.ceph.utils.ceph_results import SkippedMeasurement
from tools.timer import Timer


@dataclass
class CephAnalysis:
    """
    单次侧位片计算的结果

    Attributes:
        landmarks: 补充派生点后的标志点集合
        scale_factor: 本次使用的比例系数（mm / 坐标单位）
        measurements: 角度 + 距离的扁平测量值
        indices: 复合诊断指标（总是包含全部指标）
        warnings: 超出正常范围的测量值
        skipped: 因缺点或几何退化被跳过的测量项
        durations: 各阶段耗时（秒）
    """
    landmarks: LandmarkSet
    scale_factor: float
    measurements: Dict[str, float]
    indices: Dict[str, float]
    warnings: List[ValidationWarning] = field(default_factory=list)
    skipped: List[SkippedMeasurement] = field(default_factory=list)
    durations: Dict[str, float] = field(default_factory=dict)

    @property
    def derived_landmarks(self) -> Dict[str, Dict[str, float]]:
        return {name: self.landmarks[name].to_dict() for name in DERIVED_LANDMARKS if name in self.landmarks}

    def to_dict(self) -> Dict[str, Any]:
        """转换为仅包含基础类型的字典（由调用方决定序列化方式）"""
        return {
            "measurements": dict(self.measurements),
            "diagnosis": dict(self.indices),
            "warnings": [w.to_dict() for w in self.warnings],
            "skipped": [s.to_dict() for s in self.skipped],
            "scaleFactor": self.scale_factor,
            "derivedLandmarks": self.derived_landmarks,
        }


class CephPipeline(BasePipeline):
    """
    侧位片测量管道，实现 BasePipeline 的 run() 接口。

    流程（各阶段均生成新的数据结构，不修改上一阶段输出）：
        1. 标志点校验 -> LandmarkSet
        2. 比例尺标定 -> scale_factor
        3. 派生点推导 -> Go / Gn
        4. 角度 + 距离 -> measurements
        5. 诊断指标 + 范围校验 -> indices / warnings
    """

    def __init__(
        self,
        *,
        ruler_length_mm: float = DEFAULT_RULER_LENGTH_MM,
        default_scale_factor: float = DEFAULT_SCALE_FACTOR,
        index_formula: str = FORMULA_SIMPLIFIED,
        timer_enabled: bool = True,
    ):
        """
        Args:
            ruler_length_mm: 比例尺实际长度（毫米）
            default_scale_factor: 比例尺缺失时使用的比例系数
            index_formula: 诊断指标公式（simplified / weighted）
            timer_enabled: 是否记录各阶段耗时

        Raises:
            ValueError: index_formula 不是已知公式，或 ruler_length_mm 不为正数
        """
        super().__init__()
        self.pipeline_type = "cephalometric"

        if index_formula not in INDEX_FORMULAS:
            raise ValueError(f"Unknown index formula '{index_formula}', expected one of {INDEX_FORMULAS}")
        if ruler_length_mm <= 0:
            raise ValueError(f"ruler_length_mm must be positive, got {ruler_length_mm}")

        self.ruler_length_mm = ruler_length_mm
        self.default_scale_factor = default_scale_factor
        self.index_formula = index_formula
        self.timer_enabled = timer_enabled

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "CephPipeline":
        """
        根据 config.yaml 内容创建 Pipeline

        读取 calculation（ruler_length_mm / default_scale_factor / index_formula）
        与 timer.enabled，缺省项使用默认值。
        """
        calc_cfg = config.get("calculation") or {}
        timer_cfg = config.get("timer") or {}
        return cls(
            ruler_length_mm=float(calc_cfg.get("ruler_length_mm", DEFAULT_RULER_LENGTH_MM)),
            default_scale_factor=float(calc_cfg.get("default_scale_factor", DEFAULT_SCALE_FACTOR)),
            index_formula=calc_cfg.get("index_formula", FORMULA_SIMPLIFIED),
            timer_enabled=bool(timer_cfg.get("enabled", True)),
        )

    def run(
        self,
        landmarks: Mapping,
        index_formula: Optional[str] = None,
        **kwargs: Any,
    ) -> CephAnalysis:
        """
        执行侧位片测量流程

        Args:
            landmarks: 标志点坐标（名称 -> {"x", "y"} / (x, y) / Point）
            index_formula: 覆盖本次运行的诊断指标公式（可选）
            **kwargs: 其他参数（忽略）

        Returns:
            CephAnalysis: 完整计算结果

        Raises:
            TypeError: landmarks 不是映射类型
            ValueError: 某个标志点坐标格式错误，或 index_formula 未知
        """
        formula = index_formula or self.index_formula
        timer = Timer(enabled=self.timer_enabled)
        timer.reset()
        skipped: List[SkippedMeasurement] = []

        with timer.record("ceph_calc.validate"):
            landmark_set = LandmarkSet.from_dict(landmarks)
        self._log_step("Validate landmarks", f"{len(landmark_set)} landmarks")

        with timer.record("ceph_calc.calibration"):
            factor = scale_factor(
                landmark_set,
                ruler_length_mm=self.ruler_length_mm,
                default=self.default_scale_factor,
            )
        self._log_step("Calibration", f"scale factor {factor}")

        with timer.record("ceph_calc.derived"):
            extended = resolve_derived_landmarks(landmark_set)
        self._log_step("Derived landmarks", f"{sorted(set(extended) - set(landmark_set))}")

        with timer.record("ceph_calc.angles"):
            angles = calculate_all_angles(extended, skipped=skipped)
        with timer.record("ceph_calc.distances"):
            distances = calculate_all_distances(extended, skipped=skipped, scale=factor)

        measurements: Dict[str, float] = {}
        measurements.update(angles)
        measurements.update(distances)
        self._log_step("Measurements", f"{len(angles)} angles, {len(distances)} distances, {len(skipped)} skipped")

        with timer.record("ceph_calc.diagnosis"):
            indices = calculate_indices(measurements, formula=formula)
            warnings = validate_measurements(measurements)
        self._log_step("Diagnosis", f"formula={formula}, {len(warnings)} warnings")

        self.logger.debug("\n" + timer.get_report_string())

        return CephAnalysis(
            landmarks=extended,
            scale_factor=factor,
            measurements=measurements,
            indices=indices,
            warnings=warnings,
            skipped=skipped,
            durations=timer.durations,
        )
