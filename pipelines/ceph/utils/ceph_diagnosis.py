# -*- coding: utf-8 -*-
"""
侧位片复合诊断指标与正常范围校验

指标（HGI、VGI、APDI、ODI、IAPDI、IODI、APDL、2APDL、VDL、CFD、EI）由角度/距离
按固定临床公式组合而成，总是出现在输出中：上游测量值缺失时使用该指标的临床均值兜底。

公式有两套：
    - simplified（默认）：FABA ≈ ANB + 5、PPA ≈ FMA - 25、MAB ≈ 90 - IMPA 的近似链
    - weighted：完整计算脚本中的加权公式，直接使用 FABA / PMA / MAB / AB<LOP 等角度；
      其中 PMA 为钝角形式，与之组合的 FMA 统一换成 180 - FMA

两套公式对同一组输入给出的数值不同，目前无法确定哪一套是最终版本，
因此默认保持 simplified，weighted 仅在配置 index_formula: weighted 时启用，
且每个指标在其上游角度不全时退回 simplified。
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .ceph_angles import calculate_all_angles, obtuse_fma
from .ceph_calibration import scale_factor
from .ceph_distances import calculate_all_distances
from .ceph_geometry import round_half_up
from .ceph_landmarks import resolve_derived_landmarks
from .ceph_results import SkippedMeasurement

logger = logging.getLogger(__name__)

FORMULA_SIMPLIFIED = "simplified"
FORMULA_WEIGHTED = "weighted"
INDEX_FORMULAS = (FORMULA_SIMPLIFIED, FORMULA_WEIGHTED)

# 上游测量值缺失时的兜底值（临床均值）
INDEX_FALLBACKS: Dict[str, float] = {
    "HGI": 0.0,
    "VGI": 0.0,
    "APDI": 81.0,
    "ODI": 75.0,
    "IAPDI": 81.0,
    "IODI": 70.0,
    "EI": 30.0,
}

INDEX_ORDER = ("HGI", "VGI", "APDI", "ODI", "IAPDI", "IODI", "APDL", "2APDL", "VDL", "CFD", "EI")

# 正常范围（low, high）
NORMAL_RANGES: Dict[str, Tuple[float, float]] = {
    "SNA": (79.0, 83.0),
    "SNB": (77.0, 81.0),
    "ANB": (0.0, 4.0),
    "FMA": (22.0, 32.0),
    "IMPA": (85.0, 97.0),
    "FMIA": (57.0, 68.0),
    "SN to GoGn": (27.0, 37.0),
    "U1 to SN": (100.0, 110.0),
    "L1 to NB": (4.0, 6.0),
    "Interincisal": (125.0, 135.0),
    "E-line Upper": (-4.0, 0.0),
    "E-line Lower": (-2.0, 2.0),
}

SEVERE_DEVIATION = 10.0


class Severity(str, Enum):
    MILD = "mild"
    SEVERE = "severe"


@dataclass(frozen=True)
class ValidationWarning:
    """超出正常范围的测量值"""
    name: str
    value: float
    expected_range: Tuple[float, float]
    severity: Severity

    @property
    def message(self) -> str:
        low, high = self.expected_range
        return f"{self.name} value {self.value} is outside normal range ({low}-{high})"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "value": self.value,
            "expectedRange": list(self.expected_range),
            "severity": self.severity.value,
            "message": self.message,
        }


def _has(measurements: Mapping[str, float], *names: str) -> bool:
    # 0 是合法测量值，只判断是否存在
    return all(measurements.get(name) is not None for name in names)


def _hgi(m: Mapping[str, float]) -> float:
    """
    水平生长指标

    完整公式 0.2 × ((MBL - ACBL) × 2 + (UGA - 50) + 0.5 × (PCBA - 64))；
    缺少 UGA / PCBA 时退化为简化式 0.2 × ((MBL - ACBL) × 2)。
    """
    if not _has(m, "MBL", "ACBL"):
        return INDEX_FALLBACKS["HGI"]
    total = (m["MBL"] - m["ACBL"]) * 2
    if _has(m, "UGA", "PCBA"):
        total += (m["UGA"] - 50) + 0.5 * (m["PCBA"] - 64)
    return round_half_up(0.2 * total)


def _vgi(m: Mapping[str, float], weighted: bool) -> float:
    if not _has(m, "FHR"):
        return INDEX_FALLBACKS["VGI"]
    total = (m["FHR"] - 60) * 2
    if weighted and _has(m, "LGA", "ACBA"):
        total += -(m["LGA"] - 75) + 0.5 * (m["ACBA"] - 7)
    return round_half_up(0.2 * total)


def _ppa(m: Mapping[str, float], weighted: bool) -> Optional[float]:
    """腭平面角：weighted 为 (180 - FMA) - PMA，simplified 为 FMA - 25"""
    if weighted and _has(m, "FMA", "PMA"):
        return round_half_up(obtuse_fma(m["FMA"]) - m["PMA"])
    if _has(m, "FMA"):
        return m["FMA"] - 25
    return None


def _apdi(m: Mapping[str, float], weighted: bool) -> float:
    if weighted and _has(m, "FABA", "FMA", "PMA"):
        return round_half_up(m["FABA"] + _ppa(m, True))
    if not _has(m, "ANB", "FMA"):
        return INDEX_FALLBACKS["APDI"]
    faba = m["ANB"] + 5
    return round_half_up(faba + _ppa(m, False))


def _odi(m: Mapping[str, float], weighted: bool) -> float:
    if weighted and _has(m, "MAB", "FMA", "PMA"):
        return round_half_up(m["MAB"] + _ppa(m, True))
    if not _has(m, "FMA", "IMPA"):
        return INDEX_FALLBACKS["ODI"]
    mab = 90 - m["IMPA"]
    return round_half_up(mab + _ppa(m, False))


def _iapdi_from(apdi: float, plane_angle: float, cos_angle: Optional[float]) -> Optional[float]:
    """
    IAPDI 条件公式

    APDI >= 81 时：plane_angle < 27.5 取 95 - 0.5 × plane_angle，否则取 81；
    APDI < 81 时：81 - a × (plane_angle - 27.5)，a = (3.5 / 4.4) × cos(cos_angle)。
    """
    if apdi >= 81:
        return round_half_up(95 - 0.5 * plane_angle) if plane_angle < 27.5 else 81.0
    if cos_angle is None:
        return None
    a = (3.5 / 4.4) * math.cos(cos_angle * math.pi / 180)
    return round_half_up(81 - a * (plane_angle - 27.5))


def _iapdi(m: Mapping[str, float], apdi: float, weighted: bool) -> float:
    if weighted and _has(m, "PMA"):
        value = _iapdi_from(apdi, m["PMA"], m.get("AB<LOP"))
        if value is not None:
            return value
    if not _has(m, "FMA"):
        return INDEX_FALLBACKS["IAPDI"]
    value = _iapdi_from(apdi, m["FMA"], m.get("ANB"))
    return INDEX_FALLBACKS["IAPDI"] if value is None else value


def _iodi(m: Mapping[str, float], weighted: bool) -> float:
    if weighted and _has(m, "PMA", "FMA", "FABA"):
        slope = 0.776 - 0.008 * obtuse_fma(m["FMA"])
        return round_half_up(80 - 0.3 * m["PMA"] - slope * (m["FABA"] - 80))
    if not _has(m, "FMA", "ANB"):
        return INDEX_FALLBACKS["IODI"]
    return round_half_up(80 - 0.3 * m["FMA"] - (0.776 - 0.008 * m["FMA"]) * (m["ANB"] - 2))


def calculate_indices(measurements: Mapping[str, float], formula: str = FORMULA_SIMPLIFIED) -> Dict[str, float]:
    """
    计算复合诊断指标

    Args:
        measurements: 角度与距离合并后的测量值字典
        formula: "simplified"（默认）或 "weighted"

    Returns:
        Dict[str, float]: 全部 11 个指标，均保留 1 位小数

    Raises:
        ValueError: formula 不是已知公式
    """
    if formula not in INDEX_FORMULAS:
        raise ValueError(f"Unknown index formula '{formula}', expected one of {INDEX_FORMULAS}")
    weighted = formula == FORMULA_WEIGHTED
    m = measurements

    apdi = _apdi(m, weighted)
    odi = _odi(m, weighted)
    iapdi = _iapdi(m, apdi, weighted)
    iodi = _iodi(m, weighted)

    apdl = round_half_up(0.8 * (apdi - iapdi))

    ei = INDEX_FALLBACKS["EI"]
    if _has(m, "Interincisal", "E-line Upper", "E-line Lower"):
        ei = round_half_up(odi + apdi + (m["Interincisal"] - 125) / 5 - (m["E-line Upper"] + m["E-line Lower"]))

    indices = {
        "HGI": _hgi(m),
        "VGI": _vgi(m, weighted),
        "APDI": apdi,
        "ODI": odi,
        "IAPDI": iapdi,
        "IODI": iodi,
        "APDL": apdl,
        "2APDL": round_half_up(2 * apdl),
        "VDL": round_half_up(0.4849 * (odi - iodi)),
        "CFD": round_half_up(odi + apdi - iapdi - iodi),
        "EI": ei,
    }
    logger.debug("Diagnostic indices (%s): %s", formula, indices)
    return indices


def validate_measurements(measurements: Mapping[str, float]) -> List[ValidationWarning]:
    """
    正常范围校验

    超出范围即产生警告；与范围中点偏差超过 10 为 severe，否则为 mild。
    缺失的测量项不产生警告。
    """
    warnings: List[ValidationWarning] = []
    for name, (low, high) in NORMAL_RANGES.items():
        value = measurements.get(name)
        if value is None or low <= value <= high:
            continue
        midpoint = (low + high) / 2
        severity = Severity.SEVERE if abs(value - midpoint) > SEVERE_DEVIATION else Severity.MILD
        warnings.append(ValidationWarning(name, value, (low, high), severity))

    if warnings:
        logger.info("Validation produced %d warnings: %s", len(warnings), [w.name for w in warnings])
    return warnings


def calculate_diagnosis(
    landmarks: Mapping,
    formula: str = FORMULA_SIMPLIFIED,
    skipped: Optional[List[SkippedMeasurement]] = None,
) -> Dict[str, Any]:
    """
    从原始标志点一次性得到测量值、诊断指标与校验警告

    Returns:
        {"measurements": {...}, "indices": {...}, "warnings": [ValidationWarning, ...]}
    """
    extended = resolve_derived_landmarks(landmarks)
    factor = scale_factor(extended)
    measurements: Dict[str, float] = {}
    measurements.update(calculate_all_angles(extended, skipped=skipped))
    measurements.update(calculate_all_distances(extended, skipped=skipped, scale=factor))
    return {
        "measurements": measurements,
        "indices": calculate_indices(measurements, formula=formula),
        "warnings": validate_measurements(measurements),
    }
