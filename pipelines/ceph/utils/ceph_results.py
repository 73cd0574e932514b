# -*- coding: utf-8 -*-
"""侧位片测量结果的数据结构，以及缺失/退化测量项的记录工具。"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

STATUS_MISSING_LANDMARKS = "missing_landmarks"
STATUS_DEGENERATE_GEOMETRY = "degenerate_geometry"


@dataclass(frozen=True)
class AngleResult:
    """角度测量结果：angle 为度数（1 位小数），landmarks 为参与计算的标志点名称"""
    angle: float
    landmarks: Tuple[str, ...]


@dataclass(frozen=True)
class DistanceResult:
    """距离测量结果：raw_distance 为原始坐标距离，scaled_distance 为毫米值（1 位小数）"""
    raw_distance: float
    scaled_distance: float
    unit: str = "mm"


@dataclass(frozen=True)
class SkippedMeasurement:
    """
    被跳过的测量项

    Attributes:
        name: 测量项名称（如 "FMA"）
        status: missing_landmarks / degenerate_geometry
        missing: 缺失的标志点或上游测量项名称
    """
    name: str
    status: str
    missing: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["missing"] = list(self.missing)
        return data


def record_missing(
    skipped: Optional[List[SkippedMeasurement]],
    name: str,
    available: Mapping[str, Any],
    required: Iterable[str],
) -> List[str]:
    """
    检查 required 是否都存在于 available 中，缺失时记录并返回缺失列表

    Args:
        skipped: 收集器（可为 None，此时仅记录日志）
        name: 测量项名称
        available: 标志点集合或测量值字典
        required: 该测量项依赖的名称

    Returns:
        缺失的名称列表（为空表示可以计算）
    """
    missing = [key for key in required if key not in available]
    if missing:
        logger.warning("Missing inputs for measurement %s: %s", name, missing)
        if skipped is not None:
            skipped.append(SkippedMeasurement(name, STATUS_MISSING_LANDMARKS, tuple(missing)))
    return missing


def record_degenerate(
    skipped: Optional[List[SkippedMeasurement]],
    name: str,
    involved: Iterable[str] = (),
) -> None:
    """记录几何退化（零长度向量、平行线等）导致无法计算的测量项"""
    involved = tuple(involved)
    logger.warning("Degenerate geometry for measurement %s: %s", name, list(involved))
    if skipped is not None:
        skipped.append(SkippedMeasurement(name, STATUS_DEGENERATE_GEOMETRY, involved))
