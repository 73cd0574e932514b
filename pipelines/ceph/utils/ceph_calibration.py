# -*- coding: utf-8 -*-
"""
比例尺标定：用 Ruler Start / Ruler End 两点（已知实际长度）把坐标距离换算为毫米。
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional, Tuple

from .ceph_geometry import distance, round_half_up
from .ceph_landmarks import LandmarkSet

logger = logging.getLogger(__name__)

RULER_START = "Ruler Start"
RULER_END = "Ruler End"
DEFAULT_RULER_LENGTH_MM = 20.0
DEFAULT_SCALE_FACTOR = 1.0


def scale_factor(
    landmarks: Mapping,
    ruler_length_mm: float = DEFAULT_RULER_LENGTH_MM,
    default: float = DEFAULT_SCALE_FACTOR,
) -> float:
    """
    计算比例系数（mm / 坐标单位）

    scale = round(ruler_length_mm / distance(Ruler Start, Ruler End), 2)

    缺少比例尺端点或比例尺长度为 0 时返回 default（1.0），保证只依赖角度的
    流程不受影响。

    Args:
        landmarks: 标志点集合
        ruler_length_mm: 比例尺实际长度（毫米），默认 20mm
        default: 无法标定时的比例系数

    Returns:
        float: 比例系数
    """
    landmark_set = LandmarkSet.from_dict(landmarks)
    missing = landmark_set.missing((RULER_START, RULER_END))
    if missing:
        logger.warning("Ruler landmarks missing %s, fallback scale factor %.2f", missing, default)
        return default

    ruler_length = distance(landmark_set[RULER_START], landmark_set[RULER_END])
    if ruler_length == 0:
        logger.warning("Ruler has zero length, fallback scale factor %.2f", default)
        return default

    return round_half_up(ruler_length_mm / ruler_length, 2)


def resolve_scale(landmarks: Mapping, scale: Optional[float] = None) -> float:
    """scale 已由调用方（流水线）计算时直接使用，否则按标志点重新计算"""
    if scale is not None:
        return scale
    return scale_factor(landmarks)


def scaled_xy_difference(
    landmarks: Mapping,
    key_from: str,
    key_to: str,
    scale: Optional[float] = None,
) -> Optional[Tuple[float, float]]:
    """
    两点坐标差（key_to - key_from）的毫米分量

    Returns:
        (dx_mm, dy_mm)，各保留 1 位小数；任一点缺失时返回 None
    """
    landmark_set = LandmarkSet.from_dict(landmarks)
    missing = landmark_set.missing((key_from, key_to))
    if missing:
        logger.warning("Missing landmarks for XY difference %s -> %s: %s", key_from, key_to, missing)
        return None

    factor = resolve_scale(landmark_set, scale)
    p_from, p_to = landmark_set[key_from], landmark_set[key_to]
    dx = round_half_up((p_to.x - p_from.x) * factor)
    dy = round_half_up((p_to.y - p_from.y) * factor)
    return dx, dy
