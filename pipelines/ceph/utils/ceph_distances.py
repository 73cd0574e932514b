# -*- coding: utf-8 -*-
"""
侧位片距离测量

所有长度类结果均为 原始距离 × 比例系数，单位 mm，保留 1 位小数。
垂距类结果带符号，符号约定不可更改（临床解读依赖该方向）：
    - 一般垂距：(线终点 - 线起点) × (点 - 线起点) >= 0 为正
    - E 线：取反，唇位于 E 线后方为负
"""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional, Tuple

import numpy as np

from .ceph_calibration import resolve_scale, scale_factor, scaled_xy_difference
from .ceph_geometry import distance, perpendicular_signed_distance, round_half_up
from .ceph_landmarks import LandmarkSet
from .ceph_results import DistanceResult, SkippedMeasurement, record_degenerate, record_missing

logger = logging.getLogger(__name__)

# 两点间直线距离：名称 -> (起点, 终点)
LINEAR_DISTANCES: Tuple[Tuple[str, Tuple[str, str]], ...] = (
    ("ACBL", ("Nasion", "Sella")),        # 前颅底长
    ("MBL", ("Go", "Gn")),                # 下颌体长
    ("AFH", ("Nasion", "Menton")),        # 前面高
    ("PFH", ("Sella", "Go")),             # 后面高
    ("UFH", ("Nasion", "ANS")),           # 上前面高
    ("LFH", ("ANS", "Menton")),           # 下前面高
    ("HR", ("Porion", "Orbitale")),
    ("SN", ("Sella", "Nasion")),
    ("Ramus height", ("Ar", "Go")),
    ("MxBL", ("ANS", "PNS")),             # 上颌基骨长
    ("PCBL", ("Sella", "Basion")),        # 后颅底长
    ("S-Por", ("Sella", "Porion")),
    ("S-A", ("Sella", "A-Point")),
)

# 带符号垂距：名称 -> (线起点, 线终点, 测量点, 是否取反)
PERPENDICULAR_DISTANCES: Tuple[Tuple[str, Tuple[str, str, str], bool], ...] = (
    ("E-line Upper", ("Pronasale", "soft tissue Pogonion", "Upper lip"), True),
    ("E-line Lower", ("Pronasale", "soft tissue Pogonion", "Lower lip"), True),
    ("U1 to NA", ("Nasion", "A-Point", "Mx.1 cr"), False),
    ("L1 to NB", ("Nasion", "B-Point", "Mn.1 cr"), False),
)


def scaled_distance(
    landmarks: Mapping,
    key1: str,
    key2: str,
    scale: Optional[float] = None,
) -> Optional[DistanceResult]:
    """
    两个标志点间的标定距离

    Args:
        landmarks: 标志点集合
        key1, key2: 标志点名称
        scale: 比例系数；为 None 时根据比例尺标志点重新计算

    Returns:
        DistanceResult；任一点缺失时返回 None
    """
    landmark_set = LandmarkSet.from_dict(landmarks)
    missing = landmark_set.missing((key1, key2))
    if missing:
        logger.warning("Missing landmarks for distance %s-%s: %s", key1, key2, missing)
        return None

    factor = resolve_scale(landmark_set, scale)
    raw = distance(landmark_set[key1], landmark_set[key2])
    return DistanceResult(raw_distance=raw, scaled_distance=round_half_up(raw * factor))


def scaled_perpendicular_distance(
    landmarks: Mapping,
    line_key1: str,
    line_key2: str,
    point_key: str,
    scale: Optional[float] = None,
) -> Optional[float]:
    """标志点到直线 (line_key1, line_key2) 的带符号标定垂距；缺点或直线长度为 0 时返回 None"""
    landmark_set = LandmarkSet.from_dict(landmarks)
    keys = (line_key1, line_key2, point_key)
    missing = landmark_set.missing(keys)
    if missing:
        logger.warning("Missing landmarks for perpendicular distance %s: %s", keys, missing)
        return None

    signed = perpendicular_signed_distance(landmark_set[line_key1], landmark_set[line_key2], landmark_set[point_key])
    if signed is None:
        return None
    return round_half_up(signed * resolve_scale(landmark_set, scale))


def nasion_perpendicular_to_a(landmarks: Mapping, scale: Optional[float] = None) -> Optional[float]:
    """
    Naperp-A：A 点到"过 Nasion 且垂直于 FH 平面的直线"的带符号距离

    FH 斜率 m = (Or.y - Po.y) / (Or.x - Po.x)，垂线斜率为 -1/m，
    垂线写成 A·x + B·y + C = 0（A = -1/m, B = -1, C = -A·N.x + N.y）。
    符号取 dot(A点 - N, (A, B))，小于 0 为负。

    FH 垂直时垂线水平（斜率 0）；FH 水平时垂线斜率无定义，视为几何退化返回 None。
    """
    landmark_set = LandmarkSet.from_dict(landmarks)
    keys = ("Porion", "Orbitale", "Nasion", "A-Point")
    missing = landmark_set.missing(keys)
    if missing:
        logger.warning("Missing landmarks for Naperp-A: %s", missing)
        return None

    po, orb, nasion, a_point = (landmark_set[key] for key in keys)
    dx_fh = orb.x - po.x
    dy_fh = orb.y - po.y
    if dx_fh == 0 and dy_fh == 0:
        logger.warning("Degenerate FH plane for Naperp-A: Porion == Orbitale")
        return None
    if dy_fh == 0:
        logger.warning("Horizontal FH plane, Naperp-A perpendicular slope undefined")
        return None

    perpendicular_slope = 0.0 if dx_fh == 0 else -dx_fh / dy_fh
    coef = np.array([perpendicular_slope, -1.0])
    c = -perpendicular_slope * nasion.x + nasion.y

    dist = abs(float(np.dot(coef, a_point.as_array())) + c) / float(np.linalg.norm(coef))
    dot = float(np.dot(a_point.as_array() - nasion.as_array(), coef))
    sign = -1.0 if dot < 0 else 1.0
    return round_half_up(dist * resolve_scale(landmark_set, scale) * sign)


def calculate_all_distances(
    landmarks: Mapping,
    skipped: Optional[List[SkippedMeasurement]] = None,
    scale: Optional[float] = None,
) -> Dict[str, float]:
    """
    计算全部临床距离

    Args:
        landmarks: 已补充派生点的标志点集合
        skipped: 跳过项收集器（可选）
        scale: 本次计算的比例系数；为 None 时按比例尺标志点计算一次

    Returns:
        Dict[str, float]: 距离名 -> 数值（mm，Cal 为比例系数本身），无法计算的项不出现
    """
    landmark_set = LandmarkSet.from_dict(landmarks)
    factor = scale_factor(landmark_set) if scale is None else scale
    distances: Dict[str, float] = {}

    for name, (line_start, line_end, point), inverted in PERPENDICULAR_DISTANCES:
        keys = (line_start, line_end, point)
        if record_missing(skipped, name, landmark_set, keys):
            continue
        value = scaled_perpendicular_distance(landmark_set, line_start, line_end, point, scale=factor)
        if value is None:
            record_degenerate(skipped, name, keys)
            continue
        distances[name] = round_half_up(-value) if inverted else value

    # 旧版单值 E-line 标签，取下唇
    if "E-line Lower" in distances:
        distances["E-line"] = distances["E-line Lower"]

    # Overbite / Overjet：Mn.1 cr -> Mx.1 cr 的纵向、横向分量
    if not record_missing(skipped, "Incisor Overbite", landmark_set, ("Mn.1 cr", "Mx.1 cr")):
        dx, dy = scaled_xy_difference(landmark_set, "Mn.1 cr", "Mx.1 cr", scale=factor)
        distances["Incisor Overbite"] = dy
        distances["Incisor Overjet"] = dx

    for name, (key1, key2) in LINEAR_DISTANCES:
        if record_missing(skipped, name, landmark_set, (key1, key2)):
            continue
        distances[name] = scaled_distance(landmark_set, key1, key2, scale=factor).scaled_distance

    # 面高比 FHR = PFH / AFH × 100
    if not record_missing(skipped, "FHR", distances, ("PFH", "AFH")):
        if distances["AFH"] == 0:
            record_degenerate(skipped, "FHR", ("PFH", "AFH"))
        else:
            distances["FHR"] = round_half_up(distances["PFH"] / distances["AFH"] * 100)

    if not record_missing(skipped, "MB-ACBL", distances, ("MBL", "ACBL")):
        distances["MB-ACBL"] = round_half_up(distances["MBL"] - distances["ACBL"])

    if not record_missing(skipped, "Naperp-A", landmark_set, ("Porion", "Orbitale", "Nasion", "A-Point")):
        naperp_a = nasion_perpendicular_to_a(landmark_set, scale=factor)
        if naperp_a is None:
            record_degenerate(skipped, "Naperp-A", ("Porion", "Orbitale"))
        else:
            distances["Naperp-A"] = naperp_a

    distances["Cal"] = factor

    logger.info("Distance calculation finished: %d computed, scale factor %.2f", len(distances), factor)
    return distances
