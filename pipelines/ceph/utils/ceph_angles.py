# -*- coding: utf-8 -*-
"""
侧位片角度测量

两类基础角度：
    - 顶点角 vertex_angle(A, 顶点, C)：以中间点为顶点的两条射线夹角，范围 [0, 180]
    - 线间角 intersection_angle(A1, A2, B1, B2)：两条直线的夹角，取锐角，范围 [0, 90]

calculate_all_angles() 按 ANGLE_DEFINITIONS 逐项计算临床角度，
每一项独立计算，缺点只跳过对应角度，不会中断整批计算。
"""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional, Tuple

import numpy as np

from .ceph_geometry import round_half_up
from .ceph_landmarks import LandmarkSet
from .ceph_results import AngleResult, SkippedMeasurement, record_degenerate, record_missing

logger = logging.getLogger(__name__)

VERTEX = "vertex"
INTERSECTION = "intersection"

# (名称, 类型, 标志点, 是否取补角 180 - x)
ANGLE_DEFINITIONS: Tuple[Tuple[str, str, Tuple[str, ...], bool], ...] = (
    ("SNA", VERTEX, ("Sella", "Nasion", "A-Point"), False),
    ("SNB", VERTEX, ("Sella", "Nasion", "B-Point"), False),
    ("FMA", INTERSECTION, ("Porion", "Orbitale", "Go", "Menton"), False),
    ("SN to GoGn", INTERSECTION, ("Sella", "Nasion", "Go", "Gn"), False),
    ("U1 to SN", INTERSECTION, ("Mx.1 cr", "Mx.1 root", "Sella", "Nasion"), False),
    ("IMPA", INTERSECTION, ("Mn.1 cr", "Mn.1 root", "Corpus Lt.", "Menton"), True),
    ("Interincisal", INTERSECTION, ("Mx.1 cr", "Mx.1 root", "Mn.1 cr", "Mn.1 root"), True),
    ("ArGoGn", VERTEX, ("Ar", "Go", "Gn"), False),
    ("NSAr", VERTEX, ("Nasion", "Sella", "Ar"), False),
    ("SGoGn", VERTEX, ("Sella", "Go", "Gn"), False),
    ("PMA", INTERSECTION, ("ANS", "PNS", "Go", "Menton"), True),
    ("SN-GoMe", INTERSECTION, ("Sella", "Nasion", "Go", "Menton"), False),
    ("FA'B'", INTERSECTION, ("Porion", "Orbitale", "soft tissue A", "soft tissue B"), True),
    ("FABA", INTERSECTION, ("Porion", "Orbitale", "A-Point", "B-Point"), True),
    ("Y-angle", INTERSECTION, ("Porion", "Orbitale", "Sella", "Gn"), False),
    ("UGA", VERTEX, ("Ar", "Go", "Nasion"), False),
    ("LGA", VERTEX, ("Nasion", "Go", "Menton"), False),
    ("UIOP", INTERSECTION, ("Mn.1 cr", "Mn.6 distal", "Mx.1 cr", "Mx.1 root"), False),
    ("MOP", INTERSECTION, ("Mn.6 distal", "Mn.1 cr", "Menton", "Go"), True),
    ("FH<Ans", INTERSECTION, ("Porion", "Orbitale", "Sella", "ANS"), False),
    ("FH<Pr", INTERSECTION, ("Porion", "Orbitale", "Sella", "Porion"), True),
    ("Na-S-BaA", VERTEX, ("Nasion", "Sella", "Basion"), False),
    ("NALA", VERTEX, ("Columella", "Subnasale", "soft tissue A"), False),
    # 以下来自完整版计算脚本，供加权诊断指标使用
    ("MAB", INTERSECTION, ("Menton", "Go", "A-Point", "B-Point"), True),
    ("ACBA", INTERSECTION, ("Sella", "Nasion", "Porion", "Orbitale"), False),
    ("FH<B", INTERSECTION, ("Porion", "Orbitale", "Sella", "Basion"), True),
    ("PCBA", INTERSECTION, ("Porion", "Orbitale", "Sella", "Ar"), True),
    ("FUIA", INTERSECTION, ("Porion", "Orbitale", "Mx.1 cr", "Mx.1 root"), True),
    ("AB<LOP", INTERSECTION, ("A-Point", "B-Point", "Mn.1 cr", "Mn.6 distal"), False),
)


def _angle_between_vectors(v1: np.ndarray, v2: np.ndarray) -> Optional[float]:
    """两向量夹角（0~180°），任一向量长度为 0 时返回 None"""
    norm = np.linalg.norm(v1) * np.linalg.norm(v2)
    if norm == 0:
        return None
    cos_theta = np.clip(np.dot(v1, v2) / norm, -1.0, 1.0)
    return float(np.degrees(np.arccos(cos_theta)))


def vertex_angle(landmarks: Mapping, a: str, vertex: str, c: str) -> Optional[AngleResult]:
    """
    以 vertex 为顶点、射线指向 a 和 c 的夹角

    Returns:
        AngleResult（度数保留 1 位小数，范围 [0, 180]）；缺点或射线长度为 0 时返回 None
    """
    landmark_set = LandmarkSet.from_dict(landmarks)
    names = (a, vertex, c)
    missing = landmark_set.missing(names)
    if missing:
        logger.warning("Missing landmarks for vertex angle %s: %s", names, missing)
        return None

    origin = landmark_set[vertex].as_array()
    angle = _angle_between_vectors(landmark_set[a].as_array() - origin, landmark_set[c].as_array() - origin)
    if angle is None:
        logger.warning("Zero-length ray for vertex angle %s", names)
        return None
    return AngleResult(round_half_up(angle), names)


def intersection_angle(landmarks: Mapping, a1: str, a2: str, b1: str, b2: str) -> Optional[AngleResult]:
    """
    直线 (a1, a2) 与直线 (b1, b2) 的夹角

    方向向量分别为 a2 - a1 与 b2 - b1；原始夹角大于 90° 时取补角，
    因此结果始终是两条（无向）直线间的锐角或直角。

    Returns:
        AngleResult（范围 [0, 90]）；缺点或方向向量长度为 0 时返回 None
    """
    landmark_set = LandmarkSet.from_dict(landmarks)
    names = (a1, a2, b1, b2)
    missing = landmark_set.missing(names)
    if missing:
        logger.warning("Missing landmarks for intersection angle %s: %s", names, missing)
        return None

    d1 = landmark_set[a2].as_array() - landmark_set[a1].as_array()
    d2 = landmark_set[b2].as_array() - landmark_set[b1].as_array()
    angle = _angle_between_vectors(d1, d2)
    if angle is None:
        logger.warning("Zero-length line for intersection angle %s", names)
        return None
    if angle > 90:
        angle = 180 - angle
    return AngleResult(round_half_up(angle), names)


def obtuse_fma(fma: float) -> float:
    """FMA 的钝角形式 180 - FMA，与 PMA / MOP 同一量角方式"""
    return 180 - fma


def _add_difference(
    angles: Dict[str, float],
    name: str,
    minuend: str,
    subtrahend: str,
    skipped: Optional[List[SkippedMeasurement]],
) -> None:
    if record_missing(skipped, name, angles, (minuend, subtrahend)):
        return
    angles[name] = round_half_up(angles[minuend] - angles[subtrahend])


def calculate_all_angles(
    landmarks: Mapping,
    skipped: Optional[List[SkippedMeasurement]] = None,
) -> Dict[str, float]:
    """
    计算全部临床角度

    Args:
        landmarks: 已补充派生点（Go、Gn）的标志点集合
        skipped: 跳过项收集器（可选），缺点/几何退化的测量项会追加到此列表

    Returns:
        Dict[str, float]: 角度名 -> 度数（1 位小数），无法计算的角度不出现在结果中
    """
    landmark_set = LandmarkSet.from_dict(landmarks)
    angles: Dict[str, float] = {}

    for name, kind, keys, supplement in ANGLE_DEFINITIONS:
        if record_missing(skipped, name, landmark_set, keys):
            continue

        if kind == VERTEX:
            result = vertex_angle(landmark_set, *keys)
        else:
            result = intersection_angle(landmark_set, *keys)
        if result is None:
            record_degenerate(skipped, name, keys)
            continue

        value = 180 - result.angle if supplement else result.angle
        angles[name] = round_half_up(value)

    # ANB = SNA - SNB：正值为上颌相对靠前
    _add_difference(angles, "ANB", "SNA", "SNB", skipped)

    # FMIA = 180 - FMA - IMPA
    if not record_missing(skipped, "FMIA", angles, ("FMA", "IMPA")):
        angles["FMIA"] = round_half_up(180 - angles["FMA"] - angles["IMPA"])

    # Björk 总和角
    if not record_missing(skipped, "Sum", angles, ("NSAr", "SGoGn", "ArGoGn")):
        angles["Sum"] = round_half_up(angles["NSAr"] + angles["SGoGn"] + angles["ArGoGn"])

    # PMA / MOP 为钝角形式，FMA 需先换成 180 - FMA 再相减
    for name, plane in (("PPA", "PMA"), ("FLOPA", "MOP")):
        if not record_missing(skipped, name, angles, ("FMA", plane)):
            angles[name] = round_half_up(obtuse_fma(angles["FMA"]) - angles[plane])

    logger.info("Angle calculation finished: %d computed", len(angles))
    return angles
