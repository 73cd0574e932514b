# -*- coding: utf-8 -*-
"""
侧位片标志点集合与派生标志点推导

- LANDMARKS: 手动点选的标志点名称表（含比例尺两端点）
- LandmarkSet: 不可变的 名称 -> Point 映射
- resolve_derived_landmarks: 通过直线交点补充 Go / Gn 等构造点
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

import numpy as np

from .ceph_geometry import Point, line_intersection

logger = logging.getLogger(__name__)

LANDMARKS: Tuple[str, ...] = (
    "Nasion",
    "Sella",
    "Porion",
    "Orbitale",
    "Basion",
    "ANS",
    "PNS",
    "A-Point",
    "B-Point",
    "Pogonion",
    "Menton",
    "Corpus Lt.",
    "Ramus Down",
    "Ar",
    "Mx.1 cr",
    "Mx.1 root",
    "Mn.1 cr",
    "Mn.1 root",
    "Mn.6 distal",
    "Pronasale",
    "Columella",
    "Subnasale",
    "soft tissue A",
    "Upper lip",
    "Lower lip",
    "soft tissue B",
    "soft tissue Pogonion",
    "Ruler Start",
    "Ruler End",
)

# 派生点 -> (直线1起点, 直线1终点, 直线2起点, 直线2终点)
DERIVED_LANDMARKS: Dict[str, Tuple[str, str, str, str]] = {
    "Go": ("Ar", "Ramus Down", "Menton", "Corpus Lt."),       # Gonion: 升支后缘线 × 下颌平面
    "Gn": ("Nasion", "Pogonion", "Menton", "Corpus Lt."),     # Gnathion: 面平面 × 下颌平面
}

KNOWN_LANDMARKS = frozenset(LANDMARKS) | frozenset(DERIVED_LANDMARKS)


def _coerce_point(name: str, value: Any) -> Point:
    """将 Point / {"x", "y"} / (x, y) 统一转换为 Point，格式错误抛 ValueError"""
    if isinstance(value, Point):
        return value
    if isinstance(value, Mapping):
        if "x" not in value or "y" not in value:
            raise ValueError(f"Landmark '{name}' must contain 'x' and 'y', got keys {list(value.keys())}")
        return Point(value["x"], value["y"])
    if isinstance(value, (tuple, list, np.ndarray)) and len(value) == 2:
        return Point(value[0], value[1])
    raise ValueError(f"Landmark '{name}' has unsupported value: {value!r}")


class LandmarkSet(Mapping):
    """
    不可变标志点集合（名称 -> Point）

    构造时即校验每个点的格式，之后不允许修改；需要补充点时使用 extended()
    返回新的集合，原集合保持不变。未知名称允许存在（仅记录 debug 日志）。
    """

    __slots__ = ("_points",)

    def __init__(self, points: Optional[Mapping] = None):
        parsed: Dict[str, Point] = {}
        for name, value in (points or {}).items():
            if not isinstance(name, str) or not name:
                raise ValueError(f"Landmark name must be a non-empty string, got {name!r}")
            if name not in KNOWN_LANDMARKS:
                logger.debug("Unknown landmark name accepted: %s", name)
            parsed[name] = _coerce_point(name, value)
        self._points = MappingProxyType(parsed)

    @classmethod
    def from_dict(cls, data: Any) -> "LandmarkSet":
        """
        从普通字典构造（API / JSON 输入）

        Raises:
            TypeError: data 不是映射类型
            ValueError: 某个点格式错误
        """
        if isinstance(data, LandmarkSet):
            return data
        if not isinstance(data, Mapping):
            raise TypeError(f"Landmarks must be a mapping, got {type(data).__name__}")
        return cls(data)

    def __getitem__(self, name: str) -> Point:
        return self._points[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._points)

    def __len__(self) -> int:
        return len(self._points)

    def __repr__(self) -> str:
        return f"LandmarkSet({dict(self._points)!r})"

    def missing(self, names: Iterable[str]) -> List[str]:
        return [name for name in names if name not in self._points]

    def extended(self, new_points: Mapping) -> "LandmarkSet":
        """返回合并 new_points 后的新集合（同名点以 new_points 为准）"""
        merged: Dict[str, Any] = dict(self._points)
        merged.update(new_points)
        return LandmarkSet(merged)

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        return {name: point.to_dict() for name, point in self._points.items()}


def resolve_derived_landmarks(landmarks: Mapping) -> LandmarkSet:
    """
    补充派生标志点（Go、Gn）

    仅当派生点尚不存在且其前置标志点齐全时才计算；前置点缺失或两直线平行时
    直接跳过该点（不是错误），依赖它的测量项会在后续阶段被跳过。
    重复调用结果不变（已存在的点不会被重新计算）。

    Args:
        landmarks: 原始标志点（LandmarkSet 或普通字典）

    Returns:
        LandmarkSet: 补充派生点后的新集合
    """
    landmark_set = LandmarkSet.from_dict(landmarks)
    derived: Dict[str, Point] = {}

    for name, (a1, a2, b1, b2) in DERIVED_LANDMARKS.items():
        if name in landmark_set:
            continue

        missing = landmark_set.missing((a1, a2, b1, b2))
        if missing:
            logger.info("Derived landmark %s skipped, missing: %s", name, missing)
            continue

        point = line_intersection(landmark_set[a1], landmark_set[a2], landmark_set[b1], landmark_set[b2])
        if point is None:
            logger.warning("Derived landmark %s skipped: lines %s-%s and %s-%s are parallel", name, a1, a2, b1, b2)
            continue

        derived[name] = point
        logger.debug("Derived landmark %s = (%.1f, %.1f)", name, point.x, point.y)

    if not derived:
        return landmark_set
    return landmark_set.extended(derived)
