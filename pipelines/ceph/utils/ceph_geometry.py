# -*- coding: utf-8 -*-
"""
侧位片几何基础运算

点、向量、直线相关的基础计算（距离、直线交点、垂足、带符号垂距），
供标志点推导、角度与距离计算复用。所有函数均为纯函数，不修改入参。
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from numbers import Real
from typing import Iterable, List, Optional

import numpy as np

logger = logging.getLogger(__name__)

# 行列式阈值：小于该值视为平行/重合
PARALLEL_EPSILON = 1e-4


@dataclass(frozen=True)
class Point:
    """
    二维坐标点（归一化坐标或像素坐标，同一次计算内需一致）

    Raises:
        ValueError: 坐标不是有限数值（调用方错误，而非临床数据缺失）
    """
    x: float
    y: float

    def __post_init__(self):
        for axis in ("x", "y"):
            value = getattr(self, axis)
            if isinstance(value, bool) or not isinstance(value, Real):
                raise ValueError(f"Point.{axis} must be a number, got {type(value).__name__}")
            if not math.isfinite(value):
                raise ValueError(f"Point.{axis} must be finite, got {value}")
            object.__setattr__(self, axis, float(value))

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y], dtype=float)

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}


def round_half_up(value: float, digits: int = 1) -> float:
    """
    四舍五入到指定小数位

    使用 Decimal + ROUND_HALF_UP，避免 Python 默认的银行家舍入（round(0.25, 1) == 0.2）。
    """
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def cross_2d(v1: np.ndarray, v2: np.ndarray) -> float:
    """二维叉积（标量），等价于 v1.x * v2.y - v1.y * v2.x"""
    return float(v1[0] * v2[1] - v1[1] * v2[0])


def distance(p1: Point, p2: Point) -> float:
    """欧氏距离，满足 distance(a, b) == distance(b, a)"""
    return float(np.linalg.norm(p2.as_array() - p1.as_array()))


def line_intersection(p1: Point, p2: Point, p3: Point, p4: Point) -> Optional[Point]:
    """
    计算直线 (p1, p2) 与直线 (p3, p4) 的交点（克莱姆法则）

    两条直线分别写成 A·x + B·y = C 的形式后求解 2×2 线性方程组。

    Args:
        p1, p2: 第一条直线上的两点
        p3, p4: 第二条直线上的两点

    Returns:
        交点（坐标保留 1 位小数）；行列式绝对值 < 1e-4（平行或重合）时返回 None
    """
    a1 = p2.y - p1.y
    b1 = p1.x - p2.x
    c1 = a1 * p1.x + b1 * p1.y

    a2 = p4.y - p3.y
    b2 = p3.x - p4.x
    c2 = a2 * p3.x + b2 * p3.y

    det = a1 * b2 - a2 * b1
    if abs(det) < PARALLEL_EPSILON:
        logger.debug("Lines are parallel or coincident (det=%.6f)", det)
        return None

    x = (c1 * b2 - c2 * b1) / det
    y = (a1 * c2 - a2 * c1) / det
    return Point(round_half_up(x), round_half_up(y))


def perpendicular_foot(line_start: Point, line_end: Point, point: Point) -> Point:
    """
    点到无限长直线的垂足

    t = dot(point - start, end - start) / |end - start|^2，不截断到 [0, 1]，
    垂足可能落在线段延长线上。直线长度为 0 时原样返回 point。
    """
    start = line_start.as_array()
    direction = line_end.as_array() - start
    length_sq = float(np.dot(direction, direction))
    if length_sq == 0:
        return point

    t = float(np.dot(point.as_array() - start, direction)) / length_sq
    foot = start + t * direction
    return Point(float(foot[0]), float(foot[1]))


def perpendicular_signed_distance(line_start: Point, line_end: Point, point: Point) -> Optional[float]:
    """
    点到直线的带符号垂直距离（未缩放、未舍入）

    直线写成 A·x + B·y + C = 0，距离 = |A·x + B·y + C| / sqrt(A² + B²)。
    符号由叉积 (end - start) × (point - start) 决定：>= 0 为 +1，否则为 -1。

    Returns:
        带符号距离；直线长度为 0 时返回 None
    """
    a = line_end.y - line_start.y
    b = line_start.x - line_end.x
    c = line_end.x * line_start.y - line_start.x * line_end.y

    norm = math.hypot(a, b)
    if norm == 0:
        logger.warning("Zero-length line for perpendicular distance: %s -> %s", line_start, line_end)
        return None

    unsigned = abs(a * point.x + b * point.y + c) / norm
    cross = cross_2d(
        line_end.as_array() - line_start.as_array(),
        point.as_array() - line_start.as_array(),
    )
    sign = 1.0 if cross >= 0 else -1.0
    return sign * unsigned


def midpoint(p1: Point, p2: Point) -> Point:
    return Point((p1.x + p2.x) / 2, (p1.y + p2.y) / 2)


def centroid(points: Iterable[Point]) -> Point:
    """多个点的质心；空输入返回原点"""
    pts: List[Point] = list(points)
    if not pts:
        return Point(0.0, 0.0)
    arr = np.array([p.as_array() for p in pts])
    center = arr.mean(axis=0)
    return Point(float(center[0]), float(center[1]))


def is_point_on_line(point: Point, line_start: Point, line_end: Point, tolerance: float = 0.1) -> bool:
    """点到直线的垂距是否在容差内（零长度直线退化为点距离判断）"""
    signed = perpendicular_signed_distance(line_start, line_end, point)
    if signed is None:
        return distance(point, line_start) <= tolerance
    return abs(signed) <= tolerance


def segment_intersection(p1: Point, p2: Point, p3: Point, p4: Point) -> Optional[Point]:
    """
    线段交点：仅当交点同时落在两条线段上时返回

    判断基于未舍入的参数 t/u，输出坐标与 line_intersection 一致保留 1 位小数。
    """
    d1 = p2.as_array() - p1.as_array()
    d2 = p4.as_array() - p3.as_array()
    denom = cross_2d(d1, d2)
    if abs(denom) < PARALLEL_EPSILON:
        return None

    offset = p3.as_array() - p1.as_array()
    t = cross_2d(offset, d2) / denom
    u = cross_2d(offset, d1) / denom
    if not (0.0 <= t <= 1.0 and 0.0 <= u <= 1.0):
        return None

    hit = p1.as_array() + t * d1
    return Point(round_half_up(float(hit[0])), round_half_up(float(hit[1])))


def line_circle_intersection(line_start: Point, line_end: Point, center: Point, radius: float) -> List[Point]:
    """
    线段与圆的交点（参数 t ∈ [0, 1] 的部分），按 t 升序返回

    线段长度为 0 或不相交时返回空列表。
    """
    start = line_start.as_array()
    direction = line_end.as_array() - start
    offset = start - center.as_array()

    a = float(np.dot(direction, direction))
    if a == 0:
        return []
    b = 2.0 * float(np.dot(offset, direction))
    c = float(np.dot(offset, offset)) - radius * radius

    discriminant = b * b - 4 * a * c
    if discriminant < 0:
        return []

    root = math.sqrt(discriminant)
    params = sorted({(-b - root) / (2 * a), (-b + root) / (2 * a)})
    hits = []
    for t in params:
        if 0.0 <= t <= 1.0:
            hit = start + t * direction
            hits.append(Point(float(hit[0]), float(hit[1])))
    return hits
