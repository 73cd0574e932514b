"""
侧位片测量工具函数
"""

from .ceph_geometry import Point, distance, line_intersection, perpendicular_foot, perpendicular_signed_distance
from .ceph_calibration import scale_factor
from .ceph_landmarks import LANDMARKS, LandmarkSet, resolve_derived_landmarks
from .ceph_angles import calculate_all_angles, intersection_angle, vertex_angle
from .ceph_distances import calculate_all_distances, scaled_distance
from .ceph_diagnosis import calculate_diagnosis, calculate_indices, validate_measurements

__all__ = [
    "Point",
    "distance",
    "line_intersection",
    "perpendicular_foot",
    "perpendicular_signed_distance",
    "scale_factor",
    "LANDMARKS",
    "LandmarkSet",
    "resolve_derived_landmarks",
    "vertex_angle",
    "intersection_angle",
    "calculate_all_angles",
    "scaled_distance",
    "calculate_all_distances",
    "calculate_indices",
    "validate_measurements",
    "calculate_diagnosis",
]
