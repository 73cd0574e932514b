"""
侧位片测量管道
"""

from .ceph_pipeline import CephAnalysis, CephPipeline

__all__ = ["CephAnalysis", "CephPipeline"]
