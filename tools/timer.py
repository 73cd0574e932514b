# -*- coding: utf-8 -*-
"""
高精度计时器模块 - 用于统计侧位片计算各阶段耗时

Usage:
    from tools.timer import Timer

    timer = Timer()
    with timer.record("ceph_calc.angles"):
        angles = calculate_all_angles(landmarks)

    logger.debug(timer.get_report_string())

每次流水线运行使用独立的 Timer 实例，并行运行之间不共享计时数据。
"""

import time
import logging
from contextlib import contextmanager
from typing import Dict, Optional
from collections import OrderedDict

logger = logging.getLogger(__name__)


class Timer:
    """
    高精度计时器

    Attributes:
        enabled (bool): 是否启用计时
        durations (Dict[str, float]): 当前运行的各步骤耗时
            - Key: 步骤名（如 "ceph_calc.angles"）
            - Value: 耗时（秒）
    """

    def __init__(self, enabled: bool = True):
        self._enabled: bool = enabled
        self._durations: Dict[str, float] = OrderedDict()
        self._start_time: Optional[float] = None

    # ==================== 核心计时 ====================

    def reset(self) -> None:
        """重置计时数据，开始新一轮统计"""
        self._durations = OrderedDict()
        self._start_time = time.perf_counter() if self._enabled else None

    @contextmanager
    def record(self, name: str):
        """
        上下文管理器，用于包裹代码块进行计时。

        Args:
            name: 步骤名称，建议格式为 "module.stage"，如 "ceph_calc.distances"
        """
        if not self._enabled:
            yield
            return

        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - start
            self._durations[name] = elapsed
            logger.debug(f"[Timer] {name}: {elapsed:.4f}s")

    # ==================== 数据访问 ====================

    @property
    def durations(self) -> Dict[str, float]:
        return dict(self._durations)

    def get_total_duration(self) -> float:
        """获取总耗时（未调用 reset 时为各步骤之和）"""
        if self._start_time is None:
            return sum(self._durations.values())
        return time.perf_counter() - self._start_time

    # ==================== 报告生成 ====================

    def get_report_string(self) -> str:
        """
        生成格式化报告，按 "module.stage" 中的 module 分组。

        Returns:
            str: 格式化的计时报告
        """
        if not self._enabled:
            return "Timer is disabled."

        if not self._durations:
            return "No timing data recorded."

        lines = ["=" * 40]
        lines.append("       Timer Report")
        lines.append("=" * 40)

        for module_name, stages in self._group_by_module(self._durations).items():
            lines.append(f"\n[{module_name}]")
            for stage, duration in stages.items():
                lines.append(f"  {stage.capitalize():<16}: {duration:.4f}s")

        lines.append("\n" + "-" * 40)
        lines.append(f"Total Duration: {self.get_total_duration():.4f}s")
        lines.append("=" * 40)

        return "\n".join(lines)

    def _group_by_module(self, data: Dict[str, float]) -> Dict[str, Dict[str, float]]:
        """按模块名分组数据"""
        modules: Dict[str, Dict[str, float]] = OrderedDict()

        for name, value in data.items():
            module_name, _, stage = name.partition(".")
            if not stage:
                module_name, stage = "Other", name
            modules.setdefault(module_name, OrderedDict())[stage] = value

        return modules
