# -*- coding: utf-8 -*-
"""
Pipeline 基础类
定义所有计算管道的通用接口和共享功能
"""

from abc import ABC, abstractmethod
from typing import Any, Mapping
import logging


class BasePipeline(ABC):
    """
    计算管道基类

    具体的 Pipeline（如 CephPipeline）必须继承此类并实现 run() 方法。
    提供统一的接口规范和共享的工具方法。管道实例只保存配置，不保存单次运行的
    中间结果，因此同一实例可被多个线程同时调用。
    """

    def __init__(self):
        """
        初始化 Pipeline

        设置日志记录器和 pipeline_type（子类需覆盖）
        """
        self.logger = logging.getLogger(self.__class__.__name__)
        self.pipeline_type = "base"  # 子类需覆盖
        self.logger.info(f"{self.__class__.__name__} initialized")

    @abstractmethod
    def run(self, landmarks: Mapping, **kwargs) -> Any:
        """
        执行计算流程（抽象方法，子类必须实现）

        Args:
            landmarks: 标志点坐标（名称 -> {"x", "y"}）
            **kwargs: 额外参数

        Returns:
            计算结果

        Raises:
            NotImplementedError: 子类未实现此方法
        """
        raise NotImplementedError("Subclass must implement run() method")

    def _log_step(self, step_name: str, message: str = ""):
        """
        统一的步骤日志记录

        Args:
            step_name: 步骤名称
            message: 附加信息（可选）

        Note:
            - 使用统一的日志格式：[pipeline_type] step_name: message
        """
        log_msg = f"[{self.pipeline_type}] {step_name}"
        if message:
            log_msg += f": {message}"
        self.logger.info(log_msg)
