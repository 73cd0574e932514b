# -*- coding: utf-8 -*-
"""
Pydantic 请求体验证
定义侧位片计算接口的请求和响应数据模型
"""

from pydantic import BaseModel, field_validator
from typing import Optional, Dict, Any, List
import math
import uuid


class LandmarkPoint(BaseModel):
    """
    标志点坐标

    Attributes:
        x: 横坐标（像素或归一化坐标）
        y: 纵坐标
    """
    x: float
    y: float

    @field_validator('x', 'y')
    @classmethod
    def validate_finite(cls, v: float) -> float:
        """坐标必须为有限数值（拒绝 NaN / Infinity）"""
        if not math.isfinite(v):
            raise ValueError('coordinate must be a finite number')
        return v


class CalculationRequest(BaseModel):
    """
    批量计算请求模型

    Attributes:
        taskId: 任务标识（可选，UUID v4 格式），仅用于日志追踪
        landmarks: 标志点坐标（名称 -> {x, y}）
        indexFormula: 诊断指标公式（可选，simplified / weighted），缺省使用配置
    """
    taskId: Optional[str] = None
    landmarks: Dict[str, LandmarkPoint]
    indexFormula: Optional[str] = None

    @field_validator('taskId')
    @classmethod
    def validate_task_id(cls, v: Optional[str]) -> Optional[str]:
        """验证 taskId 是否为有效的 UUID v4 格式（如果提供）"""
        if v is None:
            return v
        try:
            uuid.UUID(v, version=4)
            return v
        except ValueError:
            raise ValueError('taskId must be a valid UUID v4')

    @field_validator('landmarks')
    @classmethod
    def validate_landmarks(cls, v: Dict[str, LandmarkPoint]) -> Dict[str, LandmarkPoint]:
        """
        验证标志点非空

        Raises:
            ValueError: 未提供任何标志点
        """
        if not v:
            raise ValueError('landmarks must not be empty')
        return v

    @field_validator('indexFormula')
    @classmethod
    def validate_index_formula(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in ['simplified', 'weighted']:
            raise ValueError("indexFormula must be 'simplified' or 'weighted'")
        return v


class CalculationResponse(BaseModel):
    """
    批量计算响应模型（200 OK）

    Attributes:
        taskId: 任务 ID（回显请求中的 taskId，未提供时由服务端生成）
        status: 状态（SUCCESS）
        timestamp: 完成时间（ISO8601 格式）
        landmarkCount: 请求中的标志点数量
        data: 计算结果（measurements / diagnosis / warnings / skipped / scaleFactor / derivedLandmarks）
    """
    taskId: str
    status: str
    timestamp: str
    landmarkCount: int
    data: Dict[str, Any]


class ErrorDetail(BaseModel):
    """
    错误详情模型（参数校验失败时由异常处理器返回）

    Attributes:
        code: 错误码
        message: 开发者调试信息
        displayMessage: 用户友好提示
    """
    code: int
    message: str
    displayMessage: str


class ErrorResponse(BaseModel):
    """
    错误响应模型

    Attributes:
        code: 错误码
        message: 错误消息
        detail: 详细信息（可选）
        missing: 缺失的必需标志点（可选）
    """
    code: int
    message: str
    detail: Optional[str] = None
    missing: Optional[List[str]] = None
