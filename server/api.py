# -*- coding: utf-8 -*-
"""
API 路由定义
负责处理 HTTP 请求，校验标志点并同步返回测量结果（200/400）
"""

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from server import load_config
from server.schemas import (
    CalculationRequest,
    CalculationResponse,
    ErrorDetail,
    ErrorResponse,
)
from pipelines.ceph.ceph_pipeline import CephPipeline
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import logging
import uuid

logger = logging.getLogger(__name__)

SERVICE_NAME = "Cephalometric Measurement Service"
SERVICE_VERSION = "1.0.0"

# 批量计算接口要求的最少标志点
REQUIRED_LANDMARKS = [
    "Nasion",
    "Sella",
    "Porion",
    "Orbitale",
    "A-Point",
    "B-Point",
    "Menton",
    "Corpus Lt.",
]


def create_app(config: Optional[Dict[str, Any]] = None) -> FastAPI:
    """
    创建 FastAPI 应用实例

    Args:
        config: 配置字典，为 None 时从 config.yaml 加载

    Returns:
        FastAPI: 配置完成的 FastAPI 应用对象
    """
    app = FastAPI(
        title=SERVICE_NAME,
        description="侧位片几何测量服务",
        version=SERVICE_VERSION
    )

    # 配置 CORS 中间件
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.config = config if config is not None else load_config()
    # Pipeline 只保存配置，可在并发请求间共享
    app.state.pipeline = CephPipeline.from_config(app.state.config)
    logger.info("FastAPI app created successfully")

    return app


# 创建应用实例
app = create_app()


# ==================== 自定义异常处理器（统一错误响应格式）====================

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    处理 Pydantic 参数验证错误，统一返回接口定义的错误格式

    将 Pydantic 的 422 错误格式转换为：
    {
        "code": 10001,
        "message": "Invalid parameter: ...",
        "displayMessage": "请求参数错误"
    }
    """
    error_messages = []
    for error in exc.errors():
        loc = ".".join(str(x) for x in error.get("loc", []))
        msg = error.get("msg", "Unknown error")
        error_messages.append(f"{loc}: {msg}")

    detail_message = "; ".join(error_messages)
    logger.warning(f"Request validation failed: {detail_message}")

    return JSONResponse(
        status_code=400,  # 使用 400 而非 422，与接口定义一致
        content=ErrorDetail(
            code=10001,
            message=f"Invalid parameter: {detail_message}",
            displayMessage="请求参数错误",
        ).model_dump()
    )


@app.get("/")
async def root():
    """
    根路径

    Returns:
        dict: 服务基本信息
    """
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """健康检查接口"""
    return {
        "status": "healthy",
        "service": "api"
    }


@app.get("/api/v1/health")
async def api_health_check():
    """API 健康检查接口"""
    return {
        "status": "healthy",
        "service": "api"
    }


# ==================== 核心 API 接口 ====================

@app.post("/api/v1/calculation/batch", status_code=200)
def calculate_batch(request: CalculationRequest) -> CalculationResponse:
    """
    侧位片批量测量接口

    功能：
        接收一组标志点坐标，同步计算全部角度、距离、诊断指标和范围警告。

    Args:
        request: 包含 landmarks（名称 -> {x, y}）的请求体

    Returns:
        CalculationResponse: 包含 measurements / diagnosis / warnings 等的响应

    Raises:
        HTTPException(400): 缺少必需标志点、标志点坐标非法
    """
    task_id = request.taskId or str(uuid.uuid4())
    logger.info(f"[Ceph Calculate] Received request: taskId={task_id}, landmarks={len(request.landmarks)}")

    # 1. 检查必需标志点
    missing = [name for name in REQUIRED_LANDMARKS if name not in request.landmarks]
    if missing:
        logger.warning(f"[Ceph Calculate] Missing required landmarks: taskId={task_id}, missing={missing}")
        raise HTTPException(
            status_code=400,
            detail=ErrorResponse(
                code=10001,
                message="Missing required landmarks",
                detail=f"Required landmarks not provided: {', '.join(missing)}",
                missing=missing,
            ).model_dump()
        )

    # 2. 执行计算
    landmarks = {name: point.model_dump() for name, point in request.landmarks.items()}
    pipeline: CephPipeline = app.state.pipeline
    try:
        analysis = pipeline.run(landmarks, index_formula=request.indexFormula)
    except (TypeError, ValueError) as e:
        logger.error(f"[Ceph Calculate] Invalid landmark data: taskId={task_id}, error={e}")
        raise HTTPException(
            status_code=400,
            detail=ErrorResponse(
                code=10001,
                message="Invalid landmark data",
                detail=str(e),
            ).model_dump()
        )

    logger.info(
        f"[Ceph Calculate] Completed: taskId={task_id}, measurements={len(analysis.measurements)}, "
        f"warnings={len(analysis.warnings)}, skipped={len(analysis.skipped)}"
    )

    # 3. 返回 200 响应
    return CalculationResponse(
        taskId=task_id,
        status="SUCCESS",
        timestamp=datetime.now(timezone.utc).isoformat(),
        landmarkCount=len(request.landmarks),
        data=analysis.to_dict(),
    )
