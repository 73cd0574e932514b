# -*- coding: utf-8 -*-
"""
API 服务启动入口
负责加载配置、初始化日志并启动 Uvicorn
"""

import uvicorn
import logging
from server import load_config

logger = logging.getLogger(__name__)


def main():
    """
    启动 API 服务

    工作流程：
    1. 加载配置文件
    2. 按配置初始化日志级别
    3. 启动 Uvicorn 服务器
    """
    config = load_config()

    log_level = str(config['logging'].get('level', 'INFO')).upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    host = config['api'].get('host', '0.0.0.0')
    port = int(config['api'].get('port', 18000))

    logger.info(f"Starting API service on {host}:{port}")
    uvicorn.run(
        "server.api:app",
        host=host,
        port=port,
        log_level=log_level.lower(),
        reload=False
    )


if __name__ == "__main__":
    main()
