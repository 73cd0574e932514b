"""
服务层模块
负责配置加载与 HTTP API
"""

import yaml
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config.yaml"


def load_config(config_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    加载配置文件，支持环境变量覆盖

    环境变量优先级高于配置文件：
    - API_HOST: API 监听地址
    - API_PORT: API 监听端口
    - LOG_LEVEL: 日志级别
    - CEPH_INDEX_FORMULA: 诊断指标公式（simplified / weighted）

    Args:
        config_path: 配置文件路径，默认为项目根目录下的 config.yaml

    Returns:
        Dict[str, Any]: 配置字典

    Raises:
        FileNotFoundError: 配置文件不存在
        ValueError: 配置文件为空
        yaml.YAMLError: YAML 解析失败
    """
    config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        config = yaml.safe_load(f)

    if not config:
        raise ValueError("Configuration file is empty")

    for section in ('api', 'logging', 'calculation', 'timer'):
        config.setdefault(section, {})

    # 环境变量覆盖
    if 'API_HOST' in os.environ:
        config['api']['host'] = os.environ['API_HOST']
    if 'API_PORT' in os.environ:
        config['api']['port'] = int(os.environ['API_PORT'])
    if 'LOG_LEVEL' in os.environ:
        config['logging']['level'] = os.environ['LOG_LEVEL']
    if 'CEPH_INDEX_FORMULA' in os.environ:
        config['calculation']['index_formula'] = os.environ['CEPH_INDEX_FORMULA']

    return config
