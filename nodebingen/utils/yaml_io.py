"""YAML 配置读取

配置文件必须是顶层映射；空文件与不存在的文件都视为 "没有配置"。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

MAX_YAML_SIZE = 1024 * 1024


def read_mapping(path: str | Path) -> dict[str, Any]:
    """读取 YAML 映射，文件不存在或为空时返回 {}

    Raises:
        OSError: 读取失败
        ValueError: 文件超过 MAX_YAML_SIZE，或顶层不是映射
        yaml.YAMLError: 语法错误
    """
    p = Path(path)
    try:
        raw = p.read_bytes()
    except FileNotFoundError:
        logger.debug("配置文件不存在，使用默认值: %s", p)
        return {}
    if len(raw) > MAX_YAML_SIZE:
        raise ValueError(f"文件过大 ({len(raw)} 字节，上限 {MAX_YAML_SIZE})")

    try:
        data = yaml.safe_load(raw.decode("utf-8"))
    except yaml.YAMLError:
        logger.error("YAML 解析失败: %s", p)
        raise
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"顶层应为映射，实际为 {type(data).__name__}")
    return data
