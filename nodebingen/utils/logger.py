"""nodebingen 日志配置

提供统一的日志配置，支持普通文本和结构化 JSON 两种输出格式。
日志一律输出到 stderr，stdout 留给命令本身的输出（如 stub 脚本文本）。
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone

ENV_LOG_LEVEL = "NODEBINGEN_LOG_LEVEL"
ENV_LOG_JSON = "NODEBINGEN_LOG_JSON"

# 通过 logger.info(..., extra={...}) 传入、需要写进 JSON 的上下文字段
CONTEXT_FIELDS = ("target", "url", "version")


class JSONFormatter(logging.Formatter):
    """结构化 JSON 日志格式器，便于发布流水线消费

    输出格式:
        {
            "timestamp": "2024-01-01T12:00:00+00:00",
            "level": "INFO",
            "logger": "nodebingen.core.pipeline",
            "message": "log message",
            "module": "pipeline",
            "function": "run",
            "line": 42,
            "target": "linux-x64"  (仅在 extra 中提供时)
            "exception": "traceback..." (仅在有异常时)
        }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            # 使用 record.created，记录事件发生时间而非格式化时间
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        for key in CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_entry[key] = value
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, ensure_ascii=False)


TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
TEXT_DATEFMT = "%H:%M:%S"


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """重新配置根日志器：单个 stderr handler，级别无法识别时回退 INFO"""
    reset_logging()

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        JSONFormatter() if json_output else logging.Formatter(TEXT_FORMAT, TEXT_DATEFMT)
    )
    root.addHandler(handler)


def setup_logging_from_env() -> None:
    """按环境变量 NODEBINGEN_LOG_LEVEL / NODEBINGEN_LOG_JSON 配置日志"""
    setup_logging(
        level=os.getenv(ENV_LOG_LEVEL, "INFO"),
        json_output=os.getenv(ENV_LOG_JSON, "") == "1",
    )


def reset_logging() -> None:
    """清理根日志器上所有已注册的 handlers，测试中重新配置前调用"""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
