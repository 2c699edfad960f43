"""nodebingen 命令行接口

CLI 按功能拆分为子模块，每个模块注册自己的命令到 main group。
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from typing import Any

import click

from nodebingen import __version__
from nodebingen.core.exceptions import NodeBinGenError
from nodebingen.utils.logger import setup_logging_from_env

logger = logging.getLogger(__name__)


def fail_on_error(func: Callable[..., Any]) -> Callable[..., Any]:
    """业务异常统一输出到 stderr 并以退出码 1 结束"""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except NodeBinGenError as e:
            logger.debug("命令失败 [%s]", e.code, exc_info=True)
            click.echo(f"错误: {e}", err=True)
            raise SystemExit(1) from e

    return wrapper


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """nodebingen - 生成 Node.js 各架构 npm 包与自动选择架构的元包"""
    setup_logging_from_env()


# 注册各子命令
from nodebingen.cli.cmd_build import register as _reg_build  # noqa: E402

_reg_build(main)
