"""文件系统工具 — 目录重建、幂等创建、原子写入

"目录已存在" 与 "删除时不存在" 是仅有的两种被容忍的情况，
其他 OSError 一律转换为 FilesystemError 向上抛出。
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path

from nodebingen.core.exceptions import FilesystemError

logger = logging.getLogger(__name__)


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """原子写入文件：先写同目录临时文件再 rename，防止中途崩溃留下半个文件

    异常:
        OSError: 文件写入或移动失败（临时文件会被清理）
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp, str(path))
    except Exception:
        # 只捕获普通异常，不拦截 KeyboardInterrupt/SystemExit
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


def atomic_write(path: Path, content: str) -> None:
    """atomic_write_bytes 的文本版本（UTF-8）"""
    atomic_write_bytes(path, content.encode("utf-8"))


def write_file(path: Path, content: str) -> Path:
    """原子写入文本文件，失败抛 FilesystemError"""
    try:
        atomic_write(path, content)
    except OSError as e:
        raise FilesystemError(f"写入文件失败: {path} - {e}") from e
    logger.debug("已写入: %s", path)
    return path


def ensure_dir(path: Path) -> Path:
    """幂等创建目录，已存在不视为错误"""
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FilesystemError(f"创建目录失败: {path} - {e}") from e
    return path


def recreate_dir(path: Path) -> Path:
    """删除目录（不存在时忽略）后重新创建为空目录"""
    logger.debug("清理目录: %s", path)
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        raise FilesystemError(f"删除目录失败: {path} - {e}") from e
    return ensure_dir(path)


def remove_file(path: Path) -> None:
    """删除文件，不存在时忽略"""
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        raise FilesystemError(f"删除文件失败: {path} - {e}") from e
