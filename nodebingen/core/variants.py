"""构建目标枚举

将清单条目的 files token（如 'linux-x64'、'osx-x64-tar'、'win-x64-zip'）
过滤并规范化为 BuildTarget 列表。

规则:
  - headers / src 开头、pkg 结尾的 token 不是可用的二进制归档，排除
  - Windows 安装包格式 (exe / msi / 7z) 排除
  - 清单未列出 files 时，使用 DEFAULT_FILES 兜底
  - 指定 only 时只生成这一个目标，忽略清单内容
  - 结果保持清单原有顺序
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from nodebingen.core.exceptions import ValidationError
from nodebingen.core.models import ARCHIVE_TAR_GZ, BuildTarget, ManifestEntry

if TYPE_CHECKING:
    from nodebingen.core.config import BuildOptions
    from nodebingen.core.manifest import ManifestResolver

logger = logging.getLogger(__name__)

# 部分渠道的清单条目没有 files 字段，按常见平台组合兜底
DEFAULT_FILES: tuple[str, ...] = (
    "darwin-x64",
    "darwin-arm64",
    "linux-arm64",
    "linux-armv7l",
    "linux-ppc64",
    "linux-ppc64le",
    "linux-s390x",
    "linux-x64",
    "linux-x86",
    "sunos-x64",
    "win-arm64",
    "win-x64",
    "win-x86",
)

_EXCLUDED_PREFIXES = ("headers", "src")
_EXCLUDED_SUFFIXES = ("pkg",)
_INSTALLER_FORMATS = frozenset(("exe", "msi", "7z"))

_OS_ALIASES = {"osx": "darwin"}


def parse_token(token: str) -> BuildTarget:
    """拆分 'os-cpu[-format]'，os 做别名规范化，format 缺省为 tar.gz"""
    bits = token.split("-")
    if len(bits) < 2 or not bits[0] or not bits[1]:
        raise ValidationError(
            f"无法解析构建目标: '{token}'，应为 <os>-<cpu>[-<format>]", details=[token],
        )
    os_name = _OS_ALIASES.get(bits[0], bits[0])
    fmt = bits[2] if len(bits) > 2 and bits[2] else ARCHIVE_TAR_GZ
    return BuildTarget(os=os_name, cpu=bits[1], archive_format=fmt)


def is_binary_token(token: str) -> bool:
    """判断 token 是否对应可直接使用的二进制归档"""
    if token.startswith(_EXCLUDED_PREFIXES) or token.endswith(_EXCLUDED_SUFFIXES):
        return False
    bits = token.split("-")
    return not (len(bits) > 2 and bits[2] in _INSTALLER_FORMATS)


def enumerate_targets(entry: ManifestEntry, only: str | None = None) -> list[BuildTarget]:
    """清单条目 -> 构建目标列表"""
    if only:
        logger.info("仅生成指定目标: %s", only)
        return [parse_token(only)]

    files = entry.files
    if not files:
        logger.info("清单条目 %s 没有 files，使用默认目标集", entry.version)
        files = DEFAULT_FILES

    targets = [parse_token(f) for f in files if is_binary_token(f)]
    logger.info(
        "版本 %s: %d 个构建目标 (%s)",
        entry.version, len(targets), ", ".join(t.token for t in targets),
    )
    return targets


def enumerate_for(options: BuildOptions, resolver: ManifestResolver) -> list[BuildTarget]:
    """解析清单并枚举构建目标；跳过二进制模式下不发起任何请求"""
    if options.skip_binaries:
        logger.info("跳过二进制包，不拉取发布清单")
        return []
    entry = resolver.resolve(options.version)
    return enumerate_targets(entry, only=options.only)
