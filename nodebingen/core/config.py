"""集中配置管理

Config 汇总站点地址、并行度、缓存与输出目录等设置，支持从 YAML 文件加载
+ 命令行覆盖。BuildOptions 是 CLI 解析后的一次性选项。

两者都是不可变值：在入口处构造一次，显式传给每个组件，不使用模块级单例。
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from nodebingen.core.exceptions import ConfigError
from nodebingen.core.models import VersionSpec
from nodebingen.utils.yaml_io import read_mapping

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "nodebingen.yml"
DEFAULT_CACHE_DIR = "~/.cache/nodebingen"


@dataclass(frozen=True)
class Config:
    """生成器配置"""

    # 产品与站点
    product: str = "node"
    catalog_base: str = "https://nodejs.org"
    dist_base: str = "https://nodejs.org"

    # 元包
    setup_package: str = "node-bin-setup"
    setup_package_range: str = "^1.0.0"
    readme_template: str = ""  # 为空时使用包内自带模板

    # 目录
    output_dir: str = "."
    cache_dir: str = DEFAULT_CACHE_DIR  # 为空表示不使用缓存

    # 执行
    max_workers: int = 4
    timeout: float = 120.0

    def __post_init__(self) -> None:
        if not self.product:
            raise ConfigError("product 不能为空")
        if (
            isinstance(self.max_workers, bool)
            or not isinstance(self.max_workers, int)
            or self.max_workers < 1
        ):
            raise ConfigError(f"max_workers 必须是正整数: {self.max_workers!r}")
        if (
            isinstance(self.timeout, bool)
            or not isinstance(self.timeout, (int, float))
            or self.timeout <= 0
        ):
            raise ConfigError(f"timeout 必须是正数: {self.timeout!r}")

    @classmethod
    def from_file(cls, path: str | Path = DEFAULT_CONFIG_FILE) -> Config:
        """从 YAML 文件加载配置，文件不存在则返回默认值"""
        try:
            data = read_mapping(path)
        except (OSError, ValueError) as e:
            raise ConfigError(f"读取配置失败: {path} - {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"配置文件格式错误: {path} - {e}") from e
        if not data:
            return cls()

        known = {f.name for f in dataclasses.fields(cls)}
        matched = {k: v for k, v in data.items() if k in known}
        unknown = sorted(k for k in data if k not in known)
        for k, v in matched.items():
            if isinstance(v, (dict, list)):
                raise ConfigError(f"配置项 {k} 类型错误: {v!r}")
        if unknown:
            logger.warning("忽略未识别的配置项: %s (%s)", ", ".join(unknown), path)
        try:
            cfg = cls(**matched)
        except TypeError as e:
            raise ConfigError(f"配置文件内容无效: {path} - {e}") from e
        logger.info("配置已加载: %s", path)
        return cfg

    def override(self, **changes: Any) -> Config:
        """返回覆盖了部分字段的新配置，值为 None 的字段保持不变"""
        return dataclasses.replace(
            self, **{k: v for k, v in changes.items() if v is not None},
        )

    @property
    def output_path(self) -> Path:
        return Path(self.output_dir)

    @property
    def cache_path(self) -> Path | None:
        return Path(self.cache_dir).expanduser() if self.cache_dir else None

    @property
    def default_package_name(self) -> str:
        return f"{self.product}-bin"


@dataclass(frozen=True)
class BuildOptions:
    """命令行选项（已解析）"""

    version: VersionSpec
    skip_binaries: bool = False
    only: str | None = None
    package_name: str | None = None
