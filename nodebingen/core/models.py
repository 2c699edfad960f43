"""核心数据模型

所有核心数据类集中定义：版本、清单条目、构建目标与包描述。
一经构造即不可变（frozen dataclass），在组件之间按值传递。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from nodebingen.core.exceptions import ManifestError

# =========================================================================
# 版本
# =========================================================================


class Channel(str, Enum):
    """发布渠道，决定清单与归档的 URL 路径前缀"""

    RELEASE = "dist"
    RC = "download/rc"
    TEST = "download/test"


def normalize_tag(version: str) -> str:
    """版本号统一为 'v' 开头（幂等）"""
    version = version.strip()
    if not version:
        raise ValueError("版本号不能为空")
    return version if version.startswith("v") else f"v{version}"


@dataclass(frozen=True)
class VersionSpec:
    """运行时版本，tag 恒以 'v' 开头"""

    tag: str
    prerelease: str | None = None

    @classmethod
    def parse(cls, version: str, prerelease: str | None = None) -> VersionSpec:
        return cls(tag=normalize_tag(version), prerelease=prerelease or None)

    @property
    def number(self) -> str:
        """去掉前导 'v' 的版本号，如 18.2.0"""
        return self.tag[1:]

    @property
    def package_version(self) -> str:
        """包描述中使用的版本号：数字版本 + 可选的 '-<prerelease>' 后缀"""
        if self.prerelease is not None:
            return f"{self.number}-{self.prerelease}"
        return self.number

    @property
    def channel(self) -> Channel:
        # rc 优先于 test，与发布站点的目录约定一致
        if "rc" in self.tag:
            return Channel.RC
        if "test" in self.tag:
            return Channel.TEST
        return Channel.RELEASE


# =========================================================================
# 发布清单
# =========================================================================


@dataclass(frozen=True)
class ManifestEntry:
    """发布清单中的单个版本条目"""

    version: str
    files: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Any) -> ManifestEntry:
        """在解析边界校验结构：version 必须是字符串，files 缺失视为空列表"""
        if not isinstance(data, dict):
            raise ManifestError(f"清单条目不是对象: {data!r}")
        version = data.get("version")
        if not isinstance(version, str) or not version:
            raise ManifestError(f"清单条目缺少 version 字段: {data!r}")
        files = data.get("files") or []
        if not isinstance(files, list) or not all(isinstance(f, str) for f in files):
            raise ManifestError(f"清单条目 {version} 的 files 不是字符串列表")
        return cls(version=version, files=tuple(files))


# =========================================================================
# 构建目标
# =========================================================================

ARCHIVE_TAR_GZ = "tar.gz"
ARCHIVE_ZIP = "zip"


@dataclass(frozen=True)
class BuildTarget:
    """一个平台 + 架构 + 归档格式组合

    archive_format 保留清单 token 的第三段原样（如 'tar'、'zip'），
    缺省为 'tar.gz'。实际下载的归档扩展名只由平台决定：
    Windows 为 .zip，其他为 .tar.gz。
    """

    os: str
    cpu: str
    archive_format: str = ARCHIVE_TAR_GZ

    @property
    def token(self) -> str:
        return f"{self.os}-{self.cpu}"

    @property
    def is_windows(self) -> bool:
        return self.os == "win"

    @property
    def download_format(self) -> str:
        return ARCHIVE_ZIP if self.is_windows else ARCHIVE_TAR_GZ

    def executable(self, product: str) -> str:
        """归档内（以及包内）可执行文件的相对路径，如 bin/node.exe"""
        return f"bin/{product}.exe" if self.is_windows else f"bin/{product}"

    def staging_name(self, product: str) -> str:
        return f"{product}-{self.os}-{self.cpu}"

    def archive_base(self, product: str, spec: VersionSpec) -> str:
        """归档顶层目录名，如 node-v18.2.0-linux-x64"""
        return f"{product}-{spec.tag}-{self.os}-{self.cpu}"

    def archive_filename(self, product: str, spec: VersionSpec) -> str:
        return f"{self.archive_base(product, spec)}.{self.download_format}"


# =========================================================================
# 包描述
# =========================================================================

# package.json 的键顺序
_DESCRIPTOR_KEYS = (
    "name", "version", "description", "main", "keywords", "scripts",
    "bin", "files", "os", "cpu", "dependencies", "license", "author", "engines",
)


@dataclass(frozen=True)
class PackageDescriptor:
    """npm 包描述（package.json）

    架构包填写 files / os / cpu；元包填写 scripts / dependencies 等，
    序列化时省略为空的元包专用字段。
    """

    name: str
    version: str
    description: str = ""
    bin: dict[str, str] = field(default_factory=dict)
    files: tuple[str, ...] = ()
    os: str = ""
    cpu: str = ""
    main: str = ""
    keywords: tuple[str, ...] = ()
    scripts: dict[str, str] = field(default_factory=dict)
    dependencies: dict[str, str] = field(default_factory=dict)
    license: str = ""
    author: str | None = None
    engines: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        values: dict[str, Any] = {
            "name": self.name,
            "version": self.version,
            "description": self.description,
            "main": self.main,
            "keywords": list(self.keywords),
            "scripts": dict(self.scripts),
            "bin": dict(self.bin),
            "files": list(self.files),
            "os": self.os,
            "cpu": self.cpu,
            "dependencies": dict(self.dependencies),
            "license": self.license,
            "author": self.author,
            "engines": dict(self.engines),
        }
        required = {"name", "version", "description"}
        # author 允许为空字符串（npm 约定），None 表示不输出
        return {
            k: values[k] for k in _DESCRIPTOR_KEYS
            if k in required or (k == "author" and values[k] is not None) or values[k]
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PackageDescriptor:
        return cls(
            name=data["name"],
            version=data["version"],
            description=data.get("description", ""),
            bin=dict(data.get("bin") or {}),
            files=tuple(data.get("files") or ()),
            os=data.get("os", ""),
            cpu=data.get("cpu", ""),
            main=data.get("main", ""),
            keywords=tuple(data.get("keywords") or ()),
            scripts=dict(data.get("scripts") or {}),
            dependencies=dict(data.get("dependencies") or {}),
            license=data.get("license", ""),
            author=data.get("author"),
            engines=dict(data.get("engines") or {}),
        )
