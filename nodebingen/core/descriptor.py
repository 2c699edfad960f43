"""包描述生成

- 架构包: 每个 BuildTarget 一份 package.json，os / cpu 采用 npm 的取值
- 元包: 依赖安装辅助包，preinstall 钩子调用安装脚本，bin 指向统一位置
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from nodebingen.core.config import Config
from nodebingen.core.models import BuildTarget, PackageDescriptor, VersionSpec
from nodebingen.utils.fs import write_file

logger = logging.getLogger(__name__)

DESCRIPTOR_FILE = "package.json"
INSTALLER_SCRIPT = "installArchSpecificPackage"

# 架构包中除可执行文件外需要发布的内容
_ARCH_EXTRA_FILES = ("share", "include", "*.md", "LICENSE")


def npm_platform(target: BuildTarget) -> str:
    return "win32" if target.is_windows else target.os


def npm_cpu(target: BuildTarget) -> str:
    # ppc64le 保持原样，不并入 ppc64
    if target.is_windows and target.cpu == "ia32":
        return "x86"
    return target.cpu


def build_arch_descriptor(
    target: BuildTarget, spec: VersionSpec, product: str,
) -> PackageDescriptor:
    return PackageDescriptor(
        name=target.staging_name(product),
        version=spec.package_version,
        description=product,
        bin={product: target.executable(product)},
        files=(target.executable(product), *_ARCH_EXTRA_FILES),
        os=npm_platform(target),
        cpu=npm_cpu(target),
    )


def build_metapackage(
    spec: VersionSpec, config: Config, package_name: str | None = None,
) -> PackageDescriptor:
    return PackageDescriptor(
        name=package_name or config.default_package_name,
        version=spec.package_version,
        description=config.product,
        main="index.js",
        keywords=("runtime",),
        scripts={"preinstall": f"node {INSTALLER_SCRIPT}"},
        bin={config.product: f"bin/{config.product}"},
        dependencies={config.setup_package: config.setup_package_range},
        license="ISC",
        author="",
        engines={"npm": ">=5.0.0"},
    )


def serialize(pkg: PackageDescriptor) -> str:
    return json.dumps(pkg.to_dict(), indent=2, ensure_ascii=False) + "\n"


def write_descriptor(pkg: PackageDescriptor, directory: Path) -> Path:
    path = write_file(directory / DESCRIPTOR_FILE, serialize(pkg))
    logger.info("已写入包描述: %s@%s -> %s", pkg.name, pkg.version, path)
    return path


def read_descriptor(directory: Path) -> PackageDescriptor:
    data = json.loads((directory / DESCRIPTOR_FILE).read_text(encoding="utf-8"))
    return PackageDescriptor.from_dict(data)
