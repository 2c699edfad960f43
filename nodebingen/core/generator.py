"""生成流程编排

  CLI 选项 -> 清单解析 -> 目标枚举 -> N 个架构包流水线（有界线程池并行）
           -> 汇合 -> 元包描述 + 安装脚本 + README -> 文件系统

任一目标失败即整体失败：已提交但尚未开始的目标被取消，
正在执行的目标不做清理（下次运行时 staging 目录会被重建）。

用法:
    from nodebingen.core.generator import Generator

    gen = Generator(config)
    result = gen.run(BuildOptions(version=VersionSpec.parse("18.2.0")))
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from string import Template

from nodebingen.core.config import BuildOptions, Config
from nodebingen.core.descriptor import INSTALLER_SCRIPT, build_metapackage, write_descriptor
from nodebingen.core.exceptions import FilesystemError
from nodebingen.core.installer import StubParams, render_installer_stub
from nodebingen.core.manifest import ManifestResolver
from nodebingen.core.models import BuildTarget, PackageDescriptor
from nodebingen.core.pipeline import ArchPipeline, ArchResult
from nodebingen.core.variants import enumerate_for
from nodebingen.utils.fs import ensure_dir, write_file
from nodebingen.utils.net import HttpClient, Transport

logger = logging.getLogger(__name__)

README_FILE = "README.md"


@dataclass
class GenerateResult:
    """一次生成的产物汇总"""

    metapackage: PackageDescriptor
    package_dir: Path
    arch_results: list[ArchResult] = field(default_factory=list)

    @property
    def arch_packages(self) -> list[PackageDescriptor]:
        return [r.descriptor for r in self.arch_results]


def load_readme_template(config: Config) -> Template:
    """读取 README 模板：配置了路径则用配置文件，否则用包内自带模板"""
    if config.readme_template:
        path = Path(config.readme_template)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise FilesystemError(f"读取 README 模板失败: {path} - {e}") from e
    else:
        text = (
            resources.files("nodebingen") / "templates" / "README.md"
        ).read_text(encoding="utf-8")
    return Template(text)


class Generator:
    """发布包生成器"""

    def __init__(self, config: Config, transport: Transport | None = None) -> None:
        self.config = config
        self.client = HttpClient(
            transport, cache_dir=config.cache_path, timeout=config.timeout,
        )

    def resolve_targets(self, options: BuildOptions) -> list[BuildTarget]:
        resolver = ManifestResolver(self.client, self.config.catalog_base)
        return enumerate_for(options, resolver)

    def run(self, options: BuildOptions) -> GenerateResult:
        spec = options.version
        logger.info(
            "开始生成: %s%s (输出目录 %s)",
            spec.tag, f" [{spec.prerelease}]" if spec.prerelease else "",
            self.config.output_path,
        )
        targets = self.resolve_targets(options)
        arch_results = self.build_arch_packages(options, targets)
        pkg, package_dir = self.build_metapackage(options)
        logger.info(
            "生成完成: %s@%s, %d 个架构包",
            pkg.name, pkg.version, len(arch_results),
        )
        return GenerateResult(metapackage=pkg, package_dir=package_dir, arch_results=arch_results)

    # ------------------------------------------------------------------
    # 架构包（扇出 / 汇合）
    # ------------------------------------------------------------------

    def build_arch_packages(
        self, options: BuildOptions, targets: list[BuildTarget],
    ) -> list[ArchResult]:
        """并行处理全部目标，返回结果与输入顺序一致；首个失败即抛出"""
        if not targets:
            return []
        pipeline = ArchPipeline(self.config, options.version, self.client)

        if self.config.max_workers == 1 or len(targets) == 1:
            return [pipeline.run(t) for t in targets]

        workers = min(self.config.max_workers, len(targets))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures: list[Future[ArchResult]] = [
                executor.submit(pipeline.run, t) for t in targets
            ]
            results: list[ArchResult] = []
            try:
                for target, future in zip(targets, futures):
                    result = future.result()
                    logger.info("完成: %s -> %s", target.token, result.staging_dir)
                    results.append(result)
            except BaseException:
                for f in futures:
                    f.cancel()
                raise
            return results

    # ------------------------------------------------------------------
    # 元包
    # ------------------------------------------------------------------

    def build_metapackage(self, options: BuildOptions) -> tuple[PackageDescriptor, Path]:
        """生成元包目录：package.json + 安装脚本 + README"""
        pkg = build_metapackage(options.version, self.config, options.package_name)
        package_dir = ensure_dir(self.config.output_path / pkg.name)

        stub = render_installer_stub(StubParams(
            product=self.config.product,
            version=pkg.version,
        ))
        readme = load_readme_template(self.config).safe_substitute(
            package_name=pkg.name, product=self.config.product,
        )

        write_descriptor(pkg, package_dir)
        write_file(package_dir / f"{INSTALLER_SCRIPT}.js", stub)
        write_file(package_dir / README_FILE, readme)
        return pkg, package_dir
