"""CLI — 生成命令"""

from __future__ import annotations

import click

from nodebingen.cli import fail_on_error
from nodebingen.core.config import DEFAULT_CONFIG_FILE, BuildOptions, Config
from nodebingen.core.installer import StubParams, render_installer_stub
from nodebingen.core.models import VersionSpec


def register(group: click.Group) -> None:
    group.add_command(build)
    group.add_command(list_targets)
    group.add_command(stub)


def _version_spec(version: str, prerelease: str | None) -> VersionSpec:
    try:
        return VersionSpec.parse(version, prerelease)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="VERSION") from e


def _load_config(path: str, **overrides: object) -> Config:
    return Config.from_file(path).override(**overrides)


@click.command()
@click.argument("version")
@click.argument("prerelease", required=False)
@click.option("--skip-binaries", is_flag=True, help="跳过二进制包，只生成元包")
@click.option("--only", default=None, help="只生成指定目标，如 linux-x64")
@click.option("--package-name", default=None, help="元包名称（默认 <product>-bin）")
@click.option("--output-dir", "-o", default=None, help="输出目录（默认当前目录）")
@click.option("--jobs", "-j", type=click.IntRange(min=1), default=None, help="并行下载数")
@click.option("--config", "-c", "config_path", default=DEFAULT_CONFIG_FILE, help="配置文件路径")
@click.option("--no-cache", is_flag=True, help="不使用本地清单缓存")
@fail_on_error
def build(
    version: str, prerelease: str | None, skip_binaries: bool, only: str | None,
    package_name: str | None, output_dir: str | None, jobs: int | None,
    config_path: str, no_cache: bool,
) -> None:
    """生成 VERSION 的各架构包和元包，PRERELEASE 为可选的预发布标签"""
    from nodebingen.core.generator import Generator

    cfg = _load_config(
        config_path, output_dir=output_dir, max_workers=jobs,
        cache_dir="" if no_cache else None,
    )
    options = BuildOptions(
        version=_version_spec(version, prerelease),
        skip_binaries=skip_binaries, only=only, package_name=package_name,
    )
    result = Generator(cfg).run(options)

    for r in result.arch_results:
        click.echo(f"  {r.descriptor.name:24s} {r.descriptor.version:20s} {r.staging_dir}")
    pkg = result.metapackage
    click.echo(f"  {pkg.name:24s} {pkg.version:20s} {result.package_dir}")


@click.command(name="targets")
@click.argument("version")
@click.option("--only", default=None, help="只列出指定目标")
@click.option("--config", "-c", "config_path", default=DEFAULT_CONFIG_FILE, help="配置文件路径")
@fail_on_error
def list_targets(version: str, only: str | None, config_path: str) -> None:
    """解析发布清单，列出 VERSION 的构建目标（不下载归档）"""
    from nodebingen.core.generator import Generator

    cfg = _load_config(config_path)
    options = BuildOptions(version=_version_spec(version, None), only=only)
    targets = Generator(cfg).resolve_targets(options)
    if not targets:
        click.echo("没有可用的构建目标。")
        return
    for t in targets:
        click.echo(f"  {t.token:20s} [{t.archive_format}] -> {t.staging_name(cfg.product)}")


@click.command()
@click.argument("version")
@click.argument("prerelease", required=False)
@click.option("--config", "-c", "config_path", default=DEFAULT_CONFIG_FILE, help="配置文件路径")
@fail_on_error
def stub(version: str, prerelease: str | None, config_path: str) -> None:
    """输出 VERSION 对应的安装脚本文本"""
    cfg = _load_config(config_path)
    spec = _version_spec(version, prerelease)
    click.echo(render_installer_stub(StubParams(
        product=cfg.product, version=spec.package_version,
    )), nl=False)
