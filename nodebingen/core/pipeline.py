"""架构包流水线

单个 BuildTarget 的处理步骤，严格按顺序执行:

  1. 删除并重建 staging 目录（不存在不视为错误）
  2. 计算归档下载地址
  3. 发起请求，状态码不是 200 直接失败
  4. 流式解码: tar.gz 直接解包；zip 先落临时文件再取出可执行文件
  5. 生成架构包描述
  6. 写入 staging/package.json

解包失败时不会写出 package.json。staging 目录只归本流水线实例所有，
多个目标可以并行处理，互不共享状态。
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import IO

from nodebingen.core.config import Config
from nodebingen.core.descriptor import build_arch_descriptor, write_descriptor
from nodebingen.core.exceptions import DecodeError, FilesystemError
from nodebingen.core.models import BuildTarget, PackageDescriptor, VersionSpec
from nodebingen.core.unpack import extract_tar_gz_stream, extract_zip_member, spool_to_file
from nodebingen.utils.fs import recreate_dir, remove_file
from nodebingen.utils.net import HttpClient

logger = logging.getLogger(__name__)


def archive_url(spec: VersionSpec, target: BuildTarget, base: str, product: str) -> str:
    """归档地址，如 https://nodejs.org/dist/v18.2.0/node-v18.2.0-linux-x64.tar.gz"""
    return (
        f"{base.rstrip('/')}/{spec.channel.value}/{spec.tag}/"
        f"{target.archive_filename(product, spec)}"
    )


@dataclass
class ArchResult:
    """单个目标的处理结果"""

    target: BuildTarget
    staging_dir: Path
    descriptor: PackageDescriptor
    url: str


class ArchPipeline:
    """单个架构包的 拉取 -> 解包 -> 描述 流水线"""

    def __init__(self, config: Config, spec: VersionSpec, client: HttpClient) -> None:
        self.config = config
        self.spec = spec
        self.client = client

    def staging_dir(self, target: BuildTarget) -> Path:
        return self.config.output_path / target.staging_name(self.config.product)

    def run(self, target: BuildTarget) -> ArchResult:
        product = self.config.product
        ctx = {"target": target.token, "version": self.spec.tag}
        logger.info("构建架构包: %s (%s)", target.token, self.spec.tag, extra=ctx)

        staging = recreate_dir(self.staging_dir(target))

        url = archive_url(self.spec, target, self.config.dist_base, product)
        logger.info("下载: %s", url, extra={**ctx, "url": url})
        with self.client.open_stream(url) as resp:
            try:
                if target.is_windows:
                    self._unpack_zip(resp.body, target, staging)
                else:
                    logger.info("解包到: %s", staging, extra=ctx)
                    extract_tar_gz_stream(resp.body, staging)
            except DecodeError as e:
                raise DecodeError(f"{target.token}: {url} - {e}") from e

        descriptor = build_arch_descriptor(target, self.spec, product)
        write_descriptor(descriptor, staging)
        return ArchResult(target=target, staging_dir=staging, descriptor=descriptor, url=url)

    def _unpack_zip(self, body: IO[bytes], target: BuildTarget, staging: Path) -> None:
        """zip 落盘到临时文件，只取出可执行文件放入 staging/bin/，完成后删除临时文件"""
        product = self.config.product
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=".download-", suffix=f"-{target.archive_filename(product, self.spec)}",
                dir=str(self.config.output_path),
            )
        except OSError as e:
            raise FilesystemError(f"创建临时文件失败: {self.config.output_path} - {e}") from e
        tmp = Path(tmp_name)
        try:
            os.close(fd)
            size = spool_to_file(body, tmp)
            logger.debug("已下载 %d 字节 -> %s", size, tmp)
            member = f"{target.archive_base(product, self.spec)}/{product}.exe"
            logger.info("解出 %s -> %s", member, staging / "bin")
            extract_zip_member(tmp, member, staging / "bin")
        finally:
            remove_file(tmp)
