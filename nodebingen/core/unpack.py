"""归档解码器

- tar.gz: 响应流直接经 gzip 解压进入流式 tar 读取，边读边解包，
  去掉归档顶层目录，不在内存或磁盘上保留完整归档
- zip: zip 需要随机访问，先落盘为临时文件，再只取出目标可执行文件，
  扁平化放入目标目录（等价于 unzip -o -j）

归档内容错误转换为 DecodeError，写盘失败转换为 FilesystemError。
读取响应体时的网络错误由 HttpClient 包装的 body 抛出 TransportError，此处不拦截。
"""

from __future__ import annotations

import logging
import shutil
import tarfile
import zipfile
import zlib
from pathlib import Path, PurePosixPath
from typing import IO

from nodebingen.core.exceptions import DecodeError, FilesystemError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def strip_components(name: str, count: int = 1) -> str:
    """去掉路径前 count 级目录，如 node-v18.2.0-linux-x64/bin/node -> bin/node"""
    parts = [p for p in PurePosixPath(name).parts if p not in ("", ".")]
    return "/".join(parts[count:])


def extract_tar_gz_stream(stream: IO[bytes], dest: Path, *, strip: int = 1) -> int:
    """流式解压 tar.gz 到 dest，返回解出的成员数

    成员名与硬链接目标都去掉前 strip 级目录，去掉后为空的成员（顶层目录本身）跳过。
    使用 tarfile 的 data 过滤器，拒绝指向 dest 之外的路径与链接。
    """
    count = 0
    try:
        with tarfile.open(fileobj=stream, mode="r|gz") as tar:
            for member in tar:
                name = strip_components(member.name, strip)
                if not name:
                    continue
                member.name = name
                if member.islnk():
                    linkname = strip_components(member.linkname, strip)
                    if not linkname:
                        continue
                    member.linkname = linkname
                tar.extract(member, path=dest, filter="data")
                count += 1
    except (tarfile.TarError, EOFError, zlib.error) as e:
        raise DecodeError(f"tar.gz 解压失败: {e}") from e
    except OSError as e:
        raise FilesystemError(f"tar.gz 解包写入失败: {dest} - {e}") from e
    logger.debug("已解出 %d 个成员 -> %s", count, dest)
    return count


def spool_to_file(stream: IO[bytes], path: Path) -> int:
    """将响应流分块写入文件，返回写入字节数"""
    written = 0
    try:
        with open(path, "wb") as f:
            while True:
                chunk = stream.read(CHUNK_SIZE)
                if not chunk:
                    break
                f.write(chunk)
                written += len(chunk)
    except OSError as e:
        raise FilesystemError(f"写入临时归档失败: {path} - {e}") from e
    return written


def extract_zip_member(archive: Path, member: str, dest_dir: Path) -> Path:
    """从 zip 中取出单个成员，去掉目录层级写入 dest_dir（已存在则覆盖）"""
    target = dest_dir / PurePosixPath(member).name
    try:
        with zipfile.ZipFile(archive) as zf:
            try:
                info = zf.getinfo(member)
            except KeyError:
                raise DecodeError(f"zip 中不存在成员 '{member}': {archive.name}") from None
            dest_dir.mkdir(parents=True, exist_ok=True)
            with zf.open(info) as src, open(target, "wb") as dst:
                shutil.copyfileobj(src, dst, CHUNK_SIZE)
    except (zipfile.BadZipFile, zlib.error) as e:
        raise DecodeError(f"zip 归档损坏: {archive.name} - {e}") from e
    except OSError as e:
        raise FilesystemError(f"zip 解压失败: {archive.name} -> {dest_dir} - {e}") from e
    logger.debug("已解出 %s -> %s", member, target)
    return target
