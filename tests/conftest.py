"""测试共享 fixture — 内存 HTTP 传输 + 归档构造

FakeTransport 按 URL 返回预置的状态码与内容，并记录每次请求，
测试据此断言"是否发起了网络请求"以及请求的精确 URL。
"""

from __future__ import annotations

import io
import json
import logging
import tarfile
import time
import zipfile
from pathlib import Path

import pytest

from nodebingen.core.config import Config
from nodebingen.utils.logger import reset_logging
from nodebingen.utils.net import HttpResponse

CATALOG_URL = "https://nodejs.org/dist/index.json"


class BrokenBody(io.RawIOBase):
    """先返回 data，读完后抛 exc，模拟下载途中断开"""

    def __init__(self, data: bytes, exc: BaseException) -> None:
        super().__init__()
        self._buf = io.BytesIO(data)
        self._exc = exc

    def readable(self) -> bool:
        return True

    def read(self, size: int = -1) -> bytes:
        chunk = self._buf.read(size)
        if chunk:
            return chunk
        raise self._exc


class FakeTransport:
    """内存 HTTP 传输：未注册的 URL 返回 404"""

    def __init__(self) -> None:
        self.routes: dict[str, tuple[int, bytes, dict[str, str]]] = {}
        self.broken: dict[str, tuple[bytes, BaseException]] = {}
        self.requests: list[tuple[str, dict[str, str]]] = []

    def add(
        self, url: str, body: bytes = b"", *, status: int = 200,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.broken.pop(url, None)
        self.routes[url] = (status, body, headers or {})

    def add_broken(self, url: str, data: bytes, exc: BaseException) -> None:
        """200 响应，body 读出 data 后抛 exc"""
        self.broken[url] = (data, exc)

    def add_json(self, url: str, data: object, **kwargs: object) -> None:
        self.add(url, json.dumps(data).encode("utf-8"), **kwargs)  # type: ignore[arg-type]

    @property
    def urls(self) -> list[str]:
        return [u for u, _ in self.requests]

    def open(
        self,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse:
        self.requests.append((url, dict(headers or {})))
        if url in self.broken:
            data, exc = self.broken[url]
            return HttpResponse(url=url, status=200, body=BrokenBody(data, exc))  # type: ignore[arg-type]
        status, body, resp_headers = self.routes.get(url, (404, b"not found", {}))
        return HttpResponse(url=url, status=status, body=io.BytesIO(body), headers=resp_headers)


def make_tarball(top: str, files: dict[str, bytes] | None = None) -> bytes:
    """构造带顶层目录的 tar.gz，files 为 顶层目录下的相对路径 -> 内容"""
    files = files if files is not None else {
        "bin/node": b"#!/bin/sh\necho node\n",
        "LICENSE": b"MIT\n",
        "README.md": b"# node\n",
        "include/node/node.h": b"/* header */\n",
    }
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        top_info = tarfile.TarInfo(top)
        top_info.type = tarfile.DIRTYPE
        top_info.mode = 0o755
        top_info.mtime = int(time.time())
        tar.addfile(top_info)
        for rel, data in files.items():
            info = tarfile.TarInfo(f"{top}/{rel}")
            info.size = len(data)
            info.mode = 0o755 if rel.startswith("bin/") else 0o644
            info.mtime = int(time.time())
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def make_zip(top: str, files: dict[str, bytes] | None = None) -> bytes:
    files = files if files is not None else {
        "node.exe": b"MZ fake node",
        "npm.cmd": b"@echo off\n",
        "LICENSE": b"MIT\n",
    }
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
        for rel, data in files.items():
            zf.writestr(f"{top}/{rel}", data)
    return buf.getvalue()


@pytest.fixture(autouse=True)
def _reset_logging():
    """CLI 测试会把 handler 绑到 CliRunner 的临时流上，每个用例后清理并恢复根日志级别"""
    root = logging.getLogger()
    level = root.level
    yield
    reset_logging()
    root.setLevel(level)


@pytest.fixture()
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture()
def out_dir(tmp_path: Path) -> Path:
    return tmp_path / "out"


@pytest.fixture()
def config(out_dir: Path) -> Config:
    return Config(output_dir=str(out_dir), cache_dir="", max_workers=2)


@pytest.fixture()
def node_release(transport: FakeTransport) -> FakeTransport:
    """v18.2.0 发布: 清单列出 linux-x64 与 win-x64-zip，两个归档均可下载"""
    transport.add_json(CATALOG_URL, [
        {"version": "v18.3.0", "files": ["linux-x64"]},
        {"version": "v18.2.0", "files": ["linux-x64", "win-x64-zip"]},
    ])
    transport.add(
        "https://nodejs.org/dist/v18.2.0/node-v18.2.0-linux-x64.tar.gz",
        make_tarball("node-v18.2.0-linux-x64"),
    )
    transport.add(
        "https://nodejs.org/dist/v18.2.0/node-v18.2.0-win-x64.zip",
        make_zip("node-v18.2.0-win-x64"),
    )
    return transport
