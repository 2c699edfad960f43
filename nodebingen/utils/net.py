"""网络工具 — URL 校验、HTTP 传输抽象与清单条件请求缓存

通过 Transport 协议抽象底层 HTTP 请求，默认实现基于 urllib。
测试时注入内存实现即可，无需 patch urllib。
"""

from __future__ import annotations

import hashlib
import http.client
import io
import json
import logging
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any, Protocol
from urllib.parse import urlparse

from nodebingen.core.exceptions import FilesystemError, TransportError, ValidationError
from nodebingen.utils.fs import atomic_write, atomic_write_bytes, remove_file

logger = logging.getLogger(__name__)

_ALLOWED_SCHEMES = frozenset(("http", "https"))

USER_AGENT = "nodebingen"


def validate_url_scheme(url: str, *, context: str = "") -> None:
    """校验 URL 仅使用 http/https，防止 file:// 等非预期协议访问

    Raises:
        ValidationError: URL scheme 不在白名单内
    """
    parsed = urlparse(url)
    if parsed.scheme not in _ALLOWED_SCHEMES:
        label = f" ({context})" if context else ""
        raise ValidationError(
            f"不允许的 URL 协议 '{parsed.scheme}'{label}，"
            f"仅支持 http/https: {url}",
            details=[url],
        )


# =========================================================================
# 响应与传输协议
# =========================================================================

@dataclass
class HttpResponse:
    """HTTP 响应（与 urllib 解耦），body 为可流式读取的文件对象"""

    url: str
    status: int
    body: IO[bytes]
    headers: dict[str, str] = field(default_factory=dict)

    def header(self, name: str) -> str:
        lowered = name.lower()
        for k, v in self.headers.items():
            if k.lower() == lowered:
                return v
        return ""

    def close(self) -> None:
        self.body.close()

    def __enter__(self) -> HttpResponse:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


class Transport(Protocol):
    """HTTP 传输协议 — 发起 GET 请求并返回未读取的响应

    非 2xx 状态码不抛异常，由调用方按状态码决定如何处理；
    只有连接层面的失败才抛 TransportError。
    """

    def open(
        self,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse:
        ...


class _GuardedBody(io.BufferedIOBase):
    """包装响应体：读取途中的连接错误统一转换为 TransportError"""

    def __init__(self, raw: IO[bytes], url: str) -> None:
        super().__init__()
        self._raw = raw
        self._url = url

    def readable(self) -> bool:
        return True

    def read(self, size: int | None = -1) -> bytes:
        try:
            return self._raw.read(-1 if size is None else size)
        except (OSError, http.client.HTTPException) as e:
            raise TransportError(f"下载中断: {self._url} - {e!r}", url=self._url) from e

    def read1(self, size: int = -1) -> bytes:
        return self.read(size)

    def close(self) -> None:
        try:
            self._raw.close()
        finally:
            super().close()


def guard_body(resp: HttpResponse) -> HttpResponse:
    """返回 body 被 _GuardedBody 包装的同一响应"""
    resp.body = _GuardedBody(resp.body, resp.url)
    return resp


class UrllibTransport:
    """基于 urllib 的默认传输实现（代理设置沿用 urllib 的环境变量约定）"""

    def open(
        self,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse:
        validate_url_scheme(url, context="http get")
        req = urllib.request.Request(
            url, headers={"User-Agent": USER_AGENT, **(headers or {})},
        )
        try:
            resp = urllib.request.urlopen(req, timeout=timeout)  # nosec B310
        except urllib.error.HTTPError as e:
            # HTTPError 本身就是响应对象，交给调用方按状态码处理
            return HttpResponse(url=url, status=e.code, body=e, headers=dict(e.headers or {}))
        except (urllib.error.URLError, OSError) as e:
            raise TransportError(f"请求失败: {url} - {e}", url=url) from e
        return HttpResponse(
            url=url, status=resp.status, body=resp, headers=dict(resp.headers),
        )


# =========================================================================
# HTTP 客户端
# =========================================================================

class HttpClient:
    """HTTP 客户端 — 状态码检查 + 清单 JSON 的条件请求缓存

    cache_dir 为空时不读写缓存；否则 fetch_json 携带
    If-None-Match / If-Modified-Since 请求，304 时返回缓存内容。
    """

    def __init__(
        self,
        transport: Transport | None = None,
        *,
        cache_dir: Path | None = None,
        timeout: float | None = None,
    ) -> None:
        self.transport = transport or UrllibTransport()
        self.cache_dir = cache_dir
        self.timeout = timeout

    def open_stream(self, url: str) -> HttpResponse:
        """打开下载流，状态码不是 200 时抛 TransportError"""
        logger.debug("GET %s", url)
        resp = self.transport.open(url, timeout=self.timeout)
        if resp.status != 200:
            resp.close()
            raise TransportError.bad_status(url, resp.status)
        return guard_body(resp)

    def fetch_json(self, url: str) -> Any:
        """拉取 JSON 文档（一次网络请求），支持本地缓存的条件请求"""
        cached = self._cache_load(url)
        headers: dict[str, str] = {}
        if cached is not None:
            meta = cached["meta"]
            if meta.get("etag"):
                headers["If-None-Match"] = meta["etag"]
            if meta.get("last_modified"):
                headers["If-Modified-Since"] = meta["last_modified"]

        logger.debug("GET %s (条件请求: %s)", url, bool(headers))
        resp = guard_body(self.transport.open(url, headers=headers, timeout=self.timeout))
        with resp:
            if resp.status == 304 and cached is not None:
                logger.info("缓存命中 (304): %s", url)
                raw = cached["body"]
            elif resp.status == 200:
                raw = resp.body.read()
                self._cache_store(url, raw, resp)
            else:
                raise TransportError.bad_status(url, resp.status)

        try:
            return json.loads(raw)
        except (ValueError, UnicodeDecodeError) as e:
            raise TransportError(f"响应不是合法 JSON: {url} - {e}", url=url, status=200) from e

    # ------------------------------------------------------------------
    # 缓存
    # ------------------------------------------------------------------

    def _cache_paths(self, url: str) -> tuple[Path, Path] | None:
        if self.cache_dir is None:
            return None
        key = hashlib.sha256(url.encode("utf-8")).hexdigest()[:24]
        return self.cache_dir / f"{key}.body", self.cache_dir / f"{key}.meta.json"

    def _cache_load(self, url: str) -> dict[str, Any] | None:
        paths = self._cache_paths(url)
        if paths is None:
            return None
        body_path, meta_path = paths
        if not body_path.exists() or not meta_path.exists():
            return None
        try:
            meta = json.loads(meta_path.read_text(encoding="utf-8"))
            body = body_path.read_bytes()
        except (OSError, ValueError):
            logger.warning("缓存损坏，忽略: %s", meta_path)
            return None
        if meta.get("url") != url:
            return None
        return {"meta": meta, "body": body}

    def _cache_store(self, url: str, raw: bytes, resp: HttpResponse) -> None:
        paths = self._cache_paths(url)
        if paths is None:
            return
        etag = resp.header("ETag")
        last_modified = resp.header("Last-Modified")
        if not etag and not last_modified:
            return
        body_path, meta_path = paths
        try:
            # 先删 meta：body 与 meta 之间中断时只会留下无 meta 的 body，下次视为未缓存
            remove_file(meta_path)
            atomic_write_bytes(body_path, raw)
            atomic_write(meta_path, json.dumps(
                {"url": url, "etag": etag, "last_modified": last_modified},
            ))
        except (OSError, FilesystemError) as e:
            # 缓存只是加速手段，写入失败不影响本次结果
            logger.warning("写入缓存失败: %s - %s", body_path, e)
