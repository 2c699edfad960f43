"""发布清单解析器

职责:
- 按版本号选择清单 URL（正式版 / RC / 测试渠道）
- 拉取 index.json 并解析为 ManifestEntry 序列
- 查找与版本号完全一致的条目
"""

from __future__ import annotations

import logging
from typing import Any

from nodebingen.core.exceptions import ManifestError, NotFoundError
from nodebingen.core.models import ManifestEntry, VersionSpec
from nodebingen.utils.net import HttpClient

logger = logging.getLogger(__name__)


def catalog_url(spec: VersionSpec, base: str) -> str:
    """清单地址，如 https://nodejs.org/download/rc/index.json"""
    return f"{base.rstrip('/')}/{spec.channel.value}/index.json"


def parse_manifest(payload: Any) -> list[ManifestEntry]:
    """将清单 JSON 解析为有序的 ManifestEntry 列表"""
    if not isinstance(payload, list):
        raise ManifestError(f"清单顶层不是数组 (实际类型: {type(payload).__name__})")
    return [ManifestEntry.from_dict(item) for item in payload]


def find_entry(entries: list[ManifestEntry], tag: str) -> ManifestEntry:
    for entry in entries:
        if entry.version == tag:
            return entry
    raise NotFoundError(f"发布清单中没有版本 '{tag}'")


class ManifestResolver:
    """发布清单解析器 - 一次网络请求，不重试"""

    def __init__(self, client: HttpClient, catalog_base: str) -> None:
        self.client = client
        self.catalog_base = catalog_base

    def resolve(self, spec: VersionSpec) -> ManifestEntry:
        url = catalog_url(spec, self.catalog_base)
        logger.info("拉取发布清单: %s", url, extra={"url": url, "version": spec.tag})
        entries = parse_manifest(self.client.fetch_json(url))
        entry = find_entry(entries, spec.tag)
        logger.debug("清单条目: %s files=%s", entry.version, list(entry.files))
        return entry
