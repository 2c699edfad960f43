"""构建目标枚举测试"""

from __future__ import annotations

import pytest

from nodebingen.core.config import BuildOptions
from nodebingen.core.exceptions import ValidationError
from nodebingen.core.manifest import ManifestResolver
from nodebingen.core.models import BuildTarget, ManifestEntry, VersionSpec
from nodebingen.core.variants import (
    DEFAULT_FILES,
    enumerate_for,
    enumerate_targets,
    is_binary_token,
    parse_token,
)
from nodebingen.utils.net import HttpClient
from tests.conftest import CATALOG_URL, FakeTransport


class TestParseToken:
    def test_default_format(self) -> None:
        assert parse_token("linux-x64") == BuildTarget("linux", "x64", "tar.gz")

    def test_osx_normalized(self) -> None:
        assert parse_token("osx-x64-tar") == BuildTarget("darwin", "x64", "tar")

    def test_windows_zip(self) -> None:
        assert parse_token("win-x86-zip") == BuildTarget("win", "x86", "zip")

    @pytest.mark.parametrize("token", ["linux", "", "-x64", "linux-"])
    def test_invalid(self, token: str) -> None:
        with pytest.raises(ValidationError, match="无法解析") as exc_info:
            parse_token(token)
        assert exc_info.value.details == [token]


class TestIsBinaryToken:
    @pytest.mark.parametrize("token", [
        "headers", "src", "osx-x64-pkg", "win-x64-msi", "win-x86-exe", "win-x64-7z",
    ])
    def test_excluded(self, token: str) -> None:
        assert not is_binary_token(token)

    @pytest.mark.parametrize("token", ["linux-x64", "win-x64-zip", "osx-arm64-tar"])
    def test_included(self, token: str) -> None:
        assert is_binary_token(token)


class TestEnumerateTargets:
    def test_empty_files_uses_defaults_in_order(self) -> None:
        targets = enumerate_targets(ManifestEntry(version="v18.2.0"))
        assert [t.token for t in targets] == list(DEFAULT_FILES)
        assert targets[0] == BuildTarget("darwin", "x64")
        assert targets[-1] == BuildTarget("win", "x86")

    def test_exclusions_and_order(self) -> None:
        entry = ManifestEntry(
            version="v18.2.0",
            files=("headers", "win-x64-msi", "linux-x64", "osx-x64-tar"),
        )
        assert enumerate_targets(entry) == [
            BuildTarget("linux", "x64", "tar.gz"),
            BuildTarget("darwin", "x64", "tar"),
        ]

    def test_only_ignores_manifest(self) -> None:
        entry = ManifestEntry(version="v18.2.0", files=("linux-x64", "win-x64-zip"))
        assert enumerate_targets(entry, only="linux-arm64") == [BuildTarget("linux", "arm64")]

    def test_only_with_empty_manifest(self) -> None:
        assert len(enumerate_targets(ManifestEntry(version="v1.0.0"), only="linux-arm64")) == 1


class TestEnumerateFor:
    def test_skip_binaries_no_fetch(self, transport: FakeTransport) -> None:
        resolver = ManifestResolver(HttpClient(transport), "https://nodejs.org")
        opts = BuildOptions(version=VersionSpec.parse("18.2.0"), skip_binaries=True)
        assert enumerate_for(opts, resolver) == []
        assert transport.requests == []

    def test_resolves_then_enumerates(self, transport: FakeTransport) -> None:
        transport.add_json(CATALOG_URL, [{"version": "v18.2.0", "files": ["linux-x64", "src"]}])
        resolver = ManifestResolver(HttpClient(transport), "https://nodejs.org")
        opts = BuildOptions(version=VersionSpec.parse("18.2.0"))
        assert enumerate_for(opts, resolver) == [BuildTarget("linux", "x64")]
        assert transport.urls == [CATALOG_URL]
