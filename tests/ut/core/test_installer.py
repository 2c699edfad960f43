"""安装脚本模板测试"""

from __future__ import annotations

from nodebingen.core.installer import StubParams, render_installer_stub


class TestRenderInstallerStub:
    def test_pins_version_and_product(self) -> None:
        text = render_installer_stub(StubParams(product="node", version="18.2.0-nightly1"))
        assert text.startswith("#!/usr/bin/env node\n")
        assert 'var PRODUCT = "node";' in text
        assert 'var VERSION = "18.2.0-nightly1";' in text
        assert 'var BIN_DIR = "bin";' in text
        assert 'var EXECUTABLE = "node";' in text

    def test_install_and_link_steps(self) -> None:
        text = render_installer_stub(StubParams(product="node", version="18.2.0"))
        assert '"--no-save"' in text
        assert 'pkg + "@" + VERSION' in text
        assert "fs.mkdirSync(binDir, { recursive: true });" in text
        assert 'err.code !== "ENOENT"' in text
        assert "fs.linkSync(source, dest);" in text
        assert "process.exit(result.status === null ? 1 : result.status);" in text

    def test_platform_mapping(self) -> None:
        text = render_installer_stub(StubParams(product="node", version="18.2.0"))
        assert 'process.platform === "win32" ? "win"' in text
        assert 'process.arch === "ia32" ? "x86"' in text

    def test_values_are_json_literals(self) -> None:
        text = render_installer_stub(StubParams(
            product="node", version='1.0.0"; evil()', bin_dir="out/bin", executable="mynode",
        ))
        assert r'var VERSION = "1.0.0\"; evil()";' in text
        assert 'var BIN_DIR = "out/bin";' in text
        assert 'var EXECUTABLE = "mynode";' in text

    def test_pure(self) -> None:
        params = StubParams(product="node", version="18.2.0")
        assert render_installer_stub(params) == render_installer_stub(params)
