"""安装脚本生成

生成元包的 preinstall 脚本文本（Node.js），生成阶段只渲染文本、不执行。

脚本在最终用户机器上执行时:
  1. 读取当前进程的 platform / arch（win32 -> win，Windows 下 ia32 -> x86）
  2. npm install 固定版本的架构包 <product>-<platform>-<arch>@<version>
  3. 创建 bin 目录（已存在忽略）
  4. 删除旧链接（不存在忽略）后，将架构包内的可执行文件硬链接到 bin/<executable>
  5. 以子安装的退出码退出

模板参数 (StubParams):
  product     产品名，同时是架构包名前缀，如 node
  version     架构包的精确版本，如 18.2.0-nightly1
  bin_dir     元包内的统一 bin 目录，相对于脚本所在目录
  executable  链接后的可执行文件名
所有参数以 JSON 字符串字面量嵌入脚本，不做其他转义。
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from string import Template

STUB_TEMPLATE = Template("""\
#!/usr/bin/env node
// Generated by nodebingen: installs the architecture specific package
// matching this machine and links its binary into BIN_DIR.
"use strict";

var childProcess = require("child_process");
var fs = require("fs");
var path = require("path");

var PRODUCT = ${product};
var VERSION = ${version};
var BIN_DIR = ${bin_dir};
var EXECUTABLE = ${executable};

var platform = process.platform === "win32" ? "win" : process.platform;
var arch = platform === "win" && process.arch === "ia32" ? "x86" : process.arch;
var pkg = PRODUCT + "-" + platform + "-" + arch;

var result = childProcess.spawnSync(
  process.platform === "win32" ? "npm.cmd" : "npm",
  ["install", "--no-save", "--no-package-lock", pkg + "@" + VERSION],
  { cwd: __dirname, stdio: "inherit", shell: process.platform === "win32" }
);

if (result.status === 0) {
  var binary = platform === "win" ? "bin/" + PRODUCT + ".exe" : "bin/" + PRODUCT;
  var source = path.join(__dirname, "node_modules", pkg, binary);
  var binDir = path.join(__dirname, BIN_DIR);
  var dest = path.join(binDir, EXECUTABLE);

  fs.mkdirSync(binDir, { recursive: true });
  try {
    fs.unlinkSync(dest);
  } catch (err) {
    if (err.code !== "ENOENT") throw err;
  }
  fs.linkSync(source, dest);
}

process.exit(result.status === null ? 1 : result.status);
""")


@dataclass(frozen=True)
class StubParams:
    """安装脚本模板参数"""

    product: str
    version: str
    bin_dir: str = "bin"
    executable: str = ""

    @property
    def executable_name(self) -> str:
        return self.executable or self.product


def render_installer_stub(params: StubParams) -> str:
    """渲染安装脚本文本（纯函数）"""
    return STUB_TEMPLATE.substitute(
        product=json.dumps(params.product),
        version=json.dumps(params.version),
        bin_dir=json.dumps(params.bin_dir),
        executable=json.dumps(params.executable_name),
    )
