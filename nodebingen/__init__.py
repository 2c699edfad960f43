"""nodebingen - Node.js 运行时 npm 发布包生成器

按版本号生成各平台/架构的 npm 包，以及在安装时自动选择匹配架构的元包。
"""

__version__ = "0.3.0"
