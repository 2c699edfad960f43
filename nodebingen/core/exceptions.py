"""统一异常体系

所有生成过程中的业务异常继承 NodeBinGenError，替代散落的 ValueError / OSError。
CLI 层据此输出友好提示并以退出码 1 结束；核心流程内不做任何重试。
"""

from __future__ import annotations


class NodeBinGenError(Exception):
    """生成器基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class TransportError(NodeBinGenError):
    """网络请求失败，或响应状态码不是 200（缓存命中的 304 除外）"""

    code = "TRANSPORT_ERROR"

    def __init__(self, message: str, *, url: str = "", status: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status = status

    @classmethod
    def bad_status(cls, url: str, status: int) -> TransportError:
        return cls(f"请求失败: {url} 返回状态码 {status}", url=url, status=status)


class NotFoundError(NodeBinGenError):
    """请求的版本不在发布清单中"""

    code = "NOT_FOUND"


class FilesystemError(NodeBinGenError):
    """目录创建（已存在除外）或文件写入失败"""

    code = "FILESYSTEM_ERROR"


class DecodeError(NodeBinGenError):
    """归档解压失败"""

    code = "DECODE_ERROR"


class ManifestError(DecodeError):
    """发布清单内容不符合预期结构"""

    code = "MANIFEST_ERROR"


class ConfigError(NodeBinGenError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class ValidationError(NodeBinGenError):
    """输入数据校验失败"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []
