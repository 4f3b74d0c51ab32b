"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在 API 层做统一捕获，并渲染为 {"error": ...} 响应。
"""

from typing import Any, Dict, Optional


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "INVALID_REQUEST"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时使用的状态码，未指定时取子类默认值。
        extra: 其他补充字段（例如 details、suggestion、upstream_status）。
    """

    default_http_status = 400

    def __init__(self, code: str, message: str, http_status: Optional[int] = None, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status or self.default_http_status
        self.extra = extra
        super().__init__(message)

    def to_payload(self) -> Dict[str, Any]:
        """返回给 HTTP 调用方的错误体，只暴露 details / suggestion 两个补充字段。"""

        payload: Dict[str, Any] = {"error": self.message}
        for key in ("details", "suggestion"):
            if self.extra.get(key):
                payload[key] = self.extra[key]
        return payload


class InvalidRequestError(BusinessError):
    """请求体校验失败（消息为空、格式错误），由调用方修正。"""


class ConfigurationError(BusinessError):
    """服务端配置缺失，例如未设置 ALIBABA_API_KEY。"""

    default_http_status = 500


class CapabilityError(BusinessError):
    """所选模型不支持工具绑定，或绑定过程失败。"""

    default_http_status = 500


class ToolExecutionError(BusinessError):
    """单个工具执行失败。

    只在工具执行器内部抛出，由 handle_tool_errors 转换为文本形式的
    ToolResult 交还给模型，不会传播到 HTTP 层。
    """


class ProviderError(BusinessError):
    """远端模型服务错误的基类，统一映射为 500，消息原样透传。"""

    default_http_status = 500


class NetworkError(ProviderError):
    """网络层错误，例如连接失败、超时等。"""


class ApiError(ProviderError):
    """第三方 API 返回非 2xx/429 错误时抛出，原始状态码保存在 upstream_status。"""


class RateLimitError(ProviderError):
    """Provider 限流错误，本项目不做重试。"""
