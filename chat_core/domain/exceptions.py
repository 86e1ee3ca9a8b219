"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在会话层或 UI 层做统一捕获与用户提示。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "NETWORK_ERROR"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 url、provider 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class NetworkError(BusinessError):
    """网络层错误，例如连接失败、DNS 失败、跨域被拒等。"""


class ApiError(BusinessError):
    """Provider 返回非 2xx 状态码时抛出，message 中带状态码与原始响应体。"""


class ResponseDecodeError(BusinessError):
    """Provider 返回 2xx 但响应体不是合法 JSON。"""


class ValidationError(BusinessError):
    """参数或配置校验失败。"""


class MissingCredentialError(ValidationError):
    """所有候选来源都没有可用的 API 密钥。"""


class ExchangeInFlightError(BusinessError):
    """上一轮对话仍在等待响应时又发起了新的发送请求。"""
