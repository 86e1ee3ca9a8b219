"""统一的对话与结果数据模型。

本模块定义了会话层与 Provider 适配层之间共享的标准数据结构：

- Message: 一条对话消息（system/user/assistant）。
- GenerationConfig: 每次发送时从界面/配置读取的生成参数。
- ChatRequest: 发给 Provider 的完整请求。
- Exchange: 一次「用户消息 -> 助手回复」的完整生命周期。

Provider 适配器只依赖这些模型，并负责在各自的 API JSON 和这些模型之间做转换。
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Literal, Optional


# LLM 消息角色类型（与 OpenAI 兼容接口的 role 字段对应）
Role = Literal["system", "user", "assistant"]


@dataclass
class Message:
    """一条对话消息，既可用于请求，也用于会话内的消息日志。"""

    role: Role
    content: str

    def to_payload(self) -> Dict[str, Any]:
        return {"role": self.role, "content": self.content}


@dataclass
class GenerationConfig:
    """一次发送所用的生成参数。

    - model: 选中的模型 ID；为空表示界面上没有可选模型，请求体中将省略该字段。
    - temperature: 原样传给 Provider，不在本地校验范围。
    - system_prompt: 为空字符串时不发送 system 消息。
    """

    model: Optional[str]
    temperature: float
    system_prompt: str = ""


@dataclass
class ChatRequest:
    """一次完整的聊天请求。

    messages 中最多一条 system 消息，且总在第一位。
    """

    model: Optional[str]
    temperature: float
    messages: List[Message]

    def to_payload(self) -> Dict[str, Any]:
        """转换为 /chat/completions 的请求 JSON。"""

        payload: Dict[str, Any] = {}
        if self.model is not None:
            payload["model"] = self.model
        payload["messages"] = [m.to_payload() for m in self.messages]
        payload["temperature"] = self.temperature
        return payload


class ExchangeStatus(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ErrorKind(str, Enum):
    """对用户可见的错误分类。"""

    MISSING_CREDENTIAL = "missing_credential"
    CATALOG_SHAPE_UNRECOGNIZED = "catalog_shape_unrecognized"
    TRANSPORT_FAILURE = "transport_failure"
    PROVIDER_ERROR = "provider_error"
    MALFORMED_RESPONSE = "malformed_response"


@dataclass
class Exchange:
    """一次对话交换。

    - user_message: 本轮用户消息。
    - placeholder: 渲染层占位元素的句柄，等待期间显示，完成后被替换。
    - status: pending -> succeeded / failed。
    - reply: 成功时的助手纯文本。
    - error_kind / error_detail: 失败时的分类与详情。
    """

    user_message: Message
    placeholder: str
    status: ExchangeStatus = ExchangeStatus.PENDING
    reply: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    error_detail: Optional[str] = None

    def succeed(self, reply: str) -> None:
        self.status = ExchangeStatus.SUCCEEDED
        self.reply = reply

    def fail(self, kind: ErrorKind, detail: str) -> None:
        self.status = ExchangeStatus.FAILED
        self.error_kind = kind
        self.error_detail = detail

    @property
    def is_pending(self) -> bool:
        return self.status is ExchangeStatus.PENDING


@dataclass
class CatalogResult:
    """模型列表解析结果。used_fallback 为 True 时 models 是兜底列表。"""

    models: List[str] = field(default_factory=list)
    used_fallback: bool = False


@dataclass
class RenderedReply:
    """经过安全过滤后的助手回复。as_html 为 False 时必须按纯文本展示。"""

    text: str
    as_html: bool
