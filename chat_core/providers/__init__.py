"""LLM Provider 集成层。

该包下的模块负责：
- 定义 Transport 抽象接口 (base) 与 httpx 实现 (openai_compatible)。
- 解析 API 密钥 (credentials)。
- 组装请求 (request_builder)，归一化模型列表 (catalog) 与回复文本 (response_parser)。
"""

from typing import Optional

from chat_core.config.settings import settings
from chat_core.providers.base import Transport
from chat_core.providers.openai_compatible import OpenAICompatibleTransport


def create_transport(base_url: Optional[str] = None) -> Transport:
    """根据配置创建 Transport 实例，默认取配置中的 base_url 与超时。"""

    return OpenAICompatibleTransport(
        base_url=base_url or settings.base_url,
        timeout=getattr(settings, "http_timeout", None),
    )
