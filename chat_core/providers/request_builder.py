"""将生成参数与用户输入组装为 ChatRequest。

只负责拼装：不做 trim（调用方负责），也不校验 temperature 范围或模型是否存在，
这些以 Provider 的返回为准。
"""

from typing import List

from chat_core.domain.models import ChatRequest, GenerationConfig, Message


def build_chat_request(config: GenerationConfig, user_text: str) -> ChatRequest:
    messages: List[Message] = []
    if config.system_prompt:
        messages.append(Message(role="system", content=config.system_prompt))
    messages.append(Message(role="user", content=user_text))
    return ChatRequest(model=config.model, temperature=config.temperature, messages=messages)
