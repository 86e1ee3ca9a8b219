"""Chat Core 顶层包。

该包提供 OpenAI 兼容 Provider 的浏览器式聊天客户端核心实现，
包括配置加载、密钥解析、模型列表归一化、请求组装、回复归一化与安全过滤，
以及追踪单次对话交换生命周期的会话状态机。
"""

from chat_core.session import ConversationSession

__all__ = ["ConversationSession"]
