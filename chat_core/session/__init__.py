"""会话层：消息日志与单次 Exchange 的生命周期管理。"""

from chat_core.session.conversation import ConversationSession

__all__ = ["ConversationSession"]
