"""对外 API 服务模块。

提供简化的函数接口供上层应用（终端、GUI、调试脚本）调用，
内部维护一个默认会话单例。
"""

from typing import Any, Dict, List, Optional

from chat_core.config.settings import settings
from chat_core.domain.exceptions import ExchangeInFlightError
from chat_core.domain.models import Exchange
from chat_core.infrastructure.logging.logger import logger
from chat_core.providers import create_transport
from chat_core.providers.credentials import CredentialStore
from chat_core.session.conversation import ConversationSession
from chat_core.ui.console import ChatControls, ConsoleSurface
from chat_core.ui.surface import RenderingSurface


_credentials: Optional[CredentialStore] = None
_controls: Optional[ChatControls] = None
_session: Optional[ConversationSession] = None


def get_controls() -> ChatControls:
    """获取默认的表单控件状态（单例）。"""
    global _controls
    if _controls is None:
        _controls = ChatControls.from_settings(settings)
    return _controls


def get_credentials() -> CredentialStore:
    """获取默认的密钥存储（单例），进程级密钥在首次调用时从配置读取。"""
    global _credentials
    if _credentials is None:
        _credentials = CredentialStore(process_key=settings.openai_key)
    return _credentials


def get_default_session(surface: Optional[RenderingSurface] = None) -> ConversationSession:
    """获取默认会话实例（单例）。

    Args:
        surface: 首次创建时使用的渲染层，缺省为终端输出。
    """
    global _session
    if _session is None:
        controls = get_controls()
        _session = ConversationSession(
            transport=create_transport(),
            surface=surface or ConsoleSurface(controls),
            credentials=get_credentials(),
            config_source=controls.read_config,
            fallback_models=settings.fallback_models,
        )
    return _session


def get_api_key() -> Optional[str]:
    """按优先级解析当前可用的 API 密钥。"""
    return get_credentials().resolve()


def set_api_key(value: Optional[str]) -> None:
    """设置界面输入的 API 密钥（进程级密钥仍然优先）。"""
    get_credentials().set_ui_key(value)


async def refresh_models() -> Optional[List[str]]:
    return await get_default_session().refresh_models()


async def send_chat(user_text: str) -> Optional[Exchange]:
    """发送一条消息。

    Returns:
        已结束的 Exchange；输入为空或缺少密钥时为 None。

    Raises:
        ExchangeInFlightError: 上一条消息仍在等待回复。
    """
    try:
        return await get_default_session().send(user_text)
    except ExchangeInFlightError as e:
        logger.warning(f"Chat rejected: {e.message}", extra={"extra": {"code": e.code}})
        raise
    except Exception as e:
        logger.error(f"Chat failed: {e}", extra={"extra": {"error": str(e)}})
        raise


def debug_info() -> Dict[str, Any]:
    """返回当前配置与会话状态的快照，不包含密钥本身。"""
    session = get_default_session()
    controls = get_controls()
    return {
        "base_url": settings.base_url,
        "has_api_key": get_api_key() is not None,
        "model": controls.model,
        "temperature": controls.temperature,
        "catalog": session.catalog,
        "pending": session.is_pending,
        "message_count": len(session.messages),
    }


def reset() -> None:
    """丢弃默认单例，下次调用时重新创建。"""
    global _credentials, _controls, _session
    _credentials = None
    _controls = None
    _session = None
