"""会话核心模块。

ConversationSession 独占消息日志与当前 Exchange，是它们唯一的修改者。
每次发送的状态流转：

    Idle -> Pending -> Succeeded / Failed -> Idle

同一时刻最多只有一个 Pending 的 Exchange：在等待响应期间再次发送会直接抛出
ExchangeInFlightError，而不是依赖界面把发送按钮置灰。

模型列表刷新与 Exchange 状态机互不影响，只受自身的 loading 标志约束。
"""

import asyncio
import itertools
import logging
import re
import time
from typing import Any, Callable, Dict, List, Optional, Sequence
from urllib.parse import urlsplit
from uuid import uuid4

from chat_core.domain.exceptions import (
    BusinessError,
    ExchangeInFlightError,
    MissingCredentialError,
    NetworkError,
    ResponseDecodeError,
)
from chat_core.domain.models import ErrorKind, Exchange, GenerationConfig, Message
from chat_core.infrastructure.logging.logger import logger
from chat_core.providers.base import Transport
from chat_core.providers.catalog import FALLBACK_MODELS, normalize_catalog
from chat_core.providers.credentials import CredentialStore
from chat_core.providers.request_builder import build_chat_request
from chat_core.providers.response_parser import extract_text, render_reply
from chat_core.ui.surface import RenderingSurface


MISSING_KEY_TEXT = "API key not found. Provide OPENAI_KEY in the environment or config file, or enter an API key."
EMPTY_CATALOG_TEXT = "No models found in response; using fallback list."
CATALOG_HINT_TEXT = (
    "If you see a CORS or network error, ensure the provider host allows requests from this origin."
)
NETWORK_HINT_TEMPLATE = (
    "Network/CORS error detected. Ensure {host} allows CORS from this origin and that the host is reachable."
)
NETWORK_MARKERS = re.compile(r"CORS|Network|Failed to fetch", re.IGNORECASE)


class ConversationSession:
    """一个对话窗口的会话状态机。

    Args:
        transport: HTTP 传输实现。
        surface: 渲染层，接收追加消息/占位替换等事件。
        credentials: 密钥存储，每次请求前重新解析。
        config_source: 每次发送时调用，返回当前的 GenerationConfig（不做缓存）。
        fallback_models: 模型列表为空时的兜底列表。
    """

    def __init__(
        self,
        transport: Transport,
        surface: RenderingSurface,
        credentials: CredentialStore,
        config_source: Callable[[], GenerationConfig],
        fallback_models: Optional[Sequence[str]] = None,
    ):
        self._transport = transport
        self._surface = surface
        self._credentials = credentials
        self._config_source = config_source
        self._fallback_models = list(fallback_models or FALLBACK_MODELS)
        self._messages: List[Message] = []
        self._exchange: Optional[Exchange] = None
        self._catalog: List[str] = []
        self._catalog_loading = False
        self._placeholder_seq = itertools.count(1)
        self._log_ctx: Dict[str, Any] = {"session_id": f"s-{uuid4().hex}"}

    @property
    def messages(self) -> List[Message]:
        """消息日志副本（user/assistant，按时间顺序；system 消息不入日志）。"""
        return list(self._messages)

    @property
    def catalog(self) -> List[str]:
        return list(self._catalog)

    @property
    def current_exchange(self) -> Optional[Exchange]:
        return self._exchange

    @property
    def is_pending(self) -> bool:
        return self._exchange is not None and self._exchange.is_pending

    @property
    def catalog_loading(self) -> bool:
        return self._catalog_loading

    # ---- 发送 ----

    async def send(self, user_text: str) -> Optional[Exchange]:
        """发送一条用户消息并等待回复。

        Returns:
            已结束（成功或失败）的 Exchange；输入为空或缺少密钥时返回 None。

        Raises:
            ExchangeInFlightError: 上一轮 Exchange 仍在等待响应。
        """

        text = (user_text or "").strip()
        if not text:
            return None
        if self.is_pending:
            self._log(logging.WARNING, "Send rejected: exchange in flight", placeholder=self._exchange.placeholder)
            raise ExchangeInFlightError(
                code="EXCHANGE_IN_FLIGHT",
                message="A message is already waiting for a reply",
                http_status=409,
            )
        try:
            credential = self._require_credential()
        except MissingCredentialError as e:
            self._log(logging.WARNING, "Send rejected: missing credential")
            self._surface.append_message(e.message, "system")
            return None

        config = self._config_source()
        request = build_chat_request(config, text)
        user_message = Message(role="user", content=text)
        exchange = Exchange(user_message=user_message, placeholder=self._next_placeholder())

        # 以下到 await 之前没有挂起点，检查与占用 _exchange 是原子的
        self._exchange = exchange
        self._messages.append(user_message)
        self._surface.append_message(text, "user")
        self._surface.append_placeholder(exchange.placeholder)
        self._log(
            logging.INFO,
            "Exchange pending",
            placeholder=exchange.placeholder,
            model=config.model,
            message_count=len(request.messages),
        )

        try:
            raw = await self._transport.create_chat_completion(credential, request.to_payload())
        except asyncio.CancelledError:
            # 宿主关闭时取消任务：撤掉占位，状态回到 Idle 后继续传播取消
            exchange.fail(ErrorKind.TRANSPORT_FAILURE, "cancelled")
            self._surface.remove_placeholder(exchange.placeholder)
            self._log(logging.INFO, "Exchange cancelled", placeholder=exchange.placeholder)
            raise
        except BusinessError as e:
            self._fail(exchange, e)
        except Exception as e:
            logger.exception(
                "Unexpected transport failure",
                extra={"extra": {**self._log_ctx, "placeholder": exchange.placeholder}},
            )
            self._fail(exchange, NetworkError(code="TRANSPORT_ERROR", message=f"{type(e).__name__}: {e}"))
        else:
            self._succeed(exchange, raw)
        finally:
            self._exchange = None
        return exchange

    def _succeed(self, exchange: Exchange, raw: Any) -> None:
        text = extract_text(raw)
        rendered = render_reply(text)
        exchange.succeed(text)
        self._messages.append(Message(role="assistant", content=text))
        if not rendered.as_html:
            self._log(logging.WARNING, "Reply contains script markup; rendering as plain text", placeholder=exchange.placeholder)
        self._surface.replace_placeholder(exchange.placeholder, rendered.text, rendered.as_html)
        self._log(logging.INFO, "Exchange succeeded", placeholder=exchange.placeholder, reply_chars=len(text))

    def _fail(self, exchange: Exchange, error: BusinessError) -> None:
        kind = _error_kind(error)
        exchange.fail(kind, error.message)
        self._surface.replace_placeholder(exchange.placeholder, f"Error: {error.message}", False)
        self._log(
            logging.ERROR,
            "Exchange failed",
            placeholder=exchange.placeholder,
            error_kind=kind.value,
            code=error.code,
            http_status=error.http_status,
        )
        if kind is ErrorKind.TRANSPORT_FAILURE or NETWORK_MARKERS.search(error.message or ""):
            self._surface.append_message(self._network_hint(), "system")

    # ---- 模型列表 ----

    async def refresh_models(self) -> Optional[List[str]]:
        """重新拉取模型列表。

        已有刷新在进行时直接返回 None；缺少密钥或请求失败时在渲染层提示并返回 None。
        """

        if self._catalog_loading:
            self._log(logging.INFO, "Catalog refresh skipped: already loading")
            return None
        self._catalog_loading = True
        self._surface.set_catalog_loading(True)
        try:
            try:
                credential = self._require_credential()
            except MissingCredentialError as e:
                self._log(logging.WARNING, "Catalog refresh rejected: missing credential")
                self._surface.set_catalog([])
                self._surface.append_message(e.message, "system")
                return None
            try:
                raw = await self._transport.list_models(credential)
            except BusinessError as e:
                self._log(logging.ERROR, "Catalog refresh failed", code=e.code, http_status=e.http_status)
                self._catalog_failed(e.message)
                return None
            except Exception as e:
                logger.exception("Unexpected catalog failure", extra={"extra": dict(self._log_ctx)})
                self._catalog_failed(f"{type(e).__name__}: {e}")
                return None

            result = normalize_catalog(raw, self._fallback_models)
            if result.used_fallback:
                self._log(
                    logging.WARNING,
                    "Catalog shape unrecognized or empty; using fallback",
                    error_kind=ErrorKind.CATALOG_SHAPE_UNRECOGNIZED.value,
                )
                self._surface.append_message(EMPTY_CATALOG_TEXT, "system")
            self._catalog = list(result.models)
            self._surface.set_catalog(self.catalog)
            self._log(logging.INFO, "Catalog loaded", model_count=len(self._catalog))
            return self.catalog
        finally:
            self._catalog_loading = False
            self._surface.set_catalog_loading(False)

    def _catalog_failed(self, detail: str) -> None:
        self._surface.set_catalog([])
        self._surface.append_message(f"Error fetching models: {detail}", "system")
        self._surface.append_message(CATALOG_HINT_TEXT, "system")

    # ---- 内部工具 ----

    def _require_credential(self) -> str:
        credential = self._credentials.resolve()
        if credential is None:
            raise MissingCredentialError(code="MISSING_API_KEY", message=MISSING_KEY_TEXT)
        return credential

    def _next_placeholder(self) -> str:
        # 毫秒时间戳可能重复，再拼一个递增序号保证唯一
        return f"thinking-{int(time.time() * 1000)}-{next(self._placeholder_seq)}"

    def _network_hint(self) -> str:
        base_url = getattr(self._transport, "base_url", "") or ""
        try:
            host = urlsplit(base_url).netloc
        except ValueError:
            # 例如未闭合的 IPv6 方括号，直接展示原始地址
            host = ""
        host = host or base_url or "the provider host"
        return NETWORK_HINT_TEMPLATE.format(host=host)

    def _log(self, level: int, message: str, **fields: Any) -> None:
        payload = dict(self._log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})


def _error_kind(error: BusinessError) -> ErrorKind:
    if isinstance(error, NetworkError):
        return ErrorKind.TRANSPORT_FAILURE
    if isinstance(error, ResponseDecodeError):
        return ErrorKind.MALFORMED_RESPONSE
    if isinstance(error, MissingCredentialError):
        return ErrorKind.MISSING_CREDENTIAL
    return ErrorKind.PROVIDER_ERROR
