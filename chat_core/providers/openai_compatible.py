"""OpenAI 兼容 Provider 的 HTTP 传输实现。

本模块负责：

1. 拼接 /models 与 /chat/completions 的 URL 和请求头。
2. 调用 HTTP 接口并处理网络/API 异常。
3. 把响应体解码为 JSON 交给上层的归一化函数。

认证头直接携带原始密钥：``Authorization: <key>``，不加 ``Bearer`` 前缀。
"""

from typing import Any, Dict, Optional

import httpx

from chat_core.config.settings import settings
from chat_core.domain.exceptions import ApiError, NetworkError, ResponseDecodeError
from chat_core.infrastructure.logging.logger import logger


class OpenAICompatibleTransport:
    """基于 httpx.AsyncClient 的 Transport 实现。

    - base_url: 形如 http://host:port/v1，末尾不带斜杠。
    - timeout: 秒；None 表示不设超时（请求一直等到完成或失败）。
    """

    name = "openai-compatible"

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.base_url = (base_url or settings.base_url).rstrip("/")
        self._timeout = timeout

    async def list_models(self, credential: str) -> Any:
        url = f"{self.base_url}/models"
        headers = {
            "Authorization": credential,
            "Accept": "application/json",
        }
        logger.info("Fetching model catalog", extra={"extra": {"url": url}})
        try:
            async with httpx.AsyncClient(timeout=self._timeout, trust_env=False) as client:
                resp = await client.get(url, headers=headers)
        except httpx.RequestError as e:
            # 网络错误：DNS 失败、连接被拒等
            raise NetworkError(code="NETWORK_ERROR", message=f"Network error: {e}", url=url)
        except (httpx.InvalidURL, UnicodeEncodeError) as e:
            # 地址或密钥无法编码成合法请求，同样视为请求未能发出
            raise NetworkError(code="INVALID_REQUEST", message=f"Network error: invalid request: {e}", url=url)
        if not 200 <= resp.status_code < 300:
            raise ApiError(
                code="API_ERROR",
                message=f"Models fetch failed: {resp.status_code} {resp.text}",
                http_status=resp.status_code,
                url=url,
            )
        return self._decode(resp, url)

    async def create_chat_completion(self, credential: str, payload: Dict[str, Any]) -> Any:
        url = f"{self.base_url}/chat/completions"
        headers = {
            "Authorization": credential,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        logger.info(
            "Posting chat completion",
            extra={"extra": {
                "url": url,
                "model": payload.get("model"),
                "message_count": len(payload.get("messages") or []),
            }},
        )
        try:
            async with httpx.AsyncClient(timeout=self._timeout, trust_env=False) as client:
                resp = await client.post(url, json=payload, headers=headers)
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=f"Network error: {e}", url=url)
        except (httpx.InvalidURL, UnicodeEncodeError) as e:
            # 地址或密钥无法编码成合法请求，同样视为请求未能发出
            raise NetworkError(code="INVALID_REQUEST", message=f"Network error: invalid request: {e}", url=url)
        if not 200 <= resp.status_code < 300:
            # 非 2xx 统一包装为 ApiError，保留状态码与原始响应体
            raise ApiError(
                code="API_ERROR",
                message=f"Chat failed: {resp.status_code} {resp.text}",
                http_status=resp.status_code,
                url=url,
            )
        return self._decode(resp, url)

    @staticmethod
    def _decode(resp: Any, url: str) -> Any:
        try:
            return resp.json()
        except ValueError as e:
            raise ResponseDecodeError(
                code="INVALID_JSON",
                message=f"Invalid JSON in response: {e}",
                http_status=resp.status_code,
                url=url,
            )
