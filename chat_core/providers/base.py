"""Transport 抽象接口。

会话层不直接依赖具体的 HTTP 库，而是依赖此协议：

- list_models: GET {base}/models，返回解码后的 JSON。
- create_chat_completion: POST {base}/chat/completions，返回解码后的 JSON。

实现者负责把网络错误映射为 NetworkError，非 2xx 映射为 ApiError，
响应体不是 JSON 时抛出 ResponseDecodeError。不做重试，也不设默认超时。
"""

from typing import Any, Dict, Protocol


class Transport(Protocol):
    """OpenAI 兼容 Provider 的 HTTP 传输协议。"""

    base_url: str

    async def list_models(self, credential: str) -> Any:
        ...

    async def create_chat_completion(self, credential: str, payload: Dict[str, Any]) -> Any:
        ...
