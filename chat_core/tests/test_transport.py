import asyncio

import httpx
import pytest

from chat_core.domain.exceptions import ApiError, NetworkError, ResponseDecodeError
from chat_core.providers import create_transport
from chat_core.providers.openai_compatible import OpenAICompatibleTransport


class Resp:
    def __init__(self, status_code=200, payload=None, text="", invalid_json=False):
        self.status_code = status_code
        self._payload = payload
        self.text = text
        self._invalid_json = invalid_json

    def json(self):
        if self._invalid_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload


def install_client(monkeypatch, resp=None, error=None):
    captured = {}

    class Client:
        def __init__(self, *a, **kw):
            captured["client_kwargs"] = kw

        async def __aenter__(self):
            return self

        async def __aexit__(self, *a):
            return False

        async def get(self, url, headers=None, **_):
            captured.update(method="GET", url=url, headers=headers)
            if error:
                raise error
            return resp

        async def post(self, url, json=None, headers=None, **_):
            captured.update(method="POST", url=url, headers=headers, payload=json)
            if error:
                raise error
            return resp

    monkeypatch.setattr("httpx.AsyncClient", Client)
    return captured


def test_list_models_request(monkeypatch):
    captured = install_client(monkeypatch, Resp(payload={"data": [{"id": "m1"}]}))
    transport = OpenAICompatibleTransport(base_url="http://host:1234/v1/")
    data = asyncio.run(transport.list_models("raw-key"))
    assert data == {"data": [{"id": "m1"}]}
    assert captured["method"] == "GET"
    assert captured["url"] == "http://host:1234/v1/models"
    assert captured["headers"] == {"Authorization": "raw-key", "Accept": "application/json"}
    assert captured["client_kwargs"]["timeout"] is None


def test_chat_request_headers_and_body(monkeypatch):
    captured = install_client(monkeypatch, Resp(payload={"result": "ok"}))
    transport = OpenAICompatibleTransport(base_url="http://host:1234/v1", timeout=5.0)
    payload = {"model": "m1", "messages": [{"role": "user", "content": "hi"}], "temperature": 0.7}
    data = asyncio.run(transport.create_chat_completion("raw-key", payload))
    assert data == {"result": "ok"}
    assert captured["url"] == "http://host:1234/v1/chat/completions"
    # 不加 Bearer 前缀
    assert captured["headers"]["Authorization"] == "raw-key"
    assert captured["headers"]["Content-Type"] == "application/json"
    assert captured["headers"]["Accept"] == "application/json"
    assert captured["payload"] == payload
    assert captured["client_kwargs"]["timeout"] == 5.0


def test_non_2xx_raises_api_error(monkeypatch):
    install_client(monkeypatch, Resp(status_code=401, text="invalid key"))
    transport = OpenAICompatibleTransport(base_url="http://host/v1")
    with pytest.raises(ApiError) as exc:
        asyncio.run(transport.create_chat_completion("k", {"messages": []}))
    assert exc.value.http_status == 401
    assert exc.value.message == "Chat failed: 401 invalid key"


def test_models_non_2xx(monkeypatch):
    install_client(monkeypatch, Resp(status_code=404, text="not found"))
    transport = OpenAICompatibleTransport(base_url="http://host/v1")
    with pytest.raises(ApiError) as exc:
        asyncio.run(transport.list_models("k"))
    assert exc.value.message == "Models fetch failed: 404 not found"


def test_request_error_becomes_network_error(monkeypatch):
    install_client(monkeypatch, error=httpx.ConnectError("All connection attempts failed"))
    transport = OpenAICompatibleTransport(base_url="http://host/v1")
    with pytest.raises(NetworkError) as exc:
        asyncio.run(transport.list_models("k"))
    assert exc.value.code == "NETWORK_ERROR"
    assert "All connection attempts failed" in exc.value.message


@pytest.mark.parametrize("error", [
    httpx.InvalidURL("Invalid port: ':1'"),
    UnicodeEncodeError("ascii", "kéy", 1, 2, "ordinal not in range(128)"),
])
def test_unbuildable_request_becomes_network_error(monkeypatch, error):
    install_client(monkeypatch, error=error)
    transport = OpenAICompatibleTransport(base_url="http://host/v1")
    with pytest.raises(NetworkError) as exc:
        asyncio.run(transport.create_chat_completion("kéy", {"messages": []}))
    assert exc.value.code == "INVALID_REQUEST"
    with pytest.raises(NetworkError):
        asyncio.run(transport.list_models("kéy"))


def test_invalid_json_body(monkeypatch):
    install_client(monkeypatch, Resp(status_code=200, text="<html>", invalid_json=True))
    transport = OpenAICompatibleTransport(base_url="http://host/v1")
    with pytest.raises(ResponseDecodeError):
        asyncio.run(transport.create_chat_completion("k", {"messages": []}))


def test_create_transport_uses_settings(monkeypatch):
    class DummySettings:
        base_url = "http://configured/v1"
        http_timeout = 12.0

    monkeypatch.setattr("chat_core.providers.settings", DummySettings())
    transport = create_transport()
    assert isinstance(transport, OpenAICompatibleTransport)
    assert transport.base_url == "http://configured/v1"
