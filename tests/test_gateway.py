from __future__ import annotations

import json

import httpx
import pytest

from infinite_context.common.config import Settings
from infinite_context.common.errors import ProviderError, UnknownProviderError
from infinite_context.core.gateway import GeminiClient, ModelGateway, Provider, resolve_provider


def _client(handler) -> GeminiClient:
    http = httpx.Client(transport=httpx.MockTransport(handler))
    return GeminiClient(api_key="k-test", model="gemini-test", base_url="https://gemini.test/v1beta/", http_client=http)


def test_generate_posts_prompt_and_returns_text() -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["key"] = request.headers.get("x-goog-api-key")
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={"candidates": [{"content": {"role": "model", "parts": [{"text": "Hello "}, {"text": "test"}]}}]},
        )

    assert _client(handler).generate("hi there") == "Hello test"
    assert seen["url"] == "https://gemini.test/v1beta/models/gemini-test:generateContent"
    assert seen["key"] == "k-test"
    assert seen["body"] == {"contents": [{"role": "user", "parts": [{"text": "hi there"}]}]}


def test_rate_limit_status_is_visible_in_error_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"error": {"code": 429, "message": "Resource has been exhausted"}})

    with pytest.raises(ProviderError) as ei:
        _client(handler).generate("x")
    assert "429 Too Many Requests" in ei.value.message
    assert "Resource has been exhausted" in ei.value.message


def test_transport_error_is_wrapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ProviderError, match="connection refused"):
        _client(handler).generate("x")


def test_malformed_response_is_wrapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"candidates": []})

    with pytest.raises(ProviderError, match="malformed"):
        _client(handler).generate("x")


def test_resolve_provider() -> None:
    assert resolve_provider(None) is Provider.GEMINI
    assert resolve_provider("Gemini") is Provider.GEMINI
    with pytest.raises(UnknownProviderError):
        resolve_provider("cohere")


def test_model_gateway_dispatches_by_provider() -> None:
    class _Echo:
        closed = False

        def generate(self, prompt: str) -> str:
            return prompt.upper()

        def close(self) -> None:
            self.closed = True

    echo = _Echo()
    gw = ModelGateway({Provider.GEMINI: echo})
    assert gw.generate(Provider.GEMINI, "abc") == "ABC"
    gw.close()
    assert echo.closed


def test_model_gateway_from_settings() -> None:
    gw = ModelGateway.from_settings(Settings(gemini_api_key="k", gemini_model="m1"))
    try:
        client = gw._clients[Provider.GEMINI]
        assert isinstance(client, GeminiClient)
        assert client.url.endswith("/models/m1:generateContent")
    finally:
        gw.close()


@pytest.mark.parametrize(
    "body",
    [
        {"candidates": [{"content": {"parts": ["oops"]}}]},
        {"candidates": [{"content": {"parts": "oops"}}]},
        {"candidates": [{"content": None}]},
        ["not", "an", "object"],
    ],
)
def test_badly_shaped_body_is_wrapped(body) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=body)

    with pytest.raises(ProviderError, match="malformed"):
        _client(handler).generate("x")


def test_response_without_text_is_an_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"inlineData": {}}]}}]})

    with pytest.raises(ProviderError, match="empty response"):
        _client(handler).generate("x")
