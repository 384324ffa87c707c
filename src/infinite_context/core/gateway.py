"""Model gateway: sends a prompt to a generation provider and returns text.

Providers form a closed set. Gemini is reached over its REST
`generateContent` endpoint with httpx; one POST per call, no retry.
"""
from __future__ import annotations
import logging
from enum import Enum
from typing import Any, Protocol

import httpx

from infinite_context.common.config import Settings
from infinite_context.common.errors import ProviderError, UnknownProviderError

LOGGER = logging.getLogger("infinite_context.gateway")


class Provider(str, Enum):
    GEMINI = "gemini"


DEFAULT_PROVIDER = Provider.GEMINI


def resolve_provider(name: str | None) -> Provider:
    """Map a request selector to a Provider; None selects the default."""
    if name is None:
        return DEFAULT_PROVIDER
    try:
        return Provider(name.strip().lower())
    except ValueError:
        raise UnknownProviderError(name) from None


class TextGenerator(Protocol):
    def generate(self, prompt: str) -> str: ...

    def close(self) -> None: ...


class GeminiClient:
    """Blocking client for Gemini `models/{model}:generateContent`."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash-lite",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 120.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.model = model
        self.url = f"{base_url.rstrip('/')}/models/{model}:generateContent"
        self._headers = {"x-goog-api-key": api_key, "Content-Type": "application/json"}
        self._client = http_client or httpx.Client(timeout=timeout)

    def generate(self, prompt: str) -> str:
        payload = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        try:
            r = self._client.post(self.url, headers=self._headers, json=payload)
        except httpx.HTTPError as e:
            LOGGER.error("Gemini request failed: %s", e)
            raise ProviderError(f"Gemini API error: {e}") from e

        if r.is_error:
            detail = _error_detail(r)
            LOGGER.error("Gemini returned %s: %s", r.status_code, detail)
            raise ProviderError(f"Gemini API error: {r.status_code} {r.reason_phrase}: {detail}")

        try:
            text = _extract_text(r.json())
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            LOGGER.error("Malformed Gemini response: %s", e)
            raise ProviderError(f"Gemini API error: malformed response ({e})") from e
        if not text:
            LOGGER.error("Gemini returned no text")
            raise ProviderError("Gemini API error: empty response")
        return text

    def close(self) -> None:
        self._client.close()


def _error_detail(r: httpx.Response) -> str:
    try:
        return str(r.json()["error"]["message"])
    except (ValueError, KeyError, TypeError):
        return r.text[:500]


def _extract_text(data: dict[str, Any]) -> str:
    candidate = data["candidates"][0]
    parts = candidate["content"]["parts"]
    if not isinstance(parts, list) or not all(isinstance(part, dict) for part in parts):
        raise TypeError("candidate parts must be a list of objects")
    return "".join(str(part.get("text", "")) for part in parts)


class ModelGateway:
    """Dispatches prompts to the client registered for each provider."""

    def __init__(self, clients: dict[Provider, TextGenerator]) -> None:
        self._clients = dict(clients)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ModelGateway":
        gemini = GeminiClient(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            base_url=settings.gemini_base_url,
            timeout=settings.request_timeout_s,
        )
        return cls({Provider.GEMINI: gemini})

    def generate(self, provider: Provider, prompt: str) -> str:
        try:
            client = self._clients[provider]
        except KeyError:
            raise UnknownProviderError(str(provider.value)) from None
        return client.generate(prompt)

    def close(self) -> None:
        for client in self._clients.values():
            client.close()
