"""Anthropic provider implementation.

Talks to the OpenAI-compatible chat completions surface, so only the
authentication headers differ from ``OpenAIProvider``.
"""

from __future__ import annotations

from roleplay_ai.providers.openai import APP_REFERER, APP_TITLE, OpenAIProvider
from roleplay_ai.types import RequestDescriptor

_API_VERSION = "2023-06-01"
_MODELS_PATH = "/models"


class AnthropicProvider(OpenAIProvider):
    """Chat Completions strategy using Anthropic key headers."""

    name = "anthropic"

    def models_request(self) -> RequestDescriptor:
        return RequestDescriptor(
            method="GET",
            url=f"{self._base_url}{_MODELS_PATH}",
            headers={
                "x-api-key": self._api_key,
                "anthropic-version": _API_VERSION,
                "Content-Type": "application/json",
            },
        )

    def _chat_headers(self) -> dict[str, str]:
        return {
            "x-api-key": self._api_key,
            "anthropic-version": _API_VERSION,
            "HTTP-Referer": APP_REFERER,
            "X-Title": APP_TITLE,
            "Content-Type": "application/json",
        }
