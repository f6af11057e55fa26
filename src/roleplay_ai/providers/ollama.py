"""Ollama provider implementation."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from roleplay_ai.providers.base import BaseProvider, extract_reply, parse_extra_body
from roleplay_ai.types import ChatConfig, Message, RequestDescriptor

_CHAT_PATH = "/api/chat"
_TAGS_PATH = "/api/tags"
_REPLY_PATH = ("message", "content")


class OllamaProvider(BaseProvider):
    """Native ``/api/chat`` strategy; sampling parameters travel under ``options``."""

    name = "ollama"
    model_id_key = "name"

    def build_request(self, messages: Sequence[Message], config: ChatConfig) -> RequestDescriptor:
        return RequestDescriptor(
            method="POST",
            url=f"{self._base_url}{_CHAT_PATH}",
            headers=self._headers(),
            body=self._build_payload(messages, config),
        )

    def parse_reply(self, data: Any) -> str:
        return extract_reply(data, _REPLY_PATH, provider=self.name)

    def models_request(self) -> RequestDescriptor:
        return RequestDescriptor(
            method="GET", url=f"{self._base_url}{_TAGS_PATH}", headers=self._headers()
        )

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        # local servers usually run keyless
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    @staticmethod
    def _build_payload(messages: Sequence[Message], config: ChatConfig) -> dict[str, Any]:
        return {
            "model": config.model_id,
            "messages": [m.to_payload() for m in messages],
            "options": {
                **config.additional_fields,
                "temperature": config.temperature,
                **parse_extra_body(config.extra_body),
            },
            "stream": False,
        }
