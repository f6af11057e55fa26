"""OpenAI-compatible provider implementation (OpenAI, OpenRouter and friends)."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from roleplay_ai.providers.base import BaseProvider, extract_reply, parse_extra_body
from roleplay_ai.types import ChatConfig, Message, RequestDescriptor

APP_REFERER = "https://github.com/kasparchen/n8n-nodes-ai-roleplay"
APP_TITLE = "n8n Roleplay AI Node"

_CHAT_PATH = "/chat/completions"
_MODELS_PATH = "/models"
_REPLY_PATH = ("choices", 0, "message", "content")


class OpenAIProvider(BaseProvider):
    """Chat Completions strategy for OpenAI-compatible endpoints."""

    name = "openai"

    def build_request(self, messages: Sequence[Message], config: ChatConfig) -> RequestDescriptor:
        return RequestDescriptor(
            method="POST",
            url=f"{self._base_url}{_CHAT_PATH}",
            headers=self._chat_headers(),
            body=self._build_payload(messages, config),
        )

    def parse_reply(self, data: Any) -> str:
        return extract_reply(data, _REPLY_PATH, provider=self.name)

    def models_request(self) -> RequestDescriptor:
        return RequestDescriptor(
            method="GET",
            url=f"{self._base_url}{_MODELS_PATH}",
            headers={
                "Authorization": f"Bearer {self._api_key}",
                "Content-Type": "application/json",
            },
        )

    def _chat_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "HTTP-Referer": APP_REFERER,
            "X-Title": APP_TITLE,
            "Content-Type": "application/json",
        }

    @staticmethod
    def _build_payload(messages: Sequence[Message], config: ChatConfig) -> dict[str, Any]:
        # later keys win: extra body may override temperature and model
        return {
            "model": config.model_id,
            "messages": [m.to_payload() for m in messages],
            "temperature": config.temperature,
            **config.additional_fields,
            **parse_extra_body(config.extra_body),
        }
