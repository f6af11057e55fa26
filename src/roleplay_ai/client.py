"""Async client orchestrating prompt assembly and provider calls."""

from __future__ import annotations

import logging

import httpx

from roleplay_ai.errors import ConfigurationError, UnsupportedProviderError
from roleplay_ai.prompt import assemble
from roleplay_ai.providers import PROVIDERS, BaseProvider
from roleplay_ai.types import (
    ChatConfig,
    ChatResult,
    Message,
    ModelDescriptor,
    ProviderConfig,
    RequestDescriptor,
)

REDACTED = "[redacted]"
_SECRET_HEADERS = frozenset({"authorization", "x-api-key"})

_logger = logging.getLogger(__name__)


class RoleplayClient:
    """High-level coordinator for one set of credentials.

    The provider strategy is chosen once, from ``credentials.provider_type``.
    """

    def __init__(
        self,
        credentials: ProviderConfig,
        *,
        timeout_s: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not credentials.api_key and credentials.provider_type != "ollama":
            raise ConfigurationError("No valid API key provided")
        self.credentials = credentials
        self.provider = get_provider(credentials, timeout_s=timeout_s, transport=transport)

    async def __aenter__(self) -> RoleplayClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.provider.aclose()

    async def chat(self, config: ChatConfig) -> ChatResult:
        """Assemble the prompt, call the provider once and shape the result."""
        messages = assemble(config)
        request = self.provider.build_request(messages, config)
        _logger.debug(
            "Sending %d messages to %s model %r", len(messages), self.provider.name, config.model_id
        )
        data = await self.provider.send(request)
        reply = self.provider.parse_reply(data)

        result = ChatResult(response=reply)
        if config.include_raw_output:
            result.raw_data = [
                *messages,
                Message(role="assistant", content=reply, name=config.character_name),
            ]
        if config.include_request_log:
            result.log = redact_request(request)
        return result

    async def list_models(self) -> list[ModelDescriptor]:
        """Return the provider's models sorted by display name."""
        return await self.provider.list_models()


def get_provider(
    credentials: ProviderConfig,
    *,
    timeout_s: float | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> BaseProvider:
    """Instantiate the strategy registered for the credential's provider tag."""
    # ProviderType is a Literal; this guards PROVIDERS drifting out of sync with it
    try:
        provider_cls = PROVIDERS[credentials.provider_type]
    except KeyError as exc:
        raise UnsupportedProviderError(credentials.provider_type) from exc
    return provider_cls(
        api_key=credentials.api_key,
        base_url=credentials.base_url,
        timeout_s=timeout_s,
        transport=transport,
    )


def redact_request(request: RequestDescriptor) -> RequestDescriptor:
    """Copy of ``request`` without the message list or credential values."""
    headers = {
        key: REDACTED if key.lower() in _SECRET_HEADERS else value
        for key, value in request.headers.items()
    }
    body = dict(request.body or {})
    if "messages" in body:
        body["messages"] = REDACTED
    return request.model_copy(update={"headers": headers, "body": body})
