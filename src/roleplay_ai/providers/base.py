"""Provider-agnostic base interfaces and helpers."""

from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from roleplay_ai.errors import (
    ConfigurationError,
    ModelsNotFoundError,
    NoValidModelsError,
    ProviderError,
    ResponseShapeError,
)
from roleplay_ai.types import ChatConfig, Message, ModelDescriptor, RequestDescriptor

# Matches JSON string literals first so boolean words inside strings are left alone.
_BOOL_TOKEN = re.compile(r'"(?:\\.|[^"\\])*"|\b(?:true|false)\b', re.IGNORECASE)


class BaseProvider(ABC):
    """Abstract base class for provider strategies.

    Request construction and reply parsing are pure; ``send`` and
    ``list_models`` perform exactly one HTTP attempt each.
    """

    name: str
    # key identifying an entry of the model-list response
    model_id_key: str = "id"
    _logger = logging.getLogger(__name__)

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str,
        timeout_s: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(timeout=timeout_s, transport=transport)

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    @abstractmethod
    def build_request(self, messages: Sequence[Message], config: ChatConfig) -> RequestDescriptor:
        """Return the completion request for the assembled messages."""
        raise NotImplementedError

    @abstractmethod
    def parse_reply(self, data: Any) -> str:
        """Extract the assistant reply from a decoded response body."""
        raise NotImplementedError

    @abstractmethod
    def models_request(self) -> RequestDescriptor:
        """Return the request listing available models."""
        raise NotImplementedError

    async def list_models(self) -> list[ModelDescriptor]:
        """Fetch and normalize the provider's model list."""
        data = await self.send(self.models_request())
        return normalize_models(data, self.model_id_key, provider=self.name)

    async def send(self, request: RequestDescriptor) -> Any:
        """Perform a single HTTP attempt and decode the JSON body."""
        self._logger.debug("%s %s %s", self.name, request.method, request.url)
        try:
            response = await self._client.request(
                request.method,
                request.url,
                headers=request.headers,
                json=request.body,
            )
        except httpx.HTTPError as exc:
            raise ProviderError(self.name, f"Request to {request.url} failed: {exc}") from exc
        return self._json_or_error(response)

    def _json_or_error(self, response: httpx.Response) -> Any:
        if response.status_code >= 400:
            raise ProviderError(
                self.name,
                _upstream_message(response),
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise ResponseShapeError(self.name, "Response body is not valid JSON") from exc


def parse_extra_body(fragment: str | None) -> dict[str, Any]:
    """Parse an object-literal fragment such as ``"seed": 1, "ok": True``.

    The fragment is wrapped in braces and boolean literals are lowercased
    before decoding.
    """
    if fragment is None or not fragment.strip():
        return {}

    text = "{" + _BOOL_TOKEN.sub(_lower_bool, fragment.strip()) + "}"
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(
            f"Invalid extra body: {fragment!r} ({exc.msg}). "
            "Use JSON key/value pairs and lowercase true/false for boolean values."
        ) from exc
    return parsed


def dig(data: Any, path: Sequence[str | int]) -> Any:
    """Follow ``path`` through nested mappings/lists, or raise ``KeyError``."""
    current = data
    for key in path:
        if isinstance(key, int):
            if not isinstance(current, list) or len(current) <= key:
                raise KeyError(key)
        elif not isinstance(current, Mapping) or key not in current:
            raise KeyError(key)
        current = current[key]
    return current


def extract_reply(data: Any, path: Sequence[str | int], *, provider: str) -> str:
    """Return the trimmed string at ``path`` or raise ``ResponseShapeError``."""
    dotted = format_path(path)
    try:
        content = dig(data, path)
    except KeyError as exc:
        raise ResponseShapeError(
            provider, f"Invalid response format from AI API: missing '{dotted}'", path=dotted
        ) from exc
    if not isinstance(content, str) or not content:
        raise ResponseShapeError(
            provider,
            f"Invalid response format from AI API: '{dotted}' is empty or not text",
            path=dotted,
        )
    return content.strip()


def format_path(path: Sequence[str | int]) -> str:
    dotted = ""
    for key in path:
        if isinstance(key, int):
            dotted += f"[{key}]"
        else:
            dotted += f".{key}" if dotted else key
    return dotted


def find_model_entries(data: Any, id_key: str) -> list[Any] | None:
    """Locate the model array in a heterogeneous model-list response.

    Rules, in order: a ``data`` array, a bare top-level array, a ``models``
    array, then the first array field whose first element carries ``id_key``.
    """
    if isinstance(data, Mapping) and isinstance(data.get("data"), list):
        return data["data"]
    if isinstance(data, list):
        return data
    if isinstance(data, Mapping):
        if isinstance(data.get("models"), list):
            return data["models"]
        for value in data.values():
            first = value[0] if isinstance(value, list) and value else None
            if isinstance(first, Mapping) and id_key in first:
                return value
    return None


def normalize_models(data: Any, id_key: str, *, provider: str) -> list[ModelDescriptor]:
    """Map raw model entries to descriptors sorted by display name."""
    entries = find_model_entries(data, id_key)
    if entries is None:
        raise ModelsNotFoundError(provider)

    models: list[ModelDescriptor] = []
    for entry in entries:
        if not isinstance(entry, Mapping):
            continue
        model_id = entry.get(id_key)
        if not model_id:
            continue
        models.append(
            ModelDescriptor(
                id=str(model_id),
                name=str(entry.get("name") or model_id),
                description=str(entry.get("description") or ""),
            )
        )

    if not models:
        raise NoValidModelsError(provider, id_key)
    return sorted(models, key=lambda m: m.name.casefold())


def _lower_bool(match: re.Match[str]) -> str:
    token = match.group(0)
    return token if token.startswith('"') else token.lower()


def _upstream_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, Mapping):
        error = body.get("error")
        if isinstance(error, Mapping) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
        if body.get("message"):
            return str(body["message"])
    return response.text or response.reason_phrase
