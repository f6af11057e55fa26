"""Workflow node entry point.

The host hands over one mapping of field values per item. ``RoleplayNode``
turns each into a ``ChatConfig``, runs it through ``RoleplayClient`` and
returns one output record per item, in order.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from roleplay_ai.client import RoleplayClient
from roleplay_ai.config import get_settings
from roleplay_ai.errors import ConfigurationError, InputError, RoleplayAIError
from roleplay_ai.prompt import parse_chat_history
from roleplay_ai.types import DEFAULT_TEMPERATURE, DEFAULT_USER_NAME, ChatConfig, ProviderConfig

_logger = logging.getLogger(__name__)

OPERATIONS = ("chat", "custom")


class ChatParameters(BaseModel):
    """Per-item field values of the ``chat`` operation, keyed as the host names them."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        protected_namespaces=(),
    )

    use_custom_model: bool = False
    model: str = ""
    custom_model: str = ""

    character_name: str
    include_user_name: bool = False
    user_name: str = ""
    character_description: str
    first_message: str

    include_scenario: bool = False
    scenario: str = ""
    include_message_example: bool = False
    message_example: str = ""
    include_model_preset: bool = False
    model_preset: str = ""
    include_format_guidelines: bool = False
    format_guidelines: str = ""
    include_other_pre_msg: bool = False
    other_pre_msg: str = ""
    chat_summary: str | None = None
    chat_history: Any = None

    message: str
    include_raw_output: bool = False
    include_request_log: bool = False
    temperature: float = DEFAULT_TEMPERATURE
    additional_fields: dict[str, Any] = Field(default_factory=dict)
    extra_body: str | None = None

    @field_validator("chat_summary", mode="before")
    @classmethod
    def _stringify_summary(cls, value: Any) -> str | None:
        return None if value is None else str(value)

    @field_validator("additional_fields", mode="before")
    @classmethod
    def _default_additional_fields(cls, value: Any) -> Any:
        return {} if value is None else value

    def to_config(self) -> ChatConfig:
        """Collapse include-flag/value pairs into optional sections."""
        return ChatConfig(
            character_name=self.character_name,
            character_description=self.character_description,
            first_message=self.first_message,
            message=self.message,
            user_name=self.user_name if self.include_user_name else DEFAULT_USER_NAME,
            scenario=_gated(self.include_scenario, self.scenario),
            message_example=_gated(self.include_message_example, self.message_example),
            model_preset=_gated(self.include_model_preset, self.model_preset),
            format_guidelines=_gated(self.include_format_guidelines, self.format_guidelines),
            other_pre_msg=_gated(self.include_other_pre_msg, self.other_pre_msg),
            chat_summary=self.chat_summary,
            chat_history=parse_chat_history(self.chat_history),
            model_id=self.custom_model if self.use_custom_model else self.model,
            temperature=self.temperature,
            additional_fields=self.additional_fields,
            extra_body=self.extra_body,
            include_raw_output=self.include_raw_output,
            include_request_log=self.include_request_log,
        )


class RoleplayNode:
    """Processes a batch of workflow items sequentially."""

    def __init__(
        self,
        credentials: ProviderConfig | None = None,
        *,
        continue_on_fail: bool = False,
        timeout_s: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if credentials is None:
            settings = get_settings()
            credentials = settings.credentials()
            timeout_s = timeout_s if timeout_s is not None else settings.timeout_s
        self.credentials = credentials
        self.continue_on_fail = continue_on_fail
        self._timeout_s = timeout_s
        self._transport = transport

    async def execute(self, items: Sequence[Mapping[str, Any]]) -> list[dict[str, Any]]:
        """Run every item and return one output record per item.

        A missing API key aborts the whole batch. Other failures abort it too
        unless ``continue_on_fail`` is set, in which case the item's record
        becomes ``{"error": message}``.
        """
        results: list[dict[str, Any]] = []
        async with self._client() as client:
            for index, item in enumerate(items):
                try:
                    results.append(await self._execute_item(client, item))
                except RoleplayAIError as exc:
                    if not self.continue_on_fail:
                        raise
                    _logger.warning("Item %d failed: %s", index, exc)
                    results.append({"error": str(exc)})
        return results

    async def get_models(self) -> list[dict[str, str]]:
        """Options loader for the model selector."""
        try:
            async with self._client() as client:
                models = await client.list_models()
        except RoleplayAIError as exc:
            raise RoleplayAIError(f"Failed to load models: {exc}") from exc
        return [{"name": m.name, "value": m.id, "description": m.description} for m in models]

    def _client(self) -> RoleplayClient:
        return RoleplayClient(
            self.credentials, timeout_s=self._timeout_s, transport=self._transport
        )

    async def _execute_item(
        self, client: RoleplayClient, item: Mapping[str, Any]
    ) -> dict[str, Any]:
        operation = item.get("operation", "chat")
        if operation == "custom":
            return self.credentials.model_dump(by_alias=True)
        if operation != "chat":
            available = ", ".join(OPERATIONS)
            raise ConfigurationError(
                f"Unknown operation '{operation}'. Available operations: {available}"
            )

        try:
            params = ChatParameters.model_validate(item)
        except ValidationError as exc:
            raise InputError(f"Invalid node parameters: {exc}") from exc
        result = await client.chat(params.to_config())
        return result.to_output()


def _gated(enabled: bool, value: str) -> str | None:
    return value if enabled else None
