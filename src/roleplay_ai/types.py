"""Request, response and configuration models shared by all providers."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

ProviderType = Literal["openai", "anthropic", "ollama"]

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_USER_NAME = "you"
DEFAULT_TEMPERATURE = 0.9


class Message(BaseModel):
    """Single chat message.

    History entries are replayed verbatim, so unknown keys are kept and no
    field is narrowed to a specific type.
    """

    model_config = ConfigDict(extra="allow")

    role: Any
    content: Any
    name: Any = None

    def to_payload(self) -> dict[str, Any]:
        """Serialize only the keys that were actually set."""
        return self.model_dump(exclude_unset=True)


class ChatConfig(BaseModel):
    """Everything the prompt assembler and request builder need for one item.

    Each optional section is either absent (``None``) or non-blank text.
    """

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    character_name: str
    character_description: str
    first_message: str
    message: str
    user_name: str = DEFAULT_USER_NAME

    scenario: str | None = None
    message_example: str | None = None
    model_preset: str | None = None
    format_guidelines: str | None = None
    other_pre_msg: str | None = None
    chat_summary: str | None = None

    chat_history: list[Message] = Field(default_factory=list)

    model_id: str = ""
    temperature: float = DEFAULT_TEMPERATURE
    additional_fields: dict[str, Any] = Field(default_factory=dict)
    extra_body: str | None = None

    include_raw_output: bool = False
    include_request_log: bool = False

    @field_validator(
        "scenario",
        "message_example",
        "model_preset",
        "format_guidelines",
        "other_pre_msg",
        "chat_summary",
        "extra_body",
    )
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value

    @field_validator("user_name")
    @classmethod
    def _default_user_name(cls, value: str) -> str:
        return value or DEFAULT_USER_NAME


class ProviderConfig(BaseModel):
    """Resolved credentials for a single invocation."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    api_key: str = Field(default="", alias="apiKey")
    base_url: str = Field(default=DEFAULT_BASE_URL, alias="baseUrl")
    provider_type: ProviderType = Field(default="openai", alias="providerType")

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class ModelDescriptor(BaseModel):
    """Entry of a provider's model list."""

    id: str
    name: str
    description: str = ""


class RequestDescriptor(BaseModel):
    """Fully built outgoing HTTP request."""

    model_config = ConfigDict(frozen=True)

    method: Literal["GET", "POST"] = "POST"
    url: str
    headers: dict[str, str]
    body: dict[str, Any] | None = None


class ChatResult(BaseModel):
    """Per-item outcome of a chat operation."""

    response: str
    # assembled messages plus the reply, only when raw output is requested
    raw_data: list[Message] | None = None
    log: RequestDescriptor | None = None

    def to_output(self) -> dict[str, Any]:
        """Shape the result as a host output record."""
        output: dict[str, Any] = {"response": self.response}
        if self.raw_data is not None:
            output["raw_data"] = [m.to_payload() for m in self.raw_data]
        if self.log is not None:
            output["log"] = self.log.model_dump()
        return output
