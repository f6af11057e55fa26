"""Role-play prompt assembly."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from roleplay_ai.errors import InputError
from roleplay_ai.types import ChatConfig, Message

_logger = logging.getLogger(__name__)

START_MARKER = "[Start a new Chat]"
_HISTORY_WRAPPER_KEY = "submit_history"


def assemble(config: ChatConfig) -> list[Message]:
    """Build the ordered message list for a role-play turn."""
    messages: list[Message] = []

    if config.model_preset is not None:
        messages.append(
            _system(
                f"{config.model_preset}\n"
                f"You need to use {config.character_name} as your name, "
                f"and {config.user_name} refer to user"
            )
        )

    messages.append(_system(f"Character:{config.character_description}"))

    if config.scenario is not None:
        messages.append(_system(f"Scenario:{config.scenario}"))
    if config.message_example is not None:
        messages.append(_system(f"Here are examples of our conversation: {config.message_example}"))
    if config.format_guidelines is not None:
        messages.append(
            _system(f"The conversation must follow the formats: {config.format_guidelines}")
        )
    if config.other_pre_msg is not None:
        messages.append(_system(config.other_pre_msg))

    messages.append(_system(START_MARKER))
    messages.append(
        Message(role="assistant", content=config.first_message, name=config.character_name)
    )

    if config.chat_summary is not None:
        messages.append(_system(config.chat_summary))

    messages.extend(config.chat_history)
    messages.append(Message(role="user", content=config.message))
    return messages


def parse_chat_history(value: Any) -> list[Message]:
    """Normalize a host-supplied chat history into messages.

    Accepts a JSON string or an already decoded value, either the bare list
    of entries or a ``[{"submit_history": [...]}]`` wrapper. Entries without
    both ``role`` and ``content`` are dropped.
    """
    if value is None:
        return []

    if isinstance(value, str):
        text = value.strip()
        if not text or text == "[]":
            return []
        try:
            value = json.loads(text)
        except json.JSONDecodeError as exc:
            raise InputError(f"Invalid chat history format: {exc}") from exc

    entries = _unwrap_history(value)

    history: list[Message] = []
    for index, entry in enumerate(entries):
        if not (isinstance(entry, Mapping) and "role" in entry and "content" in entry):
            _logger.debug("Dropping chat history entry %d without role/content", index)
            continue
        history.append(Message.model_validate(dict(entry)))
    return history


def _unwrap_history(value: Any) -> list[Any]:
    if isinstance(value, Mapping):
        wrapped = value.get(_HISTORY_WRAPPER_KEY)
        if isinstance(wrapped, list):
            return wrapped
        raise InputError(
            "Invalid chat history format: expected an array of messages"
            f" or a '{_HISTORY_WRAPPER_KEY}' wrapper"
        )

    if isinstance(value, list):
        first = value[0] if value else None
        if isinstance(first, Mapping) and isinstance(first.get(_HISTORY_WRAPPER_KEY), list):
            return first[_HISTORY_WRAPPER_KEY]
        return value

    raise InputError(
        f"Invalid chat history format: expected an array of messages, got {type(value).__name__}"
    )


def _system(content: str) -> Message:
    return Message(role="system", content=content)
