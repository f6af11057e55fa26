"""Role-play chat node for OpenAI-compatible, Anthropic and Ollama endpoints."""

from roleplay_ai.client import RoleplayClient
from roleplay_ai.node import RoleplayNode
from roleplay_ai.prompt import assemble, parse_chat_history
from roleplay_ai.types import ChatConfig, ChatResult, Message, ModelDescriptor, ProviderConfig

__all__ = [
    "RoleplayClient",
    "RoleplayNode",
    "assemble",
    "parse_chat_history",
    "ChatConfig",
    "ChatResult",
    "Message",
    "ModelDescriptor",
    "ProviderConfig",
]
