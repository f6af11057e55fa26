"""Provider definitions for roleplay_ai."""

from .anthropic import AnthropicProvider
from .base import BaseProvider, parse_extra_body
from .ollama import OllamaProvider
from .openai import OpenAIProvider

PROVIDERS: dict[str, type[BaseProvider]] = {
    OpenAIProvider.name: OpenAIProvider,
    AnthropicProvider.name: AnthropicProvider,
    OllamaProvider.name: OllamaProvider,
}

__all__ = [
    "BaseProvider",
    "OpenAIProvider",
    "AnthropicProvider",
    "OllamaProvider",
    "PROVIDERS",
    "parse_extra_body",
]
