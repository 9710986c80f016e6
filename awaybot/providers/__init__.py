"""LLM provider abstraction module."""

from awaybot.providers.base import GenerationError, LLMProvider, LLMResponse
from awaybot.providers.litellm_provider import LiteLLMProvider, ProviderHealth

__all__ = [
    "GenerationError",
    "LLMProvider",
    "LLMResponse",
    "LiteLLMProvider",
    "ProviderHealth",
]
