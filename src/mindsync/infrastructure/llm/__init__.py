"""Hosted language model providers."""

from mindsync.infrastructure.llm.provider import (
    ContentFilterError,
    LLMProvider,
    LLMProviderError,
    LLMResponse,
    RateLimitError,
)
from mindsync.infrastructure.llm.provider_factory import LLMProviderType, get_llm_provider

__all__ = [
    "LLMProvider",
    "LLMResponse",
    "LLMProviderError",
    "RateLimitError",
    "ContentFilterError",
    "LLMProviderType",
    "get_llm_provider",
]
