"""
LLM Provider Interface

Contract between the completion client and a hosted language model.

A provider turns one CompletionPrompt into one reply with a single
upstream request. Timeouts, fallback replies and metrics belong to the
completion client, so providers neither retry nor swallow errors: any
failure surfaces as an LLMProviderError.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from mindsync.domain.exceptions import UpstreamDependencyError
from mindsync.services.prompt.prompt_builder import CompletionPrompt


@dataclass
class LLMResponse:
    """
    One model reply.

    Attributes:
        content: Reply text as returned (may be empty)
        provider: Provider name
        model: Model that produced the reply
        prompt_tokens: Input tokens billed, when reported
        completion_tokens: Output tokens billed, when reported
    """

    content: str
    provider: str = ""
    model: str = ""
    prompt_tokens: int = 0
    completion_tokens: int = 0


class LLMProvider(ABC):
    """Hosted language model reachable through a vendor SDK."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Short name used in logs and metric labels."""

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Model identifier requests are sent to."""

    @abstractmethod
    def is_configured(self) -> bool:
        """True when credentials are present; unconfigured providers are never called."""

    @abstractmethod
    async def generate(self, prompt: CompletionPrompt) -> LLMResponse:
        """
        Send the prompt and return the reply.

        Raises:
            LLMProviderError: Upstream rejected or failed the request
        """


class LLMProviderError(UpstreamDependencyError):
    """Upstream model call failed."""

    def __init__(
        self,
        message: str,
        provider: str,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, provider=provider, original_error=original_error)


class RateLimitError(LLMProviderError):
    """Vendor quota or rate limit hit."""

    def __init__(self, provider: str, original_error: Optional[Exception] = None) -> None:
        super().__init__(f"Rate limit exceeded for {provider}", provider, original_error)


class ContentFilterError(LLMProviderError):
    """Vendor safety filter refused the prompt or the reply."""

    def __init__(self, provider: str, reason: str = "") -> None:
        super().__init__(f"Content filtered by {provider}: {reason}", provider)
        self.reason = reason
