"""
OpenAI Chat Completions Provider

The SDK client is created lazily with its retry loop disabled
(``max_retries=0``), so each chat message costs one request at most.
"""

from typing import Optional

from openai import APIError, AsyncOpenAI, RateLimitError as OpenAIRateLimitError

from mindsync.config import Settings, get_settings
from mindsync.config.logging_config import get_logger
from mindsync.infrastructure.llm.provider import (
    ContentFilterError,
    LLMProvider,
    LLMProviderError,
    LLMResponse,
    RateLimitError,
)
from mindsync.services.prompt.prompt_builder import CompletionPrompt

logger = get_logger(__name__)

PLACEHOLDER_KEY = "sk-CHANGE_ME"


class OpenAIProvider(LLMProvider):
    """
    OpenAI provider.

    Usage:
        provider = OpenAIProvider(settings=settings)
        response = await provider.generate(prompt)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        settings = settings or get_settings()
        self._api_key = api_key or settings.openai.api_key.get_secret_value()
        self._model = model or settings.openai.model
        self._timeout = settings.chat.completion_timeout_seconds
        self._client: Optional[AsyncOpenAI] = None

    @property
    def provider_name(self) -> str:
        return "openai"

    @property
    def model_name(self) -> str:
        return self._model

    def is_configured(self) -> bool:
        return bool(self._api_key) and self._api_key != PLACEHOLDER_KEY

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key, max_retries=0, timeout=self._timeout)
        return self._client

    async def generate(self, prompt: CompletionPrompt) -> LLMResponse:
        if not self.is_configured():
            raise LLMProviderError("OpenAI API key not configured", provider=self.provider_name)

        try:
            response = await self.client.chat.completions.create(
                model=self._model,
                messages=prompt.to_messages(),
                max_tokens=prompt.max_tokens,
                temperature=prompt.temperature,
                presence_penalty=0.1,
                frequency_penalty=0.1,
            )
        except OpenAIRateLimitError as e:
            raise RateLimitError(self.provider_name, original_error=e) from e
        except APIError as e:
            raise LLMProviderError(
                f"OpenAI API error: {e}",
                provider=self.provider_name,
                original_error=e,
            ) from e

        if not response.choices:
            raise LLMProviderError("OpenAI returned no choices", provider=self.provider_name)

        choice = response.choices[0]
        if choice.finish_reason == "content_filter":
            raise ContentFilterError(self.provider_name, "finish_reason=content_filter")

        usage = response.usage
        logger.debug(
            "OpenAI completion received",
            model=self._model,
            completion_tokens=usage.completion_tokens if usage else None,
        )
        return LLMResponse(
            content=choice.message.content or "",
            provider=self.provider_name,
            model=self._model,
            prompt_tokens=usage.prompt_tokens if usage else 0,
            completion_tokens=usage.completion_tokens if usage else 0,
        )
