"""
Google Gemini Provider

Prior turns are replayed as chat history (``assistant`` becomes
``model``) and the system prompt is sent as the system instruction.
"""

from typing import Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from google.generativeai.types import GenerationConfig

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

PLACEHOLDER_KEY = "CHANGE_ME"

_GEMINI_ROLES = {"user": "user", "assistant": "model"}


class GeminiProvider(LLMProvider):
    """
    Gemini provider.

    Harassment, hate and sexual content are blocked from medium
    probability; dangerous content only at high, so users can still talk
    about self-harm with the assistant.
    """

    SAFETY_SETTINGS = [
        {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
        {"category": "HARM_CATEGORY_HATE_SPEECH", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
        {"category": "HARM_CATEGORY_SEXUALLY_EXPLICIT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
        {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "threshold": "BLOCK_ONLY_HIGH"},
    ]

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        settings = settings or get_settings()
        api_key = api_key or settings.gemini.api_key.get_secret_value()
        self._model = model or settings.gemini.model
        self._configured = bool(api_key) and api_key != PLACEHOLDER_KEY
        if self._configured:
            genai.configure(api_key=api_key)

    @property
    def provider_name(self) -> str:
        return "gemini"

    @property
    def model_name(self) -> str:
        return self._model

    def is_configured(self) -> bool:
        return self._configured

    @staticmethod
    def to_history(prompt: CompletionPrompt) -> list[dict]:
        return [
            {"role": _GEMINI_ROLES[m["role"]], "parts": [m["content"]]}
            for m in prompt.conversation_history
            if m.get("role") in _GEMINI_ROLES
        ]

    async def generate(self, prompt: CompletionPrompt) -> LLMResponse:
        if not self._configured:
            raise LLMProviderError("Gemini API key not configured", provider=self.provider_name)

        chat = genai.GenerativeModel(
            model_name=self._model,
            safety_settings=self.SAFETY_SETTINGS,
            system_instruction=prompt.system_prompt,
        ).start_chat(history=self.to_history(prompt))

        try:
            response = await chat.send_message_async(
                prompt.user_message,
                generation_config=GenerationConfig(
                    max_output_tokens=prompt.max_tokens,
                    temperature=prompt.temperature,
                ),
            )
        except google_exceptions.ResourceExhausted as e:
            raise RateLimitError(self.provider_name, original_error=e) from e
        except google_exceptions.GoogleAPICallError as e:
            raise LLMProviderError(
                f"Gemini API error: {e}",
                provider=self.provider_name,
                original_error=e,
            ) from e

        feedback = getattr(response, "prompt_feedback", None)
        if feedback is not None and feedback.block_reason:
            raise ContentFilterError(self.provider_name, str(feedback.block_reason))

        try:
            content = response.text
        except ValueError as e:
            # .text raises when the candidate was stopped by a safety filter
            raise ContentFilterError(self.provider_name, str(e)) from e

        usage = getattr(response, "usage_metadata", None)
        logger.debug("Gemini completion received", model=self._model)
        return LLMResponse(
            content=content or "",
            provider=self.provider_name,
            model=self._model,
            prompt_tokens=getattr(usage, "prompt_token_count", 0) or 0,
            completion_tokens=getattr(usage, "candidates_token_count", 0) or 0,
        )
