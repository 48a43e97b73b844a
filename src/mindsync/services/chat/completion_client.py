"""
Completion Client

Adapter between the chat dispatcher and the language model provider.

One attempt per message, bounded by a timeout. Any failure (transport
error, timeout, provider error, empty or malformed reply) is logged and
replaced with a fallback reply from a fixed pool, so the caller always
receives usable text.
"""

import asyncio
import hashlib
import time
from dataclasses import dataclass
from typing import Optional, Sequence

from mindsync.config.logging_config import get_logger
from mindsync.domain.exceptions import UpstreamDependencyError
from mindsync.domain.models.conversation import ChatMessage
from mindsync.infrastructure.llm.provider import LLMProvider
from mindsync.infrastructure.metrics import track_llm_request
from mindsync.services.prompt.prompt_builder import CompletionPrompt

logger = get_logger(__name__)


@dataclass(frozen=True)
class CompletionResult:
    """
    Outcome of one completion call.

    Attributes:
        text: Reply text (never empty)
        is_fallback: True when ``text`` came from the fallback pool
        provider: Provider that was called (None if none was configured)
        latency_ms: Time spent waiting on the provider
        failure_reason: Why the fallback was used
    """

    text: str
    is_fallback: bool = False
    provider: Optional[str] = None
    latency_ms: int = 0
    failure_reason: Optional[str] = None


class CompletionClient:
    """
    Single-attempt completion adapter with deterministic fallback.

    The fallback reply is chosen by hashing the user's message, so the
    same message always maps to the same reply.
    """

    # CLINICAL_REVIEW_REQUIRED
    FALLBACK_RESPONSES: tuple[str, ...] = (
        "Gracias por compartir conmigo lo que sientes. Entiendo que puede ser difícil "
        "expresar lo que hay en tu interior. ¿Qué te gustaría explorar más profundamente hoy?",
        "Escucho que estás pasando por un momento difícil. Recuerda que cada día es una nueva "
        "oportunidad para cuidar de ti mismo. ¿Hay algo específico que te gustaría trabajar?",
        "Valoro mucho que compartas tus pensamientos conmigo. El bienestar emocional es un "
        "proceso, y estar aquí hablando es un paso importante. ¿Cómo puedo apoyarte mejor?",
        "Es muy valiente de tu parte buscar apoyo. Cada persona merece sentir paz y equilibrio. "
        "¿Qué te ayudaría a sentirte un poco mejor en este momento?",
    )

    def __init__(
        self,
        provider: Optional[LLMProvider],
        *,
        timeout_seconds: float = 20.0,
        max_tokens: int = 500,
        temperature: float = 0.7,
        fallback_responses: Optional[Sequence[str]] = None,
    ) -> None:
        """
        Initialize client.

        Args:
            provider: Language model provider (None always falls back)
            timeout_seconds: Upper bound on one provider call
            max_tokens: Max tokens requested per reply
            temperature: Sampling temperature
            fallback_responses: Replacement fallback pool
        """
        self._provider = provider
        self._timeout = timeout_seconds
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._fallbacks = tuple(fallback_responses or self.FALLBACK_RESPONSES)
        if not self._fallbacks or not all(r.strip() for r in self._fallbacks):
            raise ValueError("Fallback pool must contain non-empty replies")

    @property
    def provider_name(self) -> Optional[str]:
        return self._provider.provider_name if self._provider else None

    def is_configured(self) -> bool:
        return self._provider is not None and self._provider.is_configured()

    def fallback_for(self, message: str) -> str:
        """Pick the fallback reply for ``message`` (stable across processes)."""
        digest = hashlib.sha256(message.encode("utf-8")).digest()
        index = int.from_bytes(digest[:8], "big") % len(self._fallbacks)
        return self._fallbacks[index]

    async def complete(
        self,
        system_prompt: str,
        history: Sequence[ChatMessage | dict],
        new_message: str,
    ) -> CompletionResult:
        """
        Generate a reply, substituting a fallback on any failure.

        Args:
            system_prompt: System instructions
            history: Windowed prior turns (caller truncates)
            new_message: Current user message

        Returns:
            CompletionResult; never raises for upstream failures
        """
        if self._provider is None:
            return self._fallback(new_message, None, "no_provider", 0)

        provider_name = self._provider.provider_name
        prompt = CompletionPrompt(
            system_prompt=system_prompt,
            conversation_history=[
                m.to_prompt_message() if isinstance(m, ChatMessage) else m
                for m in history
            ],
            user_message=new_message,
            max_tokens=self._max_tokens,
            temperature=self._temperature,
        )

        start = time.monotonic()
        try:
            text, usage = await self._call_provider(prompt)
        except UpstreamDependencyError as e:
            elapsed = time.monotonic() - start
            status = "timeout" if e.is_timeout else "error"
            track_llm_request(provider_name, status, elapsed)
            logger.warning(
                "Completion failed, using fallback reply",
                provider=provider_name,
                error_type=type(e).__name__,
                is_timeout=e.is_timeout,
                error=str(e),
            )
            return self._fallback(new_message, provider_name, status, int(elapsed * 1000))

        elapsed = time.monotonic() - start
        track_llm_request(provider_name, "success", elapsed, usage)
        return CompletionResult(
            text=text,
            provider=provider_name,
            latency_ms=int(elapsed * 1000),
        )

    async def _call_provider(self, prompt: CompletionPrompt) -> tuple[str, dict]:
        """
        Make the single upstream call.

        Raises:
            UpstreamDependencyError: On any failure, including empty replies
        """
        provider_name = self._provider.provider_name
        try:
            response = await asyncio.wait_for(
                self._provider.generate(prompt),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as e:
            raise UpstreamDependencyError(
                f"Completion timed out after {self._timeout}s",
                provider=provider_name,
                is_timeout=True,
                original_error=e,
            ) from e
        except UpstreamDependencyError:
            raise
        except Exception as e:
            raise UpstreamDependencyError(
                f"Unexpected provider error: {e}",
                provider=provider_name,
                original_error=e,
            ) from e

        content = getattr(response, "content", None)
        if not isinstance(content, str) or not content.strip():
            raise UpstreamDependencyError(
                "Provider returned an empty or malformed reply",
                provider=provider_name,
            )
        usage = {
            "prompt_tokens": getattr(response, "prompt_tokens", 0) or 0,
            "completion_tokens": getattr(response, "completion_tokens", 0) or 0,
        }
        return content.strip(), usage

    def _fallback(
        self,
        message: str,
        provider: Optional[str],
        reason: str,
        latency_ms: int,
    ) -> CompletionResult:
        return CompletionResult(
            text=self.fallback_for(message),
            is_fallback=True,
            provider=provider,
            latency_ms=latency_ms,
            failure_reason=reason,
        )
