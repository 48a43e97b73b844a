"""
LLM Provider Factory

Selects the provider named by ``MINDSYNC_LLM_PRIMARY_PROVIDER``
(``openai`` or ``gemini``). Vendor SDKs are imported only for the
provider actually built.
"""

from enum import StrEnum
from typing import Optional

from mindsync.config import Settings, get_settings
from mindsync.config.logging_config import get_logger
from mindsync.infrastructure.llm.provider import LLMProvider

logger = get_logger(__name__)


class LLMProviderType(StrEnum):
    OPENAI = "openai"
    GEMINI = "gemini"


def get_llm_provider(
    provider_type: Optional[LLMProviderType] = None,
    settings: Optional[Settings] = None,
) -> LLMProvider:
    """
    Build the configured provider.

    The service container calls this once at startup; the provider is
    shared by every request.

    Raises:
        ValueError: Unknown provider name
    """
    settings = settings or get_settings()
    provider_type = LLMProviderType(provider_type or settings.llm_primary_provider)

    if provider_type is LLMProviderType.GEMINI:
        from mindsync.infrastructure.llm.gemini_provider import GeminiProvider

        provider: LLMProvider = GeminiProvider(settings=settings)
    else:
        from mindsync.infrastructure.llm.openai_provider import OpenAIProvider

        provider = OpenAIProvider(settings=settings)

    logger.info(
        "LLM provider created",
        provider=provider.provider_name,
        model=provider.model_name,
        configured=provider.is_configured(),
    )
    return provider
