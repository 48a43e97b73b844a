"""
Service Container

Builds the application's long-lived services once at startup and hands
them to request handlers through ``app.state``.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from mindsync.config import Settings
from mindsync.config.logging_config import get_logger
from mindsync.domain.time_utils import utcnow
from mindsync.infrastructure.database.connection import DatabaseManager
from mindsync.infrastructure.llm.provider import LLMProvider
from mindsync.infrastructure.llm.provider_factory import get_llm_provider
from mindsync.services.auth.auth_service import AuthService
from mindsync.services.auth.security import TokenService
from mindsync.services.chat.chat_dispatcher import ChatDispatcher
from mindsync.services.chat.completion_client import CompletionClient
from mindsync.services.chat.conversation_store import InMemoryConversationStore
from mindsync.services.progress.progress_service import ProgressService
from mindsync.services.stats.usage_stats import UsageStatsUpdater

logger = get_logger(__name__)


@dataclass
class ServiceContainer:
    """Shared services for one application instance."""

    settings: Settings
    db: DatabaseManager
    auth: AuthService
    progress: ProgressService
    dispatcher: ChatDispatcher
    completion: CompletionClient
    started_at: datetime = field(default_factory=utcnow)

    @classmethod
    def build(
        cls,
        settings: Settings,
        llm_provider: Optional[LLMProvider] = None,
    ) -> "ServiceContainer":
        """
        Wire services from settings.

        Args:
            settings: Application settings
            llm_provider: Provider override; when omitted the configured
                provider is created, and an unconfigured one (no API key)
                is replaced by fallback-only completion
        """
        db = DatabaseManager(settings)

        provider = llm_provider
        if provider is None:
            provider = get_llm_provider(settings=settings)
            if not provider.is_configured():
                logger.warning(
                    "LLM provider has no API key, chat will use fallback replies",
                    provider=provider.provider_name,
                )
                provider = None

        model_settings = settings.gemini if settings.llm_primary_provider == "gemini" else settings.openai
        completion = CompletionClient(
            provider,
            timeout_seconds=settings.chat.completion_timeout_seconds,
            max_tokens=model_settings.max_tokens,
            temperature=model_settings.temperature,
        )

        dispatcher = ChatDispatcher(
            store=InMemoryConversationStore(),
            completion_client=completion,
            stats=UsageStatsUpdater(db),
            settings=settings,
        )

        return cls(
            settings=settings,
            db=db,
            auth=AuthService(db, TokenService(settings.jwt), settings),
            progress=ProgressService(db),
            dispatcher=dispatcher,
            completion=completion,
        )

    @property
    def uptime_seconds(self) -> int:
        return int((utcnow() - self.started_at).total_seconds())
