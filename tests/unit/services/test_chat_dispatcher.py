"""
Unit Tests for Chat Dispatcher

Tests the dispatch pipeline: validation, crisis diversion, completion
with fallback, history ordering and stats persistence.
"""

from typing import Optional

import pytest

from mindsync.config import Settings
from mindsync.config.settings import ChatSettings
from mindsync.domain.enums.crisis_severity import CrisisSeverity
from mindsync.domain.enums.message import MessageRole, MessageType
from mindsync.domain.exceptions import ForbiddenError, NotFoundError, PersistenceWarning, ValidationError
from mindsync.domain.models.user import User, UserPreferences
from mindsync.services.chat.chat_dispatcher import (
    ChatDispatcher,
    DispatchOutcome,
    DispatchState,
    MessageContext,
)
from mindsync.services.chat.completion_client import CompletionClient
from mindsync.services.chat.conversation_store import InMemoryConversationStore


class FakeStats:
    """Usage stats double recording calls."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sessions = 0
        self.exchanges = 0

    async def start_session(self, user_id, now=None) -> User:
        self.sessions += 1
        return User(id=user_id, name="Ana María")

    async def record_exchange(self, user_id, messages: int = 1, now=None) -> None:
        if self.fail:
            raise PersistenceWarning("database unavailable")
        self.exchanges += messages


def build_dispatcher(
    provider,
    stats: Optional[FakeStats] = None,
    crisis_min_severity: str = "low",
    history_window: int = 12,
) -> ChatDispatcher:
    settings = Settings(
        chat=ChatSettings(
            crisis_min_severity=crisis_min_severity,
            history_window=history_window,
            completion_timeout_seconds=0.5,
        )
    )
    return ChatDispatcher(
        store=InMemoryConversationStore(),
        completion_client=CompletionClient(provider, timeout_seconds=0.5),
        stats=stats or FakeStats(),
        settings=settings,
    )


class TestChatDispatcher:
    """Tests for ChatDispatcher."""

    @pytest.fixture
    def user(self) -> User:
        return User(name="Ana", email="ana@x.com")

    async def test_crisis_path_never_calls_provider(self, provider_factory, user: User) -> None:
        provider = provider_factory()
        stats = FakeStats()
        dispatcher = build_dispatcher(provider, stats)

        result = await dispatcher.quick_chat(user, "Ya no quiero vivir")

        assert result.outcome == DispatchOutcome.CRISIS
        assert result.detection.severity == CrisisSeverity.HIGH
        assert result.resources is not None
        assert result.reply.type == MessageType.CRISIS_ALERT
        assert provider.calls == 0
        assert stats.exchanges == 0

    async def test_crisis_resources_follow_user_language(self, provider_factory) -> None:
        user = User(name="Ann", preferences=UserPreferences(language="en"))
        dispatcher = build_dispatcher(provider_factory())

        result = await dispatcher.quick_chat(user, "I want to kill myself")

        assert result.resources.language == "en"
        assert result.resources.resources[0].contact == "988"

    async def test_threshold_lets_low_tier_through(self, provider_factory, user: User) -> None:
        provider = provider_factory()
        dispatcher = build_dispatcher(provider, crisis_min_severity="medium")

        result = await dispatcher.quick_chat(user, "hoy me siento muy mal")

        assert result.outcome == DispatchOutcome.COMPLETED
        assert provider.calls == 1

    async def test_client_crisis_flag_forces_crisis_path(self, provider_factory, user: User) -> None:
        provider = provider_factory()
        dispatcher = build_dispatcher(provider)

        result = await dispatcher.quick_chat(user, "hola", context=MessageContext(is_crisis=True))

        assert result.is_crisis
        assert provider.calls == 0

    async def test_normal_reply(self, provider_factory, user: User) -> None:
        stats = FakeStats()
        dispatcher = build_dispatcher(provider_factory(reply="Cuéntame más."), stats)

        result = await dispatcher.quick_chat(user, "me siento ansioso")

        assert result.outcome == DispatchOutcome.COMPLETED
        assert result.reply.content == "Cuéntame más."
        assert "Técnicas de relajación" in result.suggestions
        assert stats.exchanges == 1
        assert result.states[-2:] == [DispatchState.PERSISTED, DispatchState.RESPONDED]

    async def test_provider_failure_returns_fallback(self, provider_factory, user: User) -> None:
        dispatcher = build_dispatcher(provider_factory(fail=True))

        result = await dispatcher.quick_chat(user, "me siento ansioso")

        assert result.outcome == DispatchOutcome.FALLBACK
        assert result.reply.content in CompletionClient.FALLBACK_RESPONSES
        assert result.reply.type == MessageType.FALLBACK
        assert "Técnicas de relajación" in result.suggestions

    async def test_stats_failure_still_returns_reply(self, provider_factory, user: User) -> None:
        dispatcher = build_dispatcher(provider_factory(), FakeStats(fail=True))

        result = await dispatcher.quick_chat(user, "hola")

        assert result.reply.content
        assert not result.stats_persisted
        assert DispatchState.PERSISTED not in result.states

    @pytest.mark.parametrize("message", ["", "   ", "x" * 2001])
    async def test_invalid_message_rejected(self, provider_factory, user: User, message: str) -> None:
        provider = provider_factory()
        dispatcher = build_dispatcher(provider)

        with pytest.raises(ValidationError):
            await dispatcher.quick_chat(user, message)
        assert provider.calls == 0

    async def test_quick_chat_history_is_windowed(self, provider_factory, user: User) -> None:
        provider = provider_factory()
        dispatcher = build_dispatcher(provider, history_window=2)
        prior = [{"role": "user", "content": f"m{i}"} for i in range(5)]

        await dispatcher.quick_chat(user, "hola", prior_messages=prior)

        sent = provider.prompts[0].conversation_history
        assert [m["content"] for m in sent] == ["m3", "m4"]


class TestDispatcherSessions:
    """Session lifecycle through the dispatcher."""

    @pytest.fixture
    def user(self) -> User:
        return User(name="ana maría", email="ana@x.com")

    async def test_start_session_adds_welcome(self, provider_factory, user: User) -> None:
        stats = FakeStats()
        dispatcher = build_dispatcher(provider_factory(), stats)

        started = await dispatcher.start_session(user)

        assert stats.sessions == 1
        assert started.welcome.type == MessageType.WELCOME
        assert "Ana" in started.welcome.content
        assert started.conversation.messages == [started.welcome]

    async def test_sequential_sends_keep_turn_order(self, provider_factory, user: User) -> None:
        provider = provider_factory(reply="respuesta")
        dispatcher = build_dispatcher(provider)
        started = await dispatcher.start_session(user)
        conversation_id = started.conversation.conversation_id

        await dispatcher.send_message(user, conversation_id, "primero")
        await dispatcher.send_message(user, conversation_id, "segundo")

        conversation = await dispatcher.get_conversation(user, conversation_id)
        turns = [(m.role, m.content) for m in conversation.messages[1:]]
        assert turns == [
            (MessageRole.USER, "primero"),
            (MessageRole.ASSISTANT, "respuesta"),
            (MessageRole.USER, "segundo"),
            (MessageRole.ASSISTANT, "respuesta"),
        ]

    async def test_history_excludes_current_message(self, provider_factory, user: User) -> None:
        provider = provider_factory()
        dispatcher = build_dispatcher(provider)
        started = await dispatcher.start_session(user)

        await dispatcher.send_message(user, started.conversation.conversation_id, "hola")

        prompt = provider.prompts[0]
        assert prompt.user_message == "hola"
        assert all(m["content"] != "hola" for m in prompt.conversation_history)

    async def test_crisis_in_session_appends_alert(self, provider_factory, user: User) -> None:
        provider = provider_factory()
        dispatcher = build_dispatcher(provider)
        started = await dispatcher.start_session(user)
        conversation_id = started.conversation.conversation_id

        result = await dispatcher.send_message(user, conversation_id, "quiero lastimarme")

        assert result.is_crisis
        assert provider.calls == 0
        conversation = await dispatcher.get_conversation(user, conversation_id)
        assert conversation.messages[-1].type == MessageType.CRISIS_ALERT
        assert conversation.messages[-2].content == "quiero lastimarme"

    async def test_unknown_conversation(self, provider_factory, user: User) -> None:
        dispatcher = build_dispatcher(provider_factory())

        with pytest.raises(NotFoundError):
            await dispatcher.send_message(user, "conv_missing", "hola")

    async def test_other_users_conversation(self, provider_factory, user: User) -> None:
        dispatcher = build_dispatcher(provider_factory())
        started = await dispatcher.start_session(user)

        with pytest.raises(ForbiddenError):
            await dispatcher.send_message(User(name="Eva"), started.conversation.conversation_id, "hola")

    async def test_end_session_removes_conversation(self, provider_factory, user: User) -> None:
        dispatcher = build_dispatcher(provider_factory())
        started = await dispatcher.start_session(user)
        conversation_id = started.conversation.conversation_id
        await dispatcher.send_message(user, conversation_id, "hola")

        summary = await dispatcher.end_session(user, conversation_id)

        assert summary.message_count == 3
        with pytest.raises(NotFoundError):
            await dispatcher.get_conversation(user, conversation_id)
