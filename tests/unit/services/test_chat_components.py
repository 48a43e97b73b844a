"""
Unit Tests for Chat Components

Tests the suggestion generator, the completion client and the
in-memory conversation store.
"""

import asyncio
from datetime import timedelta
from uuid import uuid4

import pytest

from mindsync.domain.enums.message import MessageRole
from mindsync.domain.exceptions import ForbiddenError, NotFoundError
from mindsync.domain.models.conversation import ChatMessage
from mindsync.services.chat.completion_client import CompletionClient
from mindsync.services.chat.conversation_store import InMemoryConversationStore
from mindsync.services.chat.suggestion_generator import GENERIC_SUGGESTIONS, SuggestionGenerator


class TestSuggestionGenerator:
    """Tests for SuggestionGenerator."""

    @pytest.fixture
    def generator(self) -> SuggestionGenerator:
        return SuggestionGenerator()

    def test_anxiety_keywords(self, generator: SuggestionGenerator) -> None:
        suggestions = generator.suggest("me siento ansioso")

        assert "Técnicas de relajación" in suggestions

    def test_capped_at_four(self, generator: SuggestionGenerator) -> None:
        suggestions = generator.suggest("ansiedad por el trabajo y no puedo dormir")

        assert len(suggestions) == 4
        assert suggestions[0] == "Técnicas de relajación"

    def test_generic_default(self, generator: SuggestionGenerator) -> None:
        assert generator.suggest("hola") == list(GENERIC_SUGGESTIONS[:4])

    def test_empty_message(self, generator: SuggestionGenerator) -> None:
        assert generator.suggest("") == list(GENERIC_SUGGESTIONS[:4])


class TestCompletionClient:
    """Tests for CompletionClient."""

    async def test_returns_provider_reply(self, provider_factory) -> None:
        provider = provider_factory(reply="  Te escucho.  ")
        client = CompletionClient(provider, timeout_seconds=1)

        result = await client.complete("system", [], "hola")

        assert result.text == "Te escucho."
        assert not result.is_fallback
        assert provider.calls == 1

    async def test_history_forwarded_in_order(self, provider_factory) -> None:
        provider = provider_factory()
        client = CompletionClient(provider, timeout_seconds=1)
        history = [
            ChatMessage(role=MessageRole.USER, content="uno"),
            ChatMessage(role=MessageRole.ASSISTANT, content="dos"),
        ]

        await client.complete("system", history, "tres")

        prompt = provider.prompts[0]
        assert [m["content"] for m in prompt.conversation_history] == ["uno", "dos"]
        assert prompt.user_message == "tres"

    async def test_error_yields_fallback_from_pool(self, provider_factory) -> None:
        provider = provider_factory(fail=True)
        client = CompletionClient(provider, timeout_seconds=1)

        result = await client.complete("system", [], "hola")

        assert result.is_fallback
        assert result.text in CompletionClient.FALLBACK_RESPONSES
        assert provider.calls == 1

    async def test_timeout_yields_fallback(self, provider_factory) -> None:
        provider = provider_factory(delay=1.0)
        client = CompletionClient(provider, timeout_seconds=0.05)

        result = await client.complete("system", [], "hola")

        assert result.is_fallback
        assert result.failure_reason == "timeout"
        assert provider.calls == 1

    async def test_empty_reply_yields_fallback(self, provider_factory) -> None:
        client = CompletionClient(provider_factory(reply="   "), timeout_seconds=1)

        result = await client.complete("system", [], "hola")

        assert result.is_fallback
        assert result.text.strip()

    async def test_no_provider_yields_fallback(self) -> None:
        client = CompletionClient(None)

        result = await client.complete("system", [], "hola")

        assert result.is_fallback
        assert result.failure_reason == "no_provider"

    def test_fallback_is_deterministic(self) -> None:
        client = CompletionClient(None)

        assert client.fallback_for("me siento solo") == client.fallback_for("me siento solo")

    def test_empty_fallback_pool_rejected(self) -> None:
        with pytest.raises(ValueError):
            CompletionClient(None, fallback_responses=["  "])


class TestInMemoryConversationStore:
    """Tests for InMemoryConversationStore."""

    @pytest.fixture
    def store(self) -> InMemoryConversationStore:
        return InMemoryConversationStore()

    async def test_create_allocates_ids(self, store: InMemoryConversationStore) -> None:
        user_id = uuid4()

        session = await store.create(user_id)

        assert session.session_id.startswith("session_")
        assert session.conversation_id.startswith(f"conv_{user_id.hex}_")
        assert await store.get(session.conversation_id) is session

    async def test_append_preserves_order(self, store: InMemoryConversationStore) -> None:
        session = await store.create(uuid4())
        for text in ("uno", "dos", "tres"):
            await store.append_message(
                session.conversation_id,
                ChatMessage(role=MessageRole.USER, content=text),
            )

        assert [m.content for m in session.messages] == ["uno", "dos", "tres"]

    async def test_get_owned_checks_owner(self, store: InMemoryConversationStore) -> None:
        session = await store.create(uuid4())

        with pytest.raises(ForbiddenError):
            await store.get_owned(session.conversation_id, uuid4())

    async def test_get_owned_unknown(self, store: InMemoryConversationStore) -> None:
        with pytest.raises(NotFoundError):
            await store.get_owned("conv_missing", uuid4())

    async def test_append_to_unknown_conversation(self, store: InMemoryConversationStore) -> None:
        with pytest.raises(NotFoundError):
            await store.append_message("conv_missing", ChatMessage(role=MessageRole.USER, content="x"))

        assert "conv_missing" not in store._locks

    async def test_delete(self, store: InMemoryConversationStore) -> None:
        session = await store.create(uuid4())

        assert await store.delete(session.conversation_id)
        assert not await store.delete(session.conversation_id)
        assert await store.get(session.conversation_id) is None

    async def test_exclusive_serializes_writers(self, store: InMemoryConversationStore) -> None:
        user_id = uuid4()
        session = await store.create(user_id)

        async def exchange(label: str) -> None:
            async with store.exclusive(session.conversation_id, user_id) as conv:
                conv.append(ChatMessage(role=MessageRole.USER, content=f"user-{label}"))
                await asyncio.sleep(0.01)
                conv.append(ChatMessage(role=MessageRole.ASSISTANT, content=f"assistant-{label}"))

        await asyncio.gather(exchange("a"), exchange("b"))

        contents = [m.content for m in session.messages]
        assert contents in (
            ["user-a", "assistant-a", "user-b", "assistant-b"],
            ["user-b", "assistant-b", "user-a", "assistant-a"],
        )

    async def test_exclusive_fails_after_delete(self, store: InMemoryConversationStore) -> None:
        user_id = uuid4()
        session = await store.create(user_id)
        await store.delete(session.conversation_id)

        with pytest.raises(NotFoundError):
            async with store.exclusive(session.conversation_id, user_id):
                pass

    async def test_sweep_removes_idle(self, store: InMemoryConversationStore) -> None:
        idle = await store.create(uuid4())
        active = await store.create(uuid4())
        idle.context.last_activity -= timedelta(hours=3)

        removed = await store.sweep_expired(timedelta(hours=2))

        assert removed == 1
        assert await store.get(idle.conversation_id) is None
        assert await store.get(active.conversation_id) is active
        assert len(store) == 1
