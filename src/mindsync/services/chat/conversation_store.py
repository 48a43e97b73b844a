"""
Conversation Store

Keyed store of active chat conversations.

The store is an explicit dependency of the chat dispatcher, constructed
at application startup and torn down at shutdown. The in-memory
implementation is process-local: conversations do not survive a restart
and are not shared between instances.

Concurrency: every conversation has its own ``asyncio.Lock``. Writers to
the same conversation are serialized; different conversations never
wait on each other.
"""

import asyncio
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncIterator, Optional
from uuid import UUID, uuid4

from mindsync.config.logging_config import get_logger
from mindsync.domain.exceptions import ForbiddenError, NotFoundError
from mindsync.domain.models.conversation import (
    ChatMessage,
    ConversationContext,
    ConversationSession,
)
from mindsync.domain.time_utils import utcnow
from mindsync.infrastructure.metrics import ACTIVE_CONVERSATIONS

logger = get_logger(__name__)


class ConversationStore(ABC):
    """
    Conversation store interface.

    Implementations must serialize writers per conversation and
    must not block operations on other conversations.
    """

    @abstractmethod
    async def create(
        self,
        user_id: UUID,
        context: Optional[ConversationContext] = None,
    ) -> ConversationSession:
        """Allocate identifiers and an empty conversation for ``user_id``."""
        pass

    @abstractmethod
    async def get(self, conversation_id: str) -> Optional[ConversationSession]:
        """Get a conversation without any ownership check."""
        pass

    @abstractmethod
    async def append_message(self, conversation_id: str, message: ChatMessage) -> None:
        """Append one message under the conversation's lock."""
        pass

    @abstractmethod
    async def delete(self, conversation_id: str) -> bool:
        """Remove a conversation. Returns False if it did not exist."""
        pass

    @abstractmethod
    def exclusive(
        self,
        conversation_id: str,
        user_id: UUID,
    ):
        """
        Hold the conversation's lock for a whole exchange.

        Async context manager yielding the ownership-checked session.
        """
        pass

    @abstractmethod
    async def sweep_expired(self, max_idle: timedelta) -> int:
        """Drop conversations idle for longer than ``max_idle``."""
        pass

    async def get_owned(self, conversation_id: str, user_id: UUID) -> ConversationSession:
        """
        Fetch a conversation and verify its owner in one step.

        Raises:
            NotFoundError: Unknown conversation
            ForbiddenError: Conversation belongs to another user
        """
        session = await self.get(conversation_id)
        if session is None:
            raise NotFoundError("Conversation not found")
        if not session.is_owned_by(user_id):
            logger.warning(
                "Conversation ownership mismatch",
                conversation_id=conversation_id,
                user_id=str(user_id),
            )
            raise ForbiddenError("Conversation belongs to another user")
        return session


class InMemoryConversationStore(ConversationStore):
    """
    Process-local conversation store.

    Usage:
        store = InMemoryConversationStore()
        session = await store.create(user_id)
        async with store.exclusive(session.conversation_id, user_id) as conv:
            conv.append(message)
    """

    def __init__(self) -> None:
        self._sessions: dict[str, ConversationSession] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, conversation_id: str) -> asyncio.Lock:
        lock = self._locks.get(conversation_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[conversation_id] = lock
        return lock

    @staticmethod
    def _new_ids(user_id: UUID) -> tuple[str, str]:
        """Session and conversation ids: user, millisecond timestamp, random suffix."""
        millis = int(utcnow().timestamp() * 1000)
        session_id = f"session_{millis}_{uuid4().hex[:12]}"
        conversation_id = f"conv_{user_id.hex}_{millis}_{uuid4().hex[:12]}"
        return session_id, conversation_id

    async def create(
        self,
        user_id: UUID,
        context: Optional[ConversationContext] = None,
    ) -> ConversationSession:
        session_id, conversation_id = self._new_ids(user_id)
        while conversation_id in self._sessions:
            session_id, conversation_id = self._new_ids(user_id)

        session = ConversationSession(
            conversation_id=conversation_id,
            session_id=session_id,
            user_id=user_id,
            context=context or ConversationContext(),
        )
        self._sessions[conversation_id] = session
        self._locks[conversation_id] = asyncio.Lock()
        ACTIVE_CONVERSATIONS.set(len(self._sessions))

        logger.debug(
            "Conversation created",
            conversation_id=conversation_id,
            user_id=str(user_id),
        )
        return session

    async def get(self, conversation_id: str) -> Optional[ConversationSession]:
        return self._sessions.get(conversation_id)

    async def append_message(self, conversation_id: str, message: ChatMessage) -> None:
        if conversation_id not in self._sessions:
            raise NotFoundError("Conversation not found")

        async with self._lock_for(conversation_id):
            session = self._sessions.get(conversation_id)
            if session is None:
                raise NotFoundError("Conversation not found")
            session.append(message)

    @asynccontextmanager
    async def exclusive(
        self,
        conversation_id: str,
        user_id: UUID,
    ) -> AsyncIterator[ConversationSession]:
        # Unknown ids fail fast without allocating a lock
        await self.get_owned(conversation_id, user_id)

        async with self._lock_for(conversation_id):
            # Re-check: the conversation may have ended while waiting
            session = await self.get_owned(conversation_id, user_id)
            yield session

    async def delete(self, conversation_id: str) -> bool:
        async with self._lock_for(conversation_id):
            removed = self._sessions.pop(conversation_id, None)
        self._locks.pop(conversation_id, None)
        ACTIVE_CONVERSATIONS.set(len(self._sessions))

        if removed is not None:
            logger.debug("Conversation deleted", conversation_id=conversation_id)
        return removed is not None

    async def sweep_expired(self, max_idle: timedelta) -> int:
        """
        Drop idle conversations.

        Conversations with an exchange in flight (lock held) are skipped.
        """
        cutoff = utcnow() - max_idle
        expired = [
            conversation_id
            for conversation_id, session in list(self._sessions.items())
            if session.context.last_activity < cutoff
            and not self._lock_for(conversation_id).locked()
        ]

        removed = 0
        for conversation_id in expired:
            if await self.delete(conversation_id):
                removed += 1

        if removed:
            logger.info("Idle conversations swept", removed=removed, remaining=len(self._sessions))
        return removed

    def __len__(self) -> int:
        return len(self._sessions)
