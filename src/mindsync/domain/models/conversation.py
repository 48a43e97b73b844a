"""
Conversation Domain Model

Represents an active chat conversation: the ordered message history
plus a small mutable context bag.

PRIVACY: Message content may contain sensitive information. Conversations
live only in process memory and are dropped on session end or idle sweep.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from mindsync.domain.enums.message import MessageRole, MessageType
from mindsync.domain.time_utils import utcnow


@dataclass(frozen=True)
class ChatMessage:
    """
    A single message in a conversation.

    Immutable once created; ordering is append order.

    Attributes:
        id: Unique message identifier
        role: Author role (system/user/assistant)
        content: Message text
        timestamp: When message was created
        suggestions: Follow-up prompts attached to assistant replies
        type: Optional type tag (welcome/text/fallback/crisis_alert)
    """

    role: MessageRole
    content: str
    id: UUID = field(default_factory=uuid4)
    timestamp: datetime = field(default_factory=utcnow)
    suggestions: tuple[str, ...] = ()
    type: Optional[MessageType] = None

    def to_dict(self) -> dict:
        """Serialize message to dictionary."""
        return {
            "id": str(self.id),
            "role": self.role.value,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
            "suggestions": list(self.suggestions),
            "type": self.type.value if self.type else None,
        }

    def to_prompt_message(self) -> dict:
        """Role/content pair in chat-completion format."""
        return {"role": self.role.value, "content": self.content}


@dataclass
class ConversationContext:
    """Mutable per-conversation context."""

    current_mood: Optional[int] = None
    situation: Optional[str] = None
    session_start: datetime = field(default_factory=utcnow)
    last_activity: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        return {
            "current_mood": self.current_mood,
            "situation": self.situation,
            "session_start": self.session_start.isoformat(),
            "last_activity": self.last_activity.isoformat(),
        }


@dataclass
class ConversationSession:
    """
    Chat conversation entity.

    Attributes:
        conversation_id: Key in the conversation store
        session_id: Client-facing session identifier
        user_id: Owning user
        messages: Ordered message history
        context: Mutable context bag
    """

    conversation_id: str
    session_id: str
    user_id: UUID
    messages: list[ChatMessage] = field(default_factory=list)
    context: ConversationContext = field(default_factory=ConversationContext)

    def append(self, message: ChatMessage) -> ChatMessage:
        """Append a message and touch last activity."""
        self.messages.append(message)
        self.context.last_activity = utcnow()
        return message

    def get_recent_messages(self, count: int) -> list[ChatMessage]:
        """
        Get the most recent messages.

        Args:
            count: Window size (0 returns nothing)
        """
        if count <= 0:
            return []
        return self.messages[-count:]

    def is_owned_by(self, user_id: UUID) -> bool:
        return self.user_id == user_id

    @property
    def message_count(self) -> int:
        return len(self.messages)

    @property
    def duration_seconds(self) -> int:
        return int((utcnow() - self.context.session_start).total_seconds())

    def to_dict(self) -> dict:
        return {
            "conversation_id": self.conversation_id,
            "session_id": self.session_id,
            "user_id": str(self.user_id),
            "message_count": self.message_count,
            "context": self.context.to_dict(),
            "duration_seconds": self.duration_seconds,
        }
