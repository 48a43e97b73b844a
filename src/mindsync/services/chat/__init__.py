"""
Chat services: conversation store, completion client, suggestions and dispatch.
"""

from mindsync.services.chat.chat_dispatcher import (
    ChatDispatcher,
    DispatchOutcome,
    DispatchResult,
    DispatchState,
    MessageContext,
    SessionStart,
    SessionSummary,
)
from mindsync.services.chat.completion_client import CompletionClient, CompletionResult
from mindsync.services.chat.conversation_store import (
    ConversationStore,
    InMemoryConversationStore,
)
from mindsync.services.chat.suggestion_generator import SuggestionGenerator

__all__ = [
    "ChatDispatcher",
    "DispatchOutcome",
    "DispatchResult",
    "DispatchState",
    "MessageContext",
    "SessionStart",
    "SessionSummary",
    "CompletionClient",
    "CompletionResult",
    "ConversationStore",
    "InMemoryConversationStore",
    "SuggestionGenerator",
]
