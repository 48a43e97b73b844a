"""
Chat Endpoints

Stateless quick chat plus the session lifecycle: start (quota gated),
message, end and history.

A completion-service outage never turns into a 5xx here: the dispatcher
answers with a fallback reply instead.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from mindsync.api.dependencies import get_container, get_current_user
from mindsync.api.schemas import (
    ChatContextInput,
    ConversationResponse,
    EndSessionRequest,
    MessageResponse,
    QuickChatRequest,
    QuickChatResponse,
    SendMessageRequest,
    SendMessageResponse,
    SessionEndResponse,
    SessionStartRequest,
    SessionStartResponse,
)
from mindsync.config.logging_config import get_logger
from mindsync.domain.models.user import User
from mindsync.services.chat.chat_dispatcher import MessageContext
from mindsync.services.container import ServiceContainer

logger = get_logger(__name__)
router = APIRouter()


def _to_context(context: Optional[ChatContextInput]) -> Optional[MessageContext]:
    if context is None:
        return None
    return MessageContext(
        current_mood=context.current_mood,
        situation=context.situation,
        is_crisis=context.is_crisis,
    )


@router.post("", response_model=QuickChatResponse, summary="Quick chat")
async def quick_chat(
    request: QuickChatRequest,
    user: User = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
) -> QuickChatResponse:
    """
    Answer a single message with optional client-held history.

    Crisis messages are answered with crisis resources
    (``type="crisis"``, ``isEmergency=true``).
    """
    result = await container.dispatcher.quick_chat(
        user,
        request.message,
        prior_messages=[m.model_dump() for m in request.messages],
        context=_to_context(request.context),
    )
    return QuickChatResponse.from_result(result)


@router.post("/session/start", response_model=SessionStartResponse, summary="Start a chat session")
async def start_session(
    request: Optional[SessionStartRequest] = None,
    user: User = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
) -> SessionStartResponse:
    """Open a conversation; 429 once the weekly quota for the tier is used up."""
    started = await container.dispatcher.start_session(
        user,
        _to_context(request.context) if request else None,
    )
    return SessionStartResponse(
        session_id=started.conversation.session_id,
        conversation_id=started.conversation.conversation_id,
        welcome_message=MessageResponse.from_message(started.welcome),
        sessions_this_week=started.user.stats.sessions_this_week,
        weekly_quota=started.user.weekly_session_quota,
    )


@router.post("/message", response_model=SendMessageResponse, summary="Send a message")
async def send_message(
    request: SendMessageRequest,
    user: User = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
) -> SendMessageResponse:
    result = await container.dispatcher.send_message(
        user,
        request.conversation_id,
        request.message,
        context=_to_context(request.context),
    )
    return SendMessageResponse.from_result(result)


@router.post("/session/end", response_model=SessionEndResponse, summary="End a chat session")
async def end_session(
    request: EndSessionRequest,
    user: User = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
) -> SessionEndResponse:
    summary = await container.dispatcher.end_session(user, request.conversation_id)
    return SessionEndResponse(
        conversation_id=summary.conversation_id,
        session_id=summary.session_id,
        message_count=summary.message_count,
        duration_seconds=summary.duration_seconds,
    )


@router.get(
    "/conversation/{conversation_id}",
    response_model=ConversationResponse,
    summary="Conversation history",
)
async def get_conversation(
    conversation_id: str,
    user: User = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
) -> ConversationResponse:
    conversation = await container.dispatcher.get_conversation(user, conversation_id)
    return ConversationResponse.from_conversation(conversation)
