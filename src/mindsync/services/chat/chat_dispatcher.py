"""
Chat Dispatcher

Coordinates one chat exchange from user input to response.

Pipeline:
    Received -> Validated -> CrisisChecked -> CrisisResolved | Completing
    -> Persisted -> Responded

Validation failures end in Rejected before any side effect. A message
matching a crisis phrase is answered from the crisis resource catalog
and never reaches the language model. Completion failures are absorbed
by the completion client; usage-stat write failures are logged and do
not fail the request.

SAFETY: The crisis screen runs on every message, before any model call.
"""

from dataclasses import dataclass, field
from datetime import timedelta
from enum import StrEnum
from typing import Optional, Sequence

from mindsync.config import Settings, get_settings
from mindsync.config.logging_config import get_logger
from mindsync.domain.enums.crisis_severity import CrisisSeverity
from mindsync.domain.enums.message import MessageRole, MessageType
from mindsync.domain.exceptions import PersistenceWarning, ValidationError
from mindsync.domain.models.conversation import (
    ChatMessage,
    ConversationContext,
    ConversationSession,
)
from mindsync.domain.models.user import User
from mindsync.domain.time_utils import utcnow
from mindsync.infrastructure.metrics import track_chat_message, track_crisis
from mindsync.infrastructure.monitoring import capture_safety_event
from mindsync.services.chat.completion_client import CompletionClient, CompletionResult
from mindsync.services.chat.conversation_store import ConversationStore
from mindsync.services.chat.suggestion_generator import SuggestionGenerator
from mindsync.services.prompt.prompt_builder import PromptBuilder
from mindsync.services.safety.crisis_detector import CrisisDetectionResult, CrisisDetector
from mindsync.services.safety.crisis_resources import ResourceBundle, ResourceCatalog
from mindsync.services.stats.usage_stats import UsageStatsUpdater

logger = get_logger(__name__)


class DispatchState(StrEnum):
    """States a message passes through."""

    RECEIVED = "received"
    VALIDATED = "validated"
    CRISIS_CHECKED = "crisis_checked"
    CRISIS_RESOLVED = "crisis_resolved"
    COMPLETING = "completing"
    PERSISTED = "persisted"
    RESPONDED = "responded"
    REJECTED = "rejected"


class DispatchOutcome(StrEnum):
    """How the reply was produced."""

    COMPLETED = "completed"
    FALLBACK = "fallback"
    CRISIS = "crisis"


@dataclass
class MessageContext:
    """
    Optional client-supplied context for one message.

    Attributes:
        current_mood: Self-reported mood 1-10
        situation: Short description of the situation
        is_crisis: Client already flagged the message as a crisis
    """

    current_mood: Optional[int] = None
    situation: Optional[str] = None
    is_crisis: bool = False


@dataclass
class DispatchResult:
    """
    Result of dispatching one message.

    Attributes:
        outcome: completed, fallback or crisis
        reply: Assistant message (crisis headline on the crisis path)
        suggestions: Follow-up suggestions (empty on the crisis path)
        conversation_id: Conversation the exchange belongs to, if any
        detection: Crisis screen result
        resources: Crisis bundle (crisis path only)
        stats_persisted: Whether usage counters were written
        states: States visited, in order
    """

    outcome: DispatchOutcome
    reply: ChatMessage
    suggestions: list[str] = field(default_factory=list)
    conversation_id: Optional[str] = None
    detection: CrisisDetectionResult = field(default_factory=CrisisDetectionResult)
    resources: Optional[ResourceBundle] = None
    stats_persisted: bool = False
    states: list[DispatchState] = field(default_factory=list)

    @property
    def is_crisis(self) -> bool:
        return self.outcome == DispatchOutcome.CRISIS


@dataclass
class SessionStart:
    """A freshly opened conversation."""

    conversation: ConversationSession
    welcome: ChatMessage
    user: User


@dataclass
class SessionSummary:
    """Final figures for an ended conversation."""

    conversation_id: str
    session_id: str
    message_count: int
    duration_seconds: int


class ChatDispatcher:
    """
    Crisis-aware chat dispatcher.

    Usage:
        dispatcher = ChatDispatcher(store, completion, stats)
        result = await dispatcher.send_message(user, conversation_id, "hola")
    """

    WELCOME_MESSAGES: dict[str, str] = {
        "es": (
            "¡Hola{name}! Soy MindSync, tu asistente de bienestar emocional. Este es un "
            "espacio seguro para hablar de lo que sientes. ¿Cómo te encuentras hoy?"
        ),
        "en": (
            "Hi{name}! I'm MindSync, your emotional wellbeing assistant. This is a safe "
            "space to talk about how you feel. How are you doing today?"
        ),
        "pt": (
            "Olá{name}! Eu sou o MindSync, seu assistente de bem-estar emocional. Este é um "
            "espaço seguro para falar sobre o que você sente. Como você está hoje?"
        ),
    }

    def __init__(
        self,
        store: ConversationStore,
        completion_client: CompletionClient,
        stats: UsageStatsUpdater,
        detector: Optional[CrisisDetector] = None,
        catalog: Optional[ResourceCatalog] = None,
        suggestions: Optional[SuggestionGenerator] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        """
        Initialize dispatcher with its collaborators.

        Args:
            store: Conversation store
            completion_client: Language model adapter
            stats: Usage counter updater
            detector: Crisis detector
            catalog: Crisis resource catalog
            suggestions: Suggestion generator
            prompt_builder: System prompt builder
            settings: Settings override
        """
        settings = settings or get_settings()
        chat = settings.chat

        self._store = store
        self._completion = completion_client
        self._stats = stats
        self._detector = detector or CrisisDetector()
        self._catalog = catalog or ResourceCatalog(
            config_path=chat.resources_path,
            default_language=chat.default_language,
        )
        self._suggestions = suggestions or SuggestionGenerator()
        self._prompt_builder = prompt_builder or PromptBuilder(default_language=chat.default_language)

        self._max_length = chat.max_message_length
        self._history_window = chat.history_window
        self._crisis_threshold = CrisisSeverity.from_label(chat.crisis_min_severity)
        self._default_language = chat.default_language

    @property
    def store(self) -> ConversationStore:
        return self._store

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    async def start_session(
        self,
        user: User,
        context: Optional[MessageContext] = None,
    ) -> SessionStart:
        """
        Open a conversation after passing the weekly quota gate.

        Raises:
            QuotaExceededError: Weekly session quota used up
            NotFoundError: User no longer active
        """
        updated = await self._stats.start_session(user.id)

        conversation_context = ConversationContext(
            current_mood=context.current_mood if context else None,
            situation=context.situation if context else None,
        )
        conversation = await self._store.create(user.id, conversation_context)

        welcome = ChatMessage(
            role=MessageRole.ASSISTANT,
            content=self._welcome_text(updated),
            type=MessageType.WELCOME,
        )
        await self._store.append_message(conversation.conversation_id, welcome)

        logger.info(
            "Chat session started",
            user_id=str(user.id),
            conversation_id=conversation.conversation_id,
            session_id=conversation.session_id,
        )
        return SessionStart(conversation=conversation, welcome=welcome, user=updated)

    async def end_session(self, user: User, conversation_id: str) -> SessionSummary:
        """
        Close an owned conversation and drop it from the store.

        Raises:
            NotFoundError: Unknown conversation
            ForbiddenError: Conversation belongs to another user
        """
        async with self._store.exclusive(conversation_id, user.id) as conversation:
            summary = SessionSummary(
                conversation_id=conversation.conversation_id,
                session_id=conversation.session_id,
                message_count=conversation.message_count,
                duration_seconds=conversation.duration_seconds,
            )

        await self._store.delete(conversation_id)
        logger.info(
            "Chat session ended",
            user_id=str(user.id),
            conversation_id=conversation_id,
            message_count=summary.message_count,
            duration_seconds=summary.duration_seconds,
        )
        return summary

    async def get_conversation(self, user: User, conversation_id: str) -> ConversationSession:
        """Fetch an owned conversation (NotFoundError / ForbiddenError otherwise)."""
        return await self._store.get_owned(conversation_id, user.id)

    async def sweep_idle(self, max_idle: timedelta) -> int:
        return await self._store.sweep_expired(max_idle)

    # ------------------------------------------------------------------
    # Message dispatch
    # ------------------------------------------------------------------

    async def send_message(
        self,
        user: User,
        conversation_id: str,
        message: str,
        context: Optional[MessageContext] = None,
    ) -> DispatchResult:
        """
        Dispatch a message within an open conversation.

        The conversation's lock is held for the whole exchange so turns
        from concurrent sends never interleave.

        Raises:
            ValidationError: Empty or over-long message
            NotFoundError: Unknown conversation
            ForbiddenError: Conversation belongs to another user
        """
        states = [DispatchState.RECEIVED]
        text = self._validate(message, states)

        async with self._store.exclusive(conversation_id, user.id) as conversation:
            states.append(DispatchState.VALIDATED)

            if context is not None:
                if context.current_mood is not None:
                    conversation.context.current_mood = context.current_mood
                if context.situation:
                    conversation.context.situation = context.situation

            detection = self._screen(text, context, states)
            if self._is_crisis(detection):
                result = self._resolve_crisis(user, text, detection, states, route="message")
                result.conversation_id = conversation_id
                conversation.append(ChatMessage(role=MessageRole.USER, content=text))
                conversation.append(result.reply)
                states.append(DispatchState.RESPONDED)
                return result

            states.append(DispatchState.COMPLETING)
            history = conversation.get_recent_messages(self._history_window)
            conversation.append(ChatMessage(role=MessageRole.USER, content=text))

            system_prompt = self._prompt_builder.build_system_prompt(
                user.preferences, conversation.context
            )
            completion = await self._completion.complete(system_prompt, history, text)
            suggestions = self._suggestions.suggest(text)

            reply = self._assistant_reply(completion, suggestions)
            conversation.append(reply)

        result = DispatchResult(
            outcome=DispatchOutcome.FALLBACK if completion.is_fallback else DispatchOutcome.COMPLETED,
            reply=reply,
            suggestions=suggestions,
            conversation_id=conversation_id,
            detection=detection,
            states=states,
        )
        await self._persist(user, result, route="message")
        return result

    async def quick_chat(
        self,
        user: User,
        message: str,
        prior_messages: Optional[Sequence[dict]] = None,
        context: Optional[MessageContext] = None,
    ) -> DispatchResult:
        """
        Dispatch a stateless message with client-supplied history.

        Raises:
            ValidationError: Empty or over-long message
        """
        states = [DispatchState.RECEIVED]
        text = self._validate(message, states)
        states.append(DispatchState.VALIDATED)

        detection = self._screen(text, context, states)
        if self._is_crisis(detection):
            result = self._resolve_crisis(user, text, detection, states, route="quick")
            states.append(DispatchState.RESPONDED)
            return result

        states.append(DispatchState.COMPLETING)
        history = list(prior_messages or [])
        if self._history_window:
            history = history[-self._history_window:]
        else:
            history = []

        conversation_context = None
        if context is not None:
            conversation_context = ConversationContext(
                current_mood=context.current_mood,
                situation=context.situation,
            )
        system_prompt = self._prompt_builder.build_system_prompt(user.preferences, conversation_context)
        completion = await self._completion.complete(system_prompt, history, text)
        suggestions = self._suggestions.suggest(text)

        result = DispatchResult(
            outcome=DispatchOutcome.FALLBACK if completion.is_fallback else DispatchOutcome.COMPLETED,
            reply=self._assistant_reply(completion, suggestions),
            suggestions=suggestions,
            detection=detection,
            states=states,
        )
        await self._persist(user, result, route="quick")
        return result

    # ------------------------------------------------------------------
    # Pipeline steps
    # ------------------------------------------------------------------

    def _validate(self, message: Optional[str], states: list[DispatchState]) -> str:
        text = (message or "").strip()
        if not text:
            states.append(DispatchState.REJECTED)
            raise ValidationError.for_field("message", "Message is required")
        if len(text) > self._max_length:
            states.append(DispatchState.REJECTED)
            raise ValidationError.for_field(
                "message",
                f"Message cannot exceed {self._max_length} characters",
            )
        return text

    def _screen(
        self,
        text: str,
        context: Optional[MessageContext],
        states: list[DispatchState],
    ) -> CrisisDetectionResult:
        detection = self._detector.analyze(text)
        if context is not None and context.is_crisis and detection.severity < self._crisis_threshold:
            detection = CrisisDetectionResult(severity=self._crisis_threshold, matched_phrase=None)
        states.append(DispatchState.CRISIS_CHECKED)
        return detection

    def _is_crisis(self, detection: CrisisDetectionResult) -> bool:
        return detection.is_crisis and detection.severity >= self._crisis_threshold

    def _resolve_crisis(
        self,
        user: User,
        text: str,
        detection: CrisisDetectionResult,
        states: list[DispatchState],
        route: str,
    ) -> DispatchResult:
        """
        Answer from the resource catalog.

        No model call and no usage-counter increments; the event is
        logged and reported for operator review instead.
        """
        states.append(DispatchState.CRISIS_RESOLVED)
        bundle = self._catalog.resources_for(user.preferences.language, detection.severity)

        logger.warning(
            "Crisis phrase detected, serving crisis resources",
            user_id=str(user.id),
            severity=detection.severity.label,
            matched_phrase=detection.matched_phrase,
            language=bundle.language,
            urgency=bundle.urgency.value,
            route=route,
            message_length=len(text),
        )
        track_crisis(detection.severity.label, bundle.language)
        track_chat_message(route, DispatchOutcome.CRISIS.value)
        capture_safety_event(
            "Crisis resources served",
            level="error" if detection.severity == CrisisSeverity.HIGH else "warning",
            extra={
                "user_id": str(user.id),
                "severity": detection.severity.label,
                "matched_phrase": detection.matched_phrase,
                "language": bundle.language,
            },
        )

        reply = ChatMessage(
            role=MessageRole.ASSISTANT,
            content=bundle.headline,
            type=MessageType.CRISIS_ALERT,
        )
        return DispatchResult(
            outcome=DispatchOutcome.CRISIS,
            reply=reply,
            detection=detection,
            resources=bundle,
            states=states,
        )

    @staticmethod
    def _assistant_reply(completion: CompletionResult, suggestions: list[str]) -> ChatMessage:
        return ChatMessage(
            role=MessageRole.ASSISTANT,
            content=completion.text,
            suggestions=tuple(suggestions),
            type=MessageType.FALLBACK if completion.is_fallback else MessageType.TEXT,
        )

    async def _persist(self, user: User, result: DispatchResult, route: str) -> None:
        """Count the exchange; a failed write is logged, never raised."""
        try:
            await self._stats.record_exchange(user.id, messages=1, now=utcnow())
            result.stats_persisted = True
            result.states.append(DispatchState.PERSISTED)
        except PersistenceWarning as e:
            logger.error(
                "Usage stats not persisted",
                user_id=str(user.id),
                conversation_id=result.conversation_id,
                error=str(e),
            )

        result.states.append(DispatchState.RESPONDED)
        track_chat_message(route, result.outcome.value)
        logger.info(
            "Chat message dispatched",
            user_id=str(user.id),
            conversation_id=result.conversation_id,
            outcome=result.outcome.value,
            stats_persisted=result.stats_persisted,
        )

    def _welcome_text(self, user: User) -> str:
        language = user.preferences.language
        template = self.WELCOME_MESSAGES.get(language) or self.WELCOME_MESSAGES.get(
            self._default_language, self.WELCOME_MESSAGES["es"]
        )
        first_name = user.name.split()[0] if user.name.strip() else ""
        return template.format(name=f" {first_name}" if first_name else "")
