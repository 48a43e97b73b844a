"""
Prompt Builder

Constructs the system prompt and message list sent to the language model.

The system prompt is assembled from the base MindSync instructions, the
user's therapy and communication style preferences, the reply language
and the optional self-reported session context.

CLINICAL_REVIEW_REQUIRED: System prompt templates should be validated
by mental health professionals.
"""

from dataclasses import dataclass, field
from typing import Optional

from mindsync.config.logging_config import get_logger
from mindsync.domain.models.conversation import ConversationContext
from mindsync.domain.models.user import UserPreferences

logger = get_logger(__name__)


@dataclass
class CompletionPrompt:
    """
    Complete prompt ready for the language model.

    Attributes:
        system_prompt: System/instruction prompt
        conversation_history: Windowed prior turns (role/content dicts)
        user_message: Current user message
        max_tokens: Suggested max tokens for response
        temperature: Suggested temperature setting
    """

    system_prompt: str
    conversation_history: list[dict] = field(default_factory=list)
    user_message: str = ""
    max_tokens: int = 500
    temperature: float = 0.7

    def to_messages(self) -> list[dict]:
        """
        Convert to OpenAI-style message format.

        Only user and assistant turns from the history are forwarded.
        """
        messages = [{"role": "system", "content": self.system_prompt}]
        messages.extend(
            {"role": m["role"], "content": m["content"]}
            for m in self.conversation_history
            if m.get("role") in ("user", "assistant")
        )
        if self.user_message:
            messages.append({"role": "user", "content": self.user_message})
        return messages


class PromptBuilder:
    """
    Builds MindSync system prompts.

    CLINICAL_REVIEW_REQUIRED: All prompt templates should be
    reviewed and approved by clinical team.
    """

    # CLINICAL_REVIEW_REQUIRED
    BASE_SYSTEM_PROMPT: str = """Eres MindSync, un asistente de salud mental especializado en terapia cognitiva conductual (TCC) y apoyo psicológico. Tu objetivo es proporcionar apoyo emocional, técnicas de bienestar mental y herramientas de autoayuda, especialmente dirigido a usuarios de Colombia y América Latina.

**CARACTERÍSTICAS IMPORTANTES:**
- Utiliza un lenguaje empático, cálido y comprensivo
- Evita diagnosticar condiciones médicas
- Siempre menciona que complementas (no sustituyes) la ayuda profesional
- Usa técnicas de terapia cognitiva, mindfulness y TCC
- Considera el contexto cultural latinoamericano

**TÉCNICAS QUE DEBES USAR:**
- Técnicas de respiración y relajación
- Reestructuración cognitiva
- Ejercicios de auto-reflexión
- Gestión del estrés y ansiedad
- Desarrollo de habilidades de afrontamiento

**FORMATO DE RESPUESTA:**
- Sé conciso pero completo
- Utiliza bullet points para técnicas prácticas
- Preguntas reflexivas cuando sea apropiado
- Tono profesional pero cercano"""

    LANGUAGE_INSTRUCTIONS: dict[str, str] = {
        "es": "Responde SIEMPRE en español (español colombiano principalmente).",
        "en": "ALWAYS answer in English.",
        "pt": "Responda SEMPRE em português.",
    }

    THERAPY_STYLE_PROMPTS: dict[str, str] = {
        "cognitive": "Enfoque principal: identifica pensamientos automáticos y ayuda a reestructurarlos.",
        "behavioral": "Enfoque principal: propone pasos concretos y pequeñas acciones medibles.",
        "humanistic": "Enfoque principal: escucha activa, validación y autoexploración sin juicio.",
        "integrated": "Enfoque principal: combina técnicas cognitivas, conductuales y de mindfulness según el momento.",
    }

    COMMUNICATION_STYLE_PROMPTS: dict[str, str] = {
        "supportive": "Tono: cálido y de apoyo, valida antes de sugerir.",
        "direct": "Tono: claro y directo, frases cortas.",
        "humorous": "Tono: cercano, con un toque ligero de humor cuando sea apropiado.",
        "mindful": "Tono: pausado y consciente, invita a notar el momento presente.",
    }

    def __init__(self, default_language: str = "es") -> None:
        self._default_language = default_language

    def build_system_prompt(
        self,
        preferences: Optional[UserPreferences] = None,
        context: Optional[ConversationContext] = None,
    ) -> str:
        """
        Build the system prompt for one exchange.

        Args:
            preferences: User preferences (style and language)
            context: Current session context

        Returns:
            System prompt text
        """
        preferences = preferences or UserPreferences(language=self._default_language)
        language = preferences.language
        if language not in self.LANGUAGE_INSTRUCTIONS:
            language = self._default_language

        parts = [self.BASE_SYSTEM_PROMPT, self.LANGUAGE_INSTRUCTIONS[language]]

        therapy = self.THERAPY_STYLE_PROMPTS.get(preferences.therapy_style)
        if therapy:
            parts.append(therapy)

        tone = self.COMMUNICATION_STYLE_PROMPTS.get(preferences.communication_style)
        if tone:
            parts.append(tone)

        context_line = self._build_context(context)
        if context_line:
            parts.append(context_line)

        logger.debug(
            "System prompt built",
            language=language,
            therapy_style=preferences.therapy_style,
            has_context=bool(context_line),
        )
        return "\n\n".join(parts)

    def _build_context(self, context: Optional[ConversationContext]) -> str:
        if context is None:
            return ""

        parts = []
        if context.current_mood is not None:
            parts.append(f"Estado de ánimo reportado por el usuario: {context.current_mood}/10.")
        if context.situation:
            parts.append(f"Situación descrita: {context.situation}")
        if not parts:
            return ""
        return "Contexto de la sesión: " + " ".join(parts)
