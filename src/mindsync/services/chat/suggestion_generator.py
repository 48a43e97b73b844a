"""
Suggestion Generator

Maps keywords in the user's message to short follow-up prompts.
"""

from typing import Optional

MAX_SUGGESTIONS = 4

# Scanned in order; each matching category contributes all its suggestions
SUGGESTION_CATEGORIES: tuple[tuple[str, tuple[str, ...], tuple[str, ...]], ...] = (
    (
        "anxiety",
        ("ansiedad", "ansios", "nervios", "estres", "estrés", "anxiety", "anxious", "stress"),
        ("Técnicas de relajación", "Ejercicios de respiración", "Mindfulness"),
    ),
    (
        "sadness",
        ("triste", "depresion", "depresión", "mal", "sad", "depressed"),
        ("Actividades que disfruto", "Reflexionar sobre logros", "Hablar con alguien de confianza"),
    ),
    (
        "sleep",
        ("sueno", "sueño", "dormir", "insomnio", "sleep", "insomnia"),
        ("Rutina de sueño", "Técnicas de relajación nocturna", "Higiene del sueño"),
    ),
    (
        "work",
        ("trabajo", "laboral", "jefe", "work", "boss"),
        ("Gestión del estrés laboral", "Comunicación asertiva", "Equilibrio vida-trabajo"),
    ),
    (
        "relationships",
        ("familia", "pareja", "relacion", "relación", "family", "partner", "relationship"),
        ("Comunicación efectiva", "Límites saludables", "Resolución de conflictos"),
    ),
)

GENERIC_SUGGESTIONS: tuple[str, ...] = (
    "Cuéntame más sobre esto",
    "¿Cómo te hace sentir?",
    "¿Qué has intentado antes?",
    "Practicar mindfulness",
    "Ejercicios de gratitud",
)


class SuggestionGenerator:
    """
    Keyword-category suggestion generator.

    Deterministic: the same message always yields the same list,
    capped at four items in category-scan order.
    """

    def __init__(self, max_suggestions: int = MAX_SUGGESTIONS) -> None:
        self._max = max_suggestions

    def suggest(self, message: Optional[str]) -> list[str]:
        """
        Derive follow-up suggestions from a user message.

        Falls back to a generic list when no category matches.
        """
        lowered = (message or "").lower()
        suggestions: list[str] = []
        for _, keywords, items in SUGGESTION_CATEGORIES:
            if any(keyword in lowered for keyword in keywords):
                suggestions.extend(items)

        if not suggestions:
            suggestions = list(GENERIC_SUGGESTIONS)

        return suggestions[: self._max]
