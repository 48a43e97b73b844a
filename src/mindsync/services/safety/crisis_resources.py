"""
Crisis Resources

Localized catalog of crisis-support resources served on the crisis path.

Bundles are keyed by language tag. Unknown tags fall back to the default
language rather than erroring. The built-in catalog can be extended or
overridden with a JSON file.

LEGAL_REVIEW_REQUIRED: Resource contact information must be verified
for accuracy in each region before production use.
"""

import json
import os
from dataclasses import dataclass, field
from typing import Optional

from mindsync.config.logging_config import get_logger
from mindsync.domain.enums.crisis_severity import (
    CrisisSeverity,
    PriorityLevel,
    UrgencyLevel,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class CrisisResource:
    """
    A single crisis-support resource.

    Attributes:
        name: Resource name
        contact: Phone number, text instruction or URL
        description: Brief description
        resource_type: hotline, text, chat, website or emergency
        available_24_7: Whether available around the clock
    """

    name: str
    contact: str
    description: str = ""
    resource_type: str = "hotline"
    available_24_7: bool = True

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "contact": self.contact,
            "description": self.description,
            "type": self.resource_type,
            "available_24_7": self.available_24_7,
        }


@dataclass(frozen=True)
class ResourceBundle:
    """
    Crisis response payload for one language and severity.

    Attributes:
        language: Language the bundle was resolved to
        severity: Tier the bundle was built for
        headline: Message shown to the user
        resources: Ordered resources (most direct first)
        urgency: Urgency label
        priority: Priority label
    """

    language: str
    severity: CrisisSeverity
    headline: str
    resources: tuple[CrisisResource, ...]
    urgency: UrgencyLevel
    priority: PriorityLevel

    def to_dict(self) -> dict:
        return {
            "language": self.language,
            "severity": self.severity.label,
            "headline": self.headline,
            "resources": [r.to_dict() for r in self.resources],
            "urgency": self.urgency.value,
            "priority": self.priority.value,
        }


@dataclass
class LanguageResources:
    """Headlines per tier plus the ordered resource list for one language."""

    language: str
    headlines: dict[CrisisSeverity, str]
    resources: list[CrisisResource] = field(default_factory=list)


class ResourceCatalog:
    """
    Language-keyed crisis resource catalog.

    Pure lookup: ``resources_for`` never raises and never performs I/O.
    The optional JSON override is read once at construction.

    Usage:
        catalog = ResourceCatalog()
        bundle = catalog.resources_for("es", CrisisSeverity.HIGH)
    """

    DEFAULT_LANGUAGE = "es"

    # CLINICAL_REVIEW_REQUIRED / LEGAL_REVIEW_REQUIRED
    BUILT_IN_RESOURCES: dict[str, LanguageResources] = {
        "es": LanguageResources(
            language="es",
            headlines={
                CrisisSeverity.HIGH: (
                    "Me preocupa mucho lo que me estás compartiendo. Tu vida tiene valor y "
                    "existen personas que pueden ayudarte de inmediato. Por favor comunícate "
                    "ahora con alguno de estos recursos, disponibles 24/7. Buscar ayuda es un "
                    "acto de valentía, no de debilidad."
                ),
                CrisisSeverity.MEDIUM: (
                    "Entiendo que estás pasando por un momento muy difícil. Es importante que "
                    "no te quedes solo con estos pensamientos: habla con alguien de confianza "
                    "o con un profesional de salud mental."
                ),
                CrisisSeverity.LOW: (
                    "Gracias por confiar en mí y compartir lo que sientes. Es normal tener "
                    "momentos difíciles y estos sentimientos son temporales. Si lo necesitas, "
                    "aquí tienes recursos de apoyo."
                ),
            },
            resources=[
                CrisisResource(
                    name="Línea de Emergencias",
                    contact="123",
                    description="Emergencias en Colombia",
                    resource_type="emergency",
                ),
                CrisisResource(
                    name="Línea 106",
                    contact="106",
                    description="Línea de apoyo en salud mental",
                    resource_type="hotline",
                ),
                CrisisResource(
                    name="Crisis Text Line (español)",
                    contact="https://www.crisistextline.org/es",
                    description="Chat de crisis gratuito y confidencial",
                    resource_type="chat",
                ),
                CrisisResource(
                    name="Ministerio de Salud",
                    contact="https://www.minsalud.gov.co/",
                    description="Información y rutas de atención en salud mental",
                    resource_type="website",
                    available_24_7=False,
                ),
            ],
        ),
        "en": LanguageResources(
            language="en",
            headlines={
                CrisisSeverity.HIGH: (
                    "I'm really concerned about what you're sharing. Your life matters and "
                    "there are people who can help you right now. Please reach out to one of "
                    "these resources, available 24/7."
                ),
                CrisisSeverity.MEDIUM: (
                    "It sounds like you're going through a very hard time. You don't have to "
                    "carry these thoughts alone: talk to someone you trust or a mental health "
                    "professional."
                ),
                CrisisSeverity.LOW: (
                    "Thank you for trusting me with how you feel. Difficult moments are normal "
                    "and these feelings are temporary. Support is here if you need it."
                ),
            },
            resources=[
                CrisisResource(
                    name="988 Suicide & Crisis Lifeline",
                    contact="988",
                    description="Call or text, 24/7",
                    resource_type="hotline",
                ),
                CrisisResource(
                    name="Crisis Text Line",
                    contact="Text HOME to 741741",
                    description="Text-based crisis support",
                    resource_type="text",
                ),
                CrisisResource(
                    name="Emergency Services",
                    contact="911",
                    description="If you are in immediate danger",
                    resource_type="emergency",
                ),
            ],
        ),
        "pt": LanguageResources(
            language="pt",
            headlines={
                CrisisSeverity.HIGH: (
                    "Estou muito preocupado com o que você está compartilhando. Sua vida tem "
                    "valor e há pessoas que podem ajudar agora mesmo. Procure um destes "
                    "recursos, disponíveis 24 horas."
                ),
                CrisisSeverity.MEDIUM: (
                    "Percebo que você está passando por um momento muito difícil. Não fique "
                    "sozinho com esses pensamentos: converse com alguém de confiança ou com "
                    "um profissional de saúde mental."
                ),
                CrisisSeverity.LOW: (
                    "Obrigado por confiar em mim e compartilhar o que sente. Momentos difíceis "
                    "são normais e esses sentimentos são passageiros. Há apoio disponível."
                ),
            },
            resources=[
                CrisisResource(
                    name="CVV - Centro de Valorização da Vida",
                    contact="188",
                    description="Apoio emocional gratuito, 24 horas",
                    resource_type="hotline",
                ),
                CrisisResource(
                    name="CVV Chat",
                    contact="https://www.cvv.org.br",
                    description="Atendimento por chat",
                    resource_type="chat",
                ),
                CrisisResource(
                    name="SAMU",
                    contact="192",
                    description="Emergência médica",
                    resource_type="emergency",
                ),
            ],
        ),
    }

    def __init__(
        self,
        config_path: Optional[str] = None,
        default_language: str = DEFAULT_LANGUAGE,
    ) -> None:
        """
        Initialize catalog.

        Args:
            config_path: Optional path to JSON override file
            default_language: Fallback language for unknown tags
        """
        self._resources = dict(self.BUILT_IN_RESOURCES)

        if config_path and os.path.exists(config_path):
            self._load_config(config_path)

        if default_language not in self._resources:
            logger.warning(
                "Default crisis language not in catalog, using built-in default",
                requested=default_language,
            )
            default_language = self.DEFAULT_LANGUAGE
        self._default_language = default_language

    def _load_config(self, config_path: str) -> None:
        """
        Load resources from JSON config file.

        Format: ``{"es": {"headlines": {"high": "..."}, "resources": [{...}]}}``
        A malformed file is logged and the built-in catalog stays in use.
        """
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = json.load(f)

            loaded: dict[str, LanguageResources] = {}
            for language, language_data in data.items():
                language = language.lower()
                base = self._resources.get(language)
                headlines = dict(base.headlines) if base else {}
                for label, text in language_data.get("headlines", {}).items():
                    headlines[CrisisSeverity.from_label(label)] = text
                resources = [
                    CrisisResource(**r) for r in language_data.get("resources", [])
                ] or (list(base.resources) if base else [])
                loaded[language] = LanguageResources(
                    language=language,
                    headlines=headlines,
                    resources=resources,
                )

            self._resources.update(loaded)
            logger.info(
                "Loaded crisis resources config",
                path=config_path,
                language_count=len(loaded),
            )
        except (OSError, ValueError, TypeError, KeyError) as e:
            logger.error("Failed to load crisis resources config", path=config_path, error=str(e))

    @staticmethod
    def normalize_language(language_tag: Optional[str]) -> str:
        """Reduce a tag like ``es-CO`` to its primary subtag ``es``."""
        if not language_tag:
            return ""
        return language_tag.replace("_", "-").split("-")[0].strip().lower()

    def resources_for(
        self,
        language_tag: Optional[str],
        severity: CrisisSeverity = CrisisSeverity.HIGH,
    ) -> ResourceBundle:
        """
        Get the crisis bundle for a language and severity.

        Args:
            language_tag: User's language preference (unknown falls back)
            severity: Detected tier (NONE is served as LOW)

        Returns:
            ResourceBundle for the resolved language
        """
        language = self.normalize_language(language_tag)
        entry = self._resources.get(language)
        if entry is None:
            entry = self._resources[self._default_language]

        if severity == CrisisSeverity.NONE:
            severity = CrisisSeverity.LOW

        headline = entry.headlines.get(severity)
        if headline is None:
            headline = self._resources[self._default_language].headlines[severity]

        return ResourceBundle(
            language=entry.language,
            severity=severity,
            headline=headline,
            resources=tuple(entry.resources),
            urgency=UrgencyLevel.from_severity(severity),
            priority=PriorityLevel.from_severity(severity),
        )

    def supported_languages(self) -> list[str]:
        """List all catalog languages."""
        return list(self._resources.keys())
