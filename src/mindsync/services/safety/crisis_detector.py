"""
Crisis Detector

Screens free text for crisis-indicating phrases and returns the highest
matching severity tier.

Matching is case-insensitive substring containment: a phrase embedded in
a longer word still matches. This over-triggers on some inputs and is a
known limitation; changing it to word-boundary matching changes which
messages reach the crisis path.

SAFETY-CRITICAL: This module decides whether a message bypasses the
language model.

CLINICAL_VALIDATION_REQUIRED: Phrase lists are a starting configuration
and require clinical review.
"""

from dataclasses import dataclass
from typing import Optional

from mindsync.domain.enums.crisis_severity import CrisisSeverity


@dataclass(frozen=True)
class CrisisDetectionResult:
    """
    Result of screening one message.

    Attributes:
        severity: Highest matching tier (NONE if nothing matched)
        matched_phrase: First phrase matched in that tier
    """

    severity: CrisisSeverity = CrisisSeverity.NONE
    matched_phrase: Optional[str] = None

    @property
    def is_crisis(self) -> bool:
        return self.severity > CrisisSeverity.NONE

    def to_dict(self) -> dict:
        return {
            "severity": self.severity.label,
            "matched_phrase": self.matched_phrase,
        }


class CrisisDetector:
    """
    Keyword-tier crisis detector.

    Deterministic and total: every string (including the empty string)
    yields a result, and no input raises.

    Usage:
        detector = CrisisDetector()
        severity = detector.detect("no quiero vivir")  # CrisisSeverity.HIGH
    """

    # CLINICAL_VALIDATION_REQUIRED
    # Phrases are stored lowercase; tiers are scanned highest first.
    KEYWORDS: dict[CrisisSeverity, tuple[str, ...]] = {
        CrisisSeverity.HIGH: (
            "suicid",
            "suicidio",
            "matarme",
            "matarmé",
            "no quiero vivir",
            "me quiero morir",
            "quiero morir",
            "kill myself",
            "suicide",
            "end my life",
            "acabar con todo",
            "terminar con todo",
            "cannot take it anymore",
            "muy triste para vivir",
        ),
        CrisisSeverity.MEDIUM: (
            "lastimarme",
            "autolesionar",
            "no puedo más",
            "quiero desaparecer",
            "hurt myself",
            "no vale la pena",
            "no sirvo para nada",
            "no veo salida",
            "mejor sin mí",
            "desesperacion",
        ),
        CrisisSeverity.LOW: (
            "muy mal",
            "horrible",
            "muy triste",
            "todo está mal",
            "ayuda",
            "no sé qué hacer",
            "perdido",
            "sin esperanza",
        ),
    }

    def __init__(
        self,
        keywords: Optional[dict[CrisisSeverity, tuple[str, ...]]] = None,
    ) -> None:
        """
        Initialize detector.

        Args:
            keywords: Optional replacement phrase lists per tier
        """
        source = keywords if keywords is not None else self.KEYWORDS
        self._tiers: list[tuple[CrisisSeverity, tuple[str, ...]]] = sorted(
            (
                (severity, tuple(p.lower() for p in phrases if p))
                for severity, phrases in source.items()
                if severity > CrisisSeverity.NONE
            ),
            key=lambda item: item[0],
            reverse=True,
        )

    def analyze(self, text: Optional[str]) -> CrisisDetectionResult:
        """
        Screen text and report the tier and matched phrase.

        Args:
            text: User-supplied text (None is treated as empty)
        """
        if not text:
            return CrisisDetectionResult()

        lowered = text.lower()
        for severity, phrases in self._tiers:
            for phrase in phrases:
                if phrase in lowered:
                    return CrisisDetectionResult(severity=severity, matched_phrase=phrase)

        return CrisisDetectionResult()

    def detect(self, text: Optional[str]) -> CrisisSeverity:
        """Return the highest crisis tier matched by ``text``."""
        return self.analyze(text).severity
