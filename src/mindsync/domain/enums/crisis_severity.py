"""
Crisis Severity and Urgency Enumerations

Defines the severity tiers produced by the crisis detector and the
urgency/priority labels attached to the crisis resources served for them.

CLINICAL_REVIEW_REQUIRED: Tier definitions and the phrase lists behind
them should be validated by mental health professionals.
"""

from enum import IntEnum, StrEnum


class CrisisSeverity(IntEnum):
    """
    Crisis detection tiers.

    Ordered so that a higher value is always more severe. Detection
    returns the highest tier with a matching phrase.
    """

    NONE = 0
    """No crisis phrase present."""

    LOW = 1
    """Distress language (e.g. "sin esperanza", "muy mal")."""

    MEDIUM = 2
    """Self-harm or hopelessness language (e.g. "lastimarme")."""

    HIGH = 3
    """
    Suicidal ideation language (e.g. "no quiero vivir").

    SAFETY_NOTE: Resources at this tier are labelled for
    immediate action.
    """

    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def from_label(cls, label: str) -> "CrisisSeverity":
        """Parse a lowercase tier label ("none", "low", ...)."""
        return cls[label.upper()]


class UrgencyLevel(StrEnum):
    """Urgency label attached to a crisis resource bundle."""

    OPTIONAL = "optional"
    SOON = "soon"
    IMMEDIATE = "immediate"

    @classmethod
    def from_severity(cls, severity: CrisisSeverity) -> "UrgencyLevel":
        """
        Map crisis severity to urgency level.

        Args:
            severity: Detected crisis tier

        Returns:
            Corresponding urgency level
        """
        mapping = {
            CrisisSeverity.NONE: cls.OPTIONAL,
            CrisisSeverity.LOW: cls.OPTIONAL,
            CrisisSeverity.MEDIUM: cls.SOON,
            CrisisSeverity.HIGH: cls.IMMEDIATE,
        }
        return mapping.get(severity, cls.IMMEDIATE)


class PriorityLevel(StrEnum):
    """Priority label attached to a crisis resource bundle."""

    NORMAL = "normal"
    HIGH = "high"
    CRITICAL = "critical"

    @classmethod
    def from_severity(cls, severity: CrisisSeverity) -> "PriorityLevel":
        mapping = {
            CrisisSeverity.NONE: cls.NORMAL,
            CrisisSeverity.LOW: cls.NORMAL,
            CrisisSeverity.MEDIUM: cls.HIGH,
            CrisisSeverity.HIGH: cls.CRITICAL,
        }
        return mapping.get(severity, cls.CRITICAL)
