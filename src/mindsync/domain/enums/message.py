"""Conversation message enumerations."""

from enum import StrEnum


class MessageRole(StrEnum):
    """Message author role."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class MessageType(StrEnum):
    """
    Message type tag.

    Distinguishes model replies from scripted ones so clients can
    render them differently.
    """

    WELCOME = "welcome"
    TEXT = "text"
    FALLBACK = "fallback"
    CRISIS_ALERT = "crisis_alert"
