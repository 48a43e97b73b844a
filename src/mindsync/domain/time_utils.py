"""Time helpers. All persisted timestamps are naive UTC."""

from datetime import datetime, timedelta, timezone


def utcnow() -> datetime:
    """Current UTC time as a naive datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def week_start(now: datetime) -> datetime:
    """Midnight on the Monday opening the ISO week of ``now``."""
    monday = now - timedelta(days=now.weekday())
    return monday.replace(hour=0, minute=0, second=0, microsecond=0)
