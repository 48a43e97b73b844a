"""Mood tracking and progress reporting."""

from mindsync.services.progress.progress_service import (
    MoodHistory,
    MoodRecord,
    ProgressService,
    mood_trend,
)

__all__ = ["MoodHistory", "MoodRecord", "ProgressService", "mood_trend"]
