"""
Progress Endpoints

Mood submission, mood history and progress summaries.
"""

from fastapi import APIRouter, Depends, Query

from mindsync.api.dependencies import get_container, get_current_user
from mindsync.api.schemas import (
    MoodEntryResponse,
    MoodHistoryResponse,
    MoodHistorySummary,
    MoodRecordResponse,
    MoodRequest,
    OverviewResponse,
    ProgressOverview,
    ProgressResponse,
    ProgressSummary,
)
from mindsync.domain.models.user import User
from mindsync.services.container import ServiceContainer

router = APIRouter()


@router.post("", response_model=MoodRecordResponse, summary="Record mood")
async def record_mood(
    request: MoodRequest,
    user: User = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
) -> MoodRecordResponse:
    """Store a mood entry (1-10) and return it with the running average."""
    record = await container.progress.record_mood(
        user.id,
        request.mood,
        request.note if request.note is not None else request.context,
    )
    return MoodRecordResponse(
        message="Mood saved successfully",
        entry=MoodEntryResponse.from_entry(record.entry),
        mood_average=record.average,
        entry_count=record.entry_count,
        days_tracked=record.days_tracked,
    )


@router.get("", response_model=ProgressResponse, summary="Progress summary")
async def get_progress(
    user: User = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
) -> ProgressResponse:
    summary = await container.progress.summary(user.id)
    return ProgressResponse(progress=ProgressSummary(**summary))


@router.get("/mood-history", response_model=MoodHistoryResponse, summary="Mood history")
async def mood_history(
    days: int = Query(default=30),
    user: User = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
) -> MoodHistoryResponse:
    """Stored entries from the last ``days`` days, newest first."""
    history = await container.progress.mood_history(user.id, days=days)
    return MoodHistoryResponse(
        history=[MoodEntryResponse.from_entry(e) for e in history.entries],
        summary=MoodHistorySummary(
            total_entries=len(history.entries),
            average_mood=history.average,
            days_tracked=history.days_tracked,
            trend=history.trend,
            days=history.days,
        ),
    )


@router.get("/overview", response_model=OverviewResponse, summary="Progress overview")
async def overview(
    user: User = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
) -> OverviewResponse:
    data = await container.progress.overview(user.id)
    return OverviewResponse(overview=ProgressOverview(**data))
