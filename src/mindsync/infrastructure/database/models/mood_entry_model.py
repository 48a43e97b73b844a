"""
Mood Entry Database Model

One row per self-reported mood sample. The integer primary key doubles
as the insertion order used for FIFO eviction.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from mindsync.domain.time_utils import utcnow
from mindsync.infrastructure.database.connection import Base


class MoodEntryModel(Base):
    """
    Mood entry table ORM model.

    Table: mood_entries
    """

    __tablename__ = "mood_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    entry_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), default=uuid4, unique=True, nullable=False)
    user_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    mood: Mapped[int] = mapped_column(Integer, nullable=False)
    context: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<MoodEntryModel(id={self.id}, user_id={self.user_id}, mood={self.mood})>"
