"""
User Database Model

SQLAlchemy ORM model for user persistence.

Usage counters and login-security fields are plain columns so they can
be updated with atomic ``col = col + n`` statements. Preferences are
stored as a JSON document.

SECURITY: Only the salted password hash is stored.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, Boolean, DateTime, Float, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from mindsync.domain.time_utils import utcnow
from mindsync.infrastructure.database.connection import Base


class UserModel(Base):
    """
    User table ORM model.

    Table: users
    """

    __tablename__ = "users"

    # Primary key
    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
        doc="Unique user identifier"
    )

    # Identity
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
        doc="Lowercase email address"
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Salted password hash"
    )
    age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    gender: Mapped[str] = mapped_column(String(30), default="prefer-not-to-say")
    timezone: Mapped[str] = mapped_column(String(64), default="America/Bogota")

    # Subscription
    subscription_tier: Mapped[str] = mapped_column(String(20), default="free", nullable=False)

    # Usage statistics
    total_sessions: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_messages: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    sessions_this_week: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    streak_days: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_session_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    last_activity: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    mood_average: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    days_tracked: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Login security
    login_attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    lock_until: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True, index=True)
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Preferences (JSON for flexibility)
    preferences: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)

    # Status
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    is_email_verified: Mapped[bool] = mapped_column(Boolean, default=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    # Soft delete
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime,
        nullable=True,
        index=True,
        doc="Soft delete timestamp"
    )

    def __repr__(self) -> str:
        return f"<UserModel(id={self.id}, email='{self.email[:3]}***')>"

    @property
    def is_deleted(self) -> bool:
        """Check if user has been soft deleted."""
        return self.deleted_at is not None
