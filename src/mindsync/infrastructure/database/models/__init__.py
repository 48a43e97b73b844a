"""
Database ORM models package.
"""

from mindsync.infrastructure.database.models.user_model import UserModel
from mindsync.infrastructure.database.models.mood_entry_model import MoodEntryModel

__all__ = [
    "UserModel",
    "MoodEntryModel",
]
