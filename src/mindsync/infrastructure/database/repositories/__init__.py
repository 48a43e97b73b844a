"""
Repository pattern implementations package.
"""

from mindsync.infrastructure.database.repositories.base import BaseRepository
from mindsync.infrastructure.database.repositories.user_repository import (
    UserRepository,
    to_domain,
)

__all__ = [
    "BaseRepository",
    "UserRepository",
    "to_domain",
]
