"""
Database infrastructure components.
"""

from mindsync.infrastructure.database.connection import Base, DatabaseManager

__all__ = [
    "Base",
    "DatabaseManager",
]
