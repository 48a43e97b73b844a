"""
Base Repository

Primary-key lookup and insert shared by the model repositories. A
repository wraps a session it does not own; the caller's
``DatabaseManager.session()`` block decides commit or rollback.
"""

from typing import Generic, Optional, Type, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mindsync.infrastructure.database.connection import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """
    Generic repository over one ORM model.

    Usage:
        class UserRepository(BaseRepository[UserModel]):
            def __init__(self, session):
                super().__init__(UserModel, session)
    """

    def __init__(self, model: Type[ModelT], session: AsyncSession) -> None:
        self._model = model
        self._session = session

    async def get_by_id(self, id: UUID) -> Optional[ModelT]:
        """
        Load a row by primary key.

        ``populate_existing`` refreshes an instance already in the
        session, so counters changed by bulk UPDATEs earlier in the same
        transaction are read back correctly.
        """
        result = await self._session.execute(
            select(self._model)
            .where(self._model.id == id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def create(self, entity: ModelT) -> ModelT:
        """Insert and flush, returning the entity with server defaults loaded."""
        self._session.add(entity)
        await self._session.flush()
        await self._session.refresh(entity)
        return entity
