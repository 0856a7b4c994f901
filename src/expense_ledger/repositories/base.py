"""Base repository shared by the ledger's stores."""
from typing import Generic, Type, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from expense_ledger.models.base import BaseModel

T = TypeVar("T", bound=BaseModel)


class BaseRepository(Generic[T]):
    """Generic repository for models keyed by UUID.

    Rows owned by a user carry a `user_id` column; `get_owned` only returns
    rows of that user, so system rows (user_id NULL) are never editable
    through it.
    """

    def __init__(self, db: AsyncSession, model: Type[T]):
        self.db = db
        self.model = model

    async def get_by_id(self, id: UUID) -> T | None:
        """Get a single record by ID."""
        result = await self.db.execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()

    async def get_owned(self, user_id: UUID, id: UUID) -> T | None:
        """Get a record by ID only if it belongs to the user."""
        result = await self.db.execute(
            select(self.model).where(self.model.id == id, self.model.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def create(self, obj: T) -> T:
        """Add a record, commit, and return it refreshed."""
        self.db.add(obj)
        await self.db.commit()
        await self.db.refresh(obj)
        return obj
