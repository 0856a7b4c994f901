"""User repository."""
from sqlalchemy.ext.asyncio import AsyncSession

from expense_ledger.models.user import User
from expense_ledger.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User model."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, User)
