"""Category repository.

The Other-category invariants are enforced here, at the store boundary:
Other is never deleted or reordered and keeps its fixed display order.
Operations that can be refused return typed results from results.py.
"""
import logging
from uuid import UUID

from sqlalchemy import exists, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from expense_ledger.models.category import OTHER_DISPLAY_ORDER, Category
from expense_ledger.models.rule import Rule
from expense_ledger.models.transaction import Transaction
from expense_ledger.repositories.base import BaseRepository
from expense_ledger.repositories.results import (
    DuplicateNameError,
    InvalidReorderError,
    NotFoundError,
    Ok,
    OtherCategoryLockedError,
    SystemCategoryError,
)

logger = logging.getLogger(__name__)


def visible_to(user_id: UUID):
    """Own categories plus system ones (user_id NULL)."""
    return or_(Category.user_id == user_id, Category.user_id.is_(None))


async def is_category_accessible(db: AsyncSession, user_id: UUID, category_id: UUID) -> bool:
    """Whether the user may assign the category (own or system)."""
    found = await db.scalar(select(Category.id).where(Category.id == category_id, visible_to(user_id)))
    return found is not None


class CategoryRepository(BaseRepository[Category]):
    """Repository for Category model."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Category)

    async def find_other_category(self, user_id: UUID) -> Category | None:
        """Get the Other category for a user.

        The user's own Other category wins over the system one.
        """
        result = await self.db.execute(
            select(Category)
            .where(Category.is_other.is_(True), visible_to(user_id))
            .order_by(Category.user_id.is_(None))
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def find_by_id(self, category_id: UUID) -> Category | None:
        return await self.get_by_id(category_id)

    async def get_accessible(self, user_id: UUID, category_id: UUID) -> Category | None:
        """Get a category the user may reference (own or system)."""
        result = await self.db.execute(
            select(Category).where(Category.id == category_id, visible_to(user_id))
        )
        return result.scalar_one_or_none()

    async def list_for_user(self, user_id: UUID) -> list[tuple[Category, bool, bool]]:
        """List system and own categories with usage flags.

        Returns:
            (category, has_rules, has_transactions) tuples ordered by display_order
        """
        has_rules = (
            exists()
            .where(
                Rule.category_id == Category.id,
                or_(Rule.user_id == user_id, Rule.user_id.is_(None)),
            )
            .label("has_rules")
        )
        has_transactions = (
            exists()
            .where(Transaction.category_id == Category.id, Transaction.user_id == user_id)
            .label("has_transactions")
        )

        result = await self.db.execute(
            select(Category, has_rules, has_transactions)
            .where(visible_to(user_id))
            .order_by(Category.display_order, Category.name)
        )
        return [(row[0], bool(row[1]), bool(row[2])) for row in result.all()]

    async def _name_taken(self, user_id: UUID, name: str, exclude_id: UUID | None = None) -> bool:
        query = select(Category.id).where(
            visible_to(user_id),
            func.lower(Category.name) == name.strip().lower(),
        )
        if exclude_id is not None:
            query = query.where(Category.id != exclude_id)
        return (await self.db.scalar(query.limit(1))) is not None

    async def create_category(
        self, user_id: UUID, name: str, color: str, icon: str | None = None
    ) -> Ok[Category] | DuplicateNameError:
        """Create a user category placed before Other.

        Names are unique per user, case-insensitively, including system names.
        """
        name = name.strip()
        if await self._name_taken(user_id, name):
            return DuplicateNameError(name=name)

        max_order = await self.db.scalar(
            select(func.max(Category.display_order)).where(
                visible_to(user_id), Category.is_other.is_(False)
            )
        )
        category = Category(
            user_id=user_id,
            name=name,
            color=color,
            icon=icon,
            display_order=(max_order or 0) + 1,
            is_default=False,
            is_other=False,
        )
        try:
            return Ok(await self.create(category))
        except IntegrityError:
            # Lost a race against a concurrent create with the same name
            await self.db.rollback()
            return DuplicateNameError(name=name)

    async def rename(
        self, user_id: UUID, category_id: UUID, name: str
    ) -> Ok[Category] | DuplicateNameError | NotFoundError | SystemCategoryError:
        category = await self.get_accessible(user_id, category_id)
        if category is None:
            return NotFoundError(entity="category", id=category_id)
        if category.is_system:
            return SystemCategoryError(category_id=category_id)

        name = name.strip()
        if await self._name_taken(user_id, name, exclude_id=category_id):
            return DuplicateNameError(name=name)

        category.name = name
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            return DuplicateNameError(name=name)
        await self.db.refresh(category)
        return Ok(category)

    async def delete(
        self, user_id: UUID, category_id: UUID
    ) -> Ok[UUID] | NotFoundError | OtherCategoryLockedError | SystemCategoryError:
        """Delete a user category.

        Rules pointing at it are removed with it; its transactions become
        uncategorized so the next sweep can place them again.
        """
        category = await self.get_accessible(user_id, category_id)
        if category is None:
            return NotFoundError(entity="category", id=category_id)
        if category.is_other:
            return OtherCategoryLockedError(category_id=category_id)
        if category.is_system:
            return SystemCategoryError(category_id=category_id)

        await self.db.execute(
            update(Transaction)
            .where(Transaction.user_id == user_id, Transaction.category_id == category_id)
            .values(category_id=None)
            .execution_options(synchronize_session=False)
        )
        await self.db.delete(category)
        await self.db.commit()

        logger.info("Category deleted", extra={"user_id": str(user_id), "category_id": str(category_id)})
        return Ok(category_id)

    async def reorder(
        self, user_id: UUID, category_ids: list[UUID]
    ) -> Ok[list[Category]] | InvalidReorderError:
        """Assign display_order 1..n to the user's categories in the given order.

        The list must name every category the user owns, except Other, exactly
        once. System categories keep their shared order and Other keeps its
        fixed position at the end.
        """
        if len(set(category_ids)) != len(category_ids):
            return InvalidReorderError(reason="duplicate category ids")

        result = await self.db.execute(select(Category).where(visible_to(user_id)))
        visible = {category.id: category for category in result.scalars().all()}

        if any(cid in visible and visible[cid].is_other for cid in category_ids):
            return InvalidReorderError(reason="the Other category cannot be reordered")

        owned = {cid: category for cid, category in visible.items() if category.user_id == user_id}
        foreign = [cid for cid in category_ids if cid not in owned]
        if foreign:
            return InvalidReorderError(reason=f"unknown category ids: {', '.join(map(str, foreign))}")

        reorderable = {cid for cid, category in owned.items() if not category.is_other}
        if set(category_ids) != reorderable:
            return InvalidReorderError(reason="every category must be included")

        for position, category_id in enumerate(category_ids, start=1):
            owned[category_id].display_order = position
        for category in owned.values():
            if category.is_other:
                category.display_order = OTHER_DISPLAY_ORDER

        await self.db.commit()
        return Ok([owned[cid] for cid in category_ids])
