"""Categorization rule repository."""
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from expense_ledger.models.rule import Rule
from expense_ledger.repositories.base import BaseRepository
from expense_ledger.repositories.category import is_category_accessible
from expense_ledger.repositories.results import NotFoundError, Ok


class RuleRepository(BaseRepository[Rule]):
    """Repository for Rule model."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Rule)

    async def find_applicable_rules(self, user_id: UUID) -> list[Rule]:
        """Get the user's rules merged with system rules.

        Ordered by (priority, keyword), the order rules are evaluated in.
        """
        result = await self.db.execute(
            select(Rule)
            .where(or_(Rule.user_id == user_id, Rule.user_id.is_(None)))
            .order_by(Rule.priority, Rule.keyword)
        )
        return list(result.scalars().all())

    async def create_rule(
        self, user_id: UUID, keyword: str, category_id: UUID, priority: int = 0
    ) -> Ok[Rule] | NotFoundError:
        """Create a user rule targeting one of the user's (or a system) category."""
        if not await is_category_accessible(self.db, user_id, category_id):
            return NotFoundError(entity="category", id=category_id)

        rule = await self.create(
            Rule(user_id=user_id, keyword=keyword.strip(), category_id=category_id, priority=priority)
        )
        return Ok(await self._reload(rule.id))

    async def update_rule(
        self,
        user_id: UUID,
        rule_id: UUID,
        keyword: str | None = None,
        category_id: UUID | None = None,
        priority: int | None = None,
    ) -> Ok[Rule] | NotFoundError:
        """Update fields of a rule the user owns. None leaves a field unchanged."""
        rule = await self.get_owned(user_id, rule_id)
        if rule is None:
            return NotFoundError(entity="rule", id=rule_id)
        if category_id is not None and not await is_category_accessible(self.db, user_id, category_id):
            return NotFoundError(entity="category", id=category_id)

        if keyword is not None:
            rule.keyword = keyword.strip()
        if category_id is not None:
            rule.category_id = category_id
        if priority is not None:
            rule.priority = priority
        await self.db.commit()
        return Ok(await self._reload(rule_id))

    async def delete_rule(self, user_id: UUID, rule_id: UUID) -> Ok[UUID] | NotFoundError:
        """Delete a rule the user owns. Categorized transactions are untouched."""
        rule = await self.get_owned(user_id, rule_id)
        if rule is None:
            return NotFoundError(entity="rule", id=rule_id)

        await self.db.delete(rule)
        await self.db.commit()
        return Ok(rule_id)

    async def _reload(self, rule_id: UUID) -> Rule:
        # populate_existing refreshes the selectin-loaded category after a change
        result = await self.db.execute(
            select(Rule).where(Rule.id == rule_id).execution_options(populate_existing=True)
        )
        return result.scalar_one()
