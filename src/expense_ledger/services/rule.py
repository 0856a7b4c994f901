"""Rule service for categorization rule management."""
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from expense_ledger.core.exceptions import NotFoundError
from expense_ledger.models.rule import Rule
from expense_ledger.repositories import results
from expense_ledger.repositories.rule import RuleRepository


def _unwrap(result):
    if isinstance(result, results.Ok):
        return result.value
    if isinstance(result, results.NotFoundError):
        error_code = "API_004" if result.entity == "rule" else "API_003"
        raise NotFoundError(error_code, {f"{result.entity}_id": str(result.id)})
    raise TypeError(f"Unexpected store result: {result!r}")


class RuleService:
    """Service layer for rule-related operations."""

    def __init__(self, db: AsyncSession):
        """Initialize rule service with database session.

        Args:
            db: Database session
        """
        self.db = db
        self.rule_repo = RuleRepository(db)

    async def list_rules(self, user_id: UUID) -> list[Rule]:
        """Get the user's rules merged with system rules, in evaluation order."""
        return await self.rule_repo.find_applicable_rules(user_id)

    async def create_rule(
        self, user_id: UUID, keyword: str, category_id: UUID, priority: int = 0
    ) -> Rule:
        """Create a rule for the user.

        Args:
            user_id: Owner of the rule
            keyword: Substring matched case-insensitively against descriptions
            category_id: Own or system category to assign
            priority: Lower values are evaluated first

        Returns:
            The created rule with its category loaded

        Raises:
            NotFoundError: API_003 if the category is not visible to the user
        """
        return _unwrap(await self.rule_repo.create_rule(user_id, keyword, category_id, priority))

    async def update_rule(
        self,
        user_id: UUID,
        rule_id: UUID,
        keyword: str | None = None,
        category_id: UUID | None = None,
        priority: int | None = None,
    ) -> Rule:
        return _unwrap(
            await self.rule_repo.update_rule(
                user_id, rule_id, keyword=keyword, category_id=category_id, priority=priority
            )
        )

    async def delete_rule(self, user_id: UUID, rule_id: UUID) -> None:
        _unwrap(await self.rule_repo.delete_rule(user_id, rule_id))
