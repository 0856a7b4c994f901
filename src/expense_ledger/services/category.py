"""Category service: turns typed store results into API errors."""
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from expense_ledger.core.exceptions import CategoryRuleViolation, NotFoundError
from expense_ledger.models.category import Category
from expense_ledger.repositories import results
from expense_ledger.repositories.category import CategoryRepository
from expense_ledger.schemas.category import CategoryResponse


def _to_response(category: Category, has_rules: bool = False, has_transactions: bool = False) -> CategoryResponse:
    response = CategoryResponse.model_validate(category)
    return response.model_copy(update={"has_rules": has_rules, "has_transactions": has_transactions})


def _raise_for(result) -> None:
    """Raise the LedgerError matching a failed store result."""
    if isinstance(result, results.NotFoundError):
        raise NotFoundError("API_003", {"category_id": str(result.id)})
    if isinstance(result, results.OtherCategoryLockedError):
        raise CategoryRuleViolation("CAT_001", {"category_id": str(result.category_id)})
    if isinstance(result, results.InvalidReorderError):
        raise CategoryRuleViolation("CAT_002", {"reason": result.reason})
    if isinstance(result, results.DuplicateNameError):
        raise CategoryRuleViolation("CAT_003", {"name": result.name}, http_status=409)
    if isinstance(result, results.SystemCategoryError):
        raise CategoryRuleViolation("CAT_004", {"category_id": str(result.category_id)}, http_status=403)
    raise TypeError(f"Unexpected store result: {result!r}")


class CategoryService:
    """Service layer for category management."""

    def __init__(self, db: AsyncSession):
        """Initialize category service with database session.

        Args:
            db: Database session
        """
        self.db = db
        self.category_repo = CategoryRepository(db)

    async def list_categories(self, user_id: UUID) -> list[CategoryResponse]:
        rows = await self.category_repo.list_for_user(user_id)
        return [_to_response(category, has_rules, has_txns) for category, has_rules, has_txns in rows]

    async def create_category(
        self, user_id: UUID, name: str, color: str, icon: str | None = None
    ) -> CategoryResponse:
        """Create a user category.

        Raises:
            CategoryRuleViolation: CAT_003 if the name is already used
        """
        result = await self.category_repo.create_category(user_id, name, color, icon)
        if not isinstance(result, results.Ok):
            _raise_for(result)
        return _to_response(result.value)

    async def rename_category(self, user_id: UUID, category_id: UUID, name: str) -> CategoryResponse:
        result = await self.category_repo.rename(user_id, category_id, name)
        if not isinstance(result, results.Ok):
            _raise_for(result)
        return _to_response(result.value)

    async def delete_category(self, user_id: UUID, category_id: UUID) -> None:
        """Delete a user category.

        Raises:
            NotFoundError: API_003 if the category is not visible to the user
            CategoryRuleViolation: CAT_001 for Other, CAT_004 for system categories
        """
        result = await self.category_repo.delete(user_id, category_id)
        if not isinstance(result, results.Ok):
            _raise_for(result)

    async def reorder_categories(self, user_id: UUID, category_ids: list[UUID]) -> list[CategoryResponse]:
        result = await self.category_repo.reorder(user_id, category_ids)
        if not isinstance(result, results.Ok):
            _raise_for(result)
        return [_to_response(category) for category in result.value]
