"""Unit tests for CategoryService and RuleService error mapping."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from expense_ledger.core.exceptions import CategoryRuleViolation, NotFoundError
from expense_ledger.models.category import Category
from expense_ledger.repositories import results
from expense_ledger.services.category import CategoryService
from expense_ledger.services.rule import RuleService

USER_ID = uuid4()


def _category(**overrides) -> Category:
    now = datetime.now(timezone.utc)
    values = {
        "id": uuid4(),
        "user_id": USER_ID,
        "name": "Groceries",
        "color": "#00AA00",
        "icon": None,
        "display_order": 1,
        "is_default": False,
        "is_other": False,
        "created_at": now,
        "updated_at": now,
    }
    values.update(overrides)
    return Category(**values)


@pytest.fixture
def category_service():
    service = CategoryService(AsyncMock(spec=AsyncSession))
    service.category_repo = AsyncMock()
    return service


@pytest.fixture
def rule_service():
    service = RuleService(AsyncMock(spec=AsyncSession))
    service.rule_repo = AsyncMock()
    return service


class TestCategoryService:
    async def test_list_includes_usage_flags(self, category_service):
        food = _category(name="Food")
        other = _category(user_id=None, name="Other", is_other=True, display_order=9999)
        category_service.category_repo.list_for_user.return_value = [(food, True, False), (other, False, True)]

        categories = await category_service.list_categories(USER_ID)

        assert [c.name for c in categories] == ["Food", "Other"]
        assert categories[0].has_rules is True
        assert categories[0].is_system is False
        assert categories[1].has_transactions is True
        assert categories[1].is_system is True

    async def test_create_returns_response(self, category_service):
        category_service.category_repo.create_category.return_value = results.Ok(_category(name="Books"))

        response = await category_service.create_category(USER_ID, "Books", "#123456")

        assert response.name == "Books"
        assert response.has_rules is False

    async def test_duplicate_name_is_conflict(self, category_service):
        category_service.category_repo.create_category.return_value = results.DuplicateNameError("Food")

        with pytest.raises(CategoryRuleViolation) as exc_info:
            await category_service.create_category(USER_ID, "food", "#123456")

        assert exc_info.value.error_code == "CAT_003"
        assert exc_info.value.http_status == 409

    async def test_delete_other_is_rejected(self, category_service):
        category_id = uuid4()
        category_service.category_repo.delete.return_value = results.OtherCategoryLockedError(category_id)

        with pytest.raises(CategoryRuleViolation) as exc_info:
            await category_service.delete_category(USER_ID, category_id)

        assert exc_info.value.error_code == "CAT_001"
        assert exc_info.value.http_status == 400

    async def test_delete_system_category_is_forbidden(self, category_service):
        category_id = uuid4()
        category_service.category_repo.delete.return_value = results.SystemCategoryError(category_id)

        with pytest.raises(CategoryRuleViolation) as exc_info:
            await category_service.delete_category(USER_ID, category_id)

        assert exc_info.value.error_code == "CAT_004"
        assert exc_info.value.http_status == 403

    async def test_rename_missing_category(self, category_service):
        category_id = uuid4()
        category_service.category_repo.rename.return_value = results.NotFoundError("category", category_id)

        with pytest.raises(NotFoundError) as exc_info:
            await category_service.rename_category(USER_ID, category_id, "New")

        assert exc_info.value.error_code == "API_003"
        assert exc_info.value.details == {"category_id": str(category_id)}

    async def test_invalid_reorder(self, category_service):
        category_service.category_repo.reorder.return_value = results.InvalidReorderError("duplicate ids")

        with pytest.raises(CategoryRuleViolation) as exc_info:
            await category_service.reorder_categories(USER_ID, [uuid4(), uuid4()])

        assert exc_info.value.error_code == "CAT_002"
        assert exc_info.value.details == {"reason": "duplicate ids"}

    async def test_unexpected_result_type(self, category_service):
        category_service.category_repo.delete.return_value = None

        with pytest.raises(TypeError):
            await category_service.delete_category(USER_ID, uuid4())


class TestRuleService:
    async def test_missing_rule(self, rule_service):
        rule_id = uuid4()
        rule_service.rule_repo.delete_rule.return_value = results.NotFoundError("rule", rule_id)

        with pytest.raises(NotFoundError) as exc_info:
            await rule_service.delete_rule(USER_ID, rule_id)

        assert exc_info.value.error_code == "API_004"
        assert exc_info.value.http_status == 404

    async def test_missing_category_on_create(self, rule_service):
        category_id = uuid4()
        rule_service.rule_repo.create_rule.return_value = results.NotFoundError("category", category_id)

        with pytest.raises(NotFoundError) as exc_info:
            await rule_service.create_rule(USER_ID, "cafe", category_id)

        assert exc_info.value.error_code == "API_003"

    async def test_update_passes_only_given_fields(self, rule_service):
        rule_id = uuid4()
        rule_service.rule_repo.update_rule.return_value = results.Ok("rule")

        assert await rule_service.update_rule(USER_ID, rule_id, priority=3) == "rule"
        rule_service.rule_repo.update_rule.assert_awaited_once_with(
            USER_ID, rule_id, keyword=None, category_id=None, priority=3
        )
