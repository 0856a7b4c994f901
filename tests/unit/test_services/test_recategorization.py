"""Unit tests for RecategorizationService."""

from dataclasses import dataclass
from types import SimpleNamespace
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from expense_ledger.core.exceptions import ConfigurationError, PersistenceError
from expense_ledger.schemas.ingestion import RecategorizeStatus
from expense_ledger.services.recategorization import RecategorizationService

USER_ID = uuid4()
OTHER_ID = uuid4()
FOOD_ID = uuid4()
MISC_ID = uuid4()
TRANSPORT_ID = uuid4()


@dataclass
class FakeRule:
    keyword: str
    category_id: UUID
    priority: int = 0


def _txn(description: str):
    return SimpleNamespace(id=uuid4(), description=description)


@pytest.fixture
def mock_db():
    db = AsyncMock(spec=AsyncSession)
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    return db


@pytest.fixture
def service(mock_db):
    service = RecategorizationService(mock_db)
    service.rule_repo = AsyncMock()
    service.category_repo = AsyncMock()
    service.category_repo.find_other_category.return_value = SimpleNamespace(id=OTHER_ID)
    service.transaction_repo = AsyncMock()
    service.transaction_repo.update_category_where.side_effect = (
        lambda user_id, ids, other_id, category_id: len(ids)
    )
    return service


def _updates(service) -> dict[UUID, set[UUID]]:
    return {
        c.args[3]: set(c.args[1]) for c in service.transaction_repo.update_category_where.await_args_list
    }


class TestRecategorizationService:
    """Test suite for RecategorizationService."""

    async def test_no_rules(self, service, mock_db):
        service.rule_repo.find_applicable_rules.return_value = []

        result = await service.recategorize(USER_ID)

        assert result.status == RecategorizeStatus.NO_RULES
        assert result.updated_count == 0
        service.transaction_repo.find_uncategorized.assert_not_called()
        service.transaction_repo.update_category_where.assert_not_called()
        mock_db.commit.assert_not_called()

    async def test_missing_other_category(self, service):
        service.rule_repo.find_applicable_rules.return_value = [FakeRule("cafe", FOOD_ID)]
        service.category_repo.find_other_category.return_value = None

        with pytest.raises(ConfigurationError) as exc_info:
            await service.recategorize(USER_ID)

        assert exc_info.value.error_code == "CFG_001"

    async def test_precedence_masking(self, service):
        store_a = _txn("Store A")
        banana = _txn("Banana Stand")
        service.rule_repo.find_applicable_rules.return_value = [
            FakeRule("a", MISC_ID, priority=2),
            FakeRule("store", FOOD_ID, priority=1),
        ]
        service.transaction_repo.find_uncategorized.return_value = [store_a, banana]

        result = await service.recategorize(USER_ID)

        assert result.status == RecategorizeStatus.COMPLETED
        assert result.updated_count == 2
        assert _updates(service) == {FOOD_ID: {store_a.id}, MISC_ID: {banana.id}}

    async def test_one_update_per_target_category(self, service):
        txns = [_txn("JR East"), _txn("Metro Line"), _txn("Corner Cafe")]
        service.rule_repo.find_applicable_rules.return_value = [
            FakeRule("jr", TRANSPORT_ID),
            FakeRule("metro", TRANSPORT_ID),
            FakeRule("cafe", FOOD_ID),
        ]
        service.transaction_repo.find_uncategorized.return_value = txns

        result = await service.recategorize(USER_ID)

        assert service.transaction_repo.update_category_where.await_count == 2
        assert _updates(service)[TRANSPORT_ID] == {txns[0].id, txns[1].id}
        assert result.updated_count == 3

    async def test_update_is_guarded_by_other_category(self, service):
        txn = _txn("Corner Cafe")
        service.rule_repo.find_applicable_rules.return_value = [FakeRule("cafe", FOOD_ID)]
        service.transaction_repo.find_uncategorized.return_value = [txn]

        await service.recategorize(USER_ID)

        service.transaction_repo.update_category_where.assert_awaited_once_with(
            USER_ID, [txn.id], OTHER_ID, FOOD_ID
        )

    async def test_rows_changed_elsewhere_are_not_counted(self, service):
        service.rule_repo.find_applicable_rules.return_value = [FakeRule("cafe", FOOD_ID)]
        service.transaction_repo.find_uncategorized.return_value = [_txn("Cafe 1"), _txn("Cafe 2")]
        service.transaction_repo.update_category_where.side_effect = None
        service.transaction_repo.update_category_where.return_value = 1

        result = await service.recategorize(USER_ID)

        assert result.updated_count == 1

    async def test_rule_targeting_other_masks_but_does_not_update(self, service):
        txn = _txn("Store A")
        service.rule_repo.find_applicable_rules.return_value = [
            FakeRule("store", OTHER_ID, priority=0),
            FakeRule("a", MISC_ID, priority=1),
        ]
        service.transaction_repo.find_uncategorized.return_value = [txn]

        result = await service.recategorize(USER_ID)

        assert result.updated_count == 0
        service.transaction_repo.update_category_where.assert_not_called()

    async def test_period_is_passed_through(self, service):
        service.rule_repo.find_applicable_rules.return_value = [FakeRule("cafe", FOOD_ID)]
        service.transaction_repo.find_uncategorized.return_value = []

        result = await service.recategorize(USER_ID, year=2024, month=3)

        service.transaction_repo.find_uncategorized.assert_awaited_once_with(
            USER_ID, OTHER_ID, year=2024, month=3
        )
        assert result.updated_count == 0

    async def test_update_failure_rolls_back(self, service, mock_db):
        service.rule_repo.find_applicable_rules.return_value = [FakeRule("cafe", FOOD_ID)]
        service.transaction_repo.find_uncategorized.return_value = [_txn("Cafe")]
        service.transaction_repo.update_category_where.side_effect = OperationalError(
            "UPDATE", {}, Exception("boom")
        )

        with pytest.raises(PersistenceError):
            await service.recategorize(USER_ID)

        mock_db.rollback.assert_awaited_once()
        mock_db.commit.assert_not_called()
