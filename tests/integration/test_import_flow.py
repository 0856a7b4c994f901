"""End-to-end import and sweep flow against a real database."""

from sqlalchemy import func, select

import pytest

from expense_ledger.core.exceptions import ConfigurationError, CsvInputError, PersistenceError
from expense_ledger.models.csv_upload import CsvUpload
from expense_ledger.models.rule import Rule
from expense_ledger.models.transaction import Transaction
from expense_ledger.repositories.transaction import TransactionRepository
from expense_ledger.schemas.ingestion import RecategorizeStatus
from expense_ledger.services.importer import CsvImportService
from expense_ledger.services.recategorization import RecategorizationService

EXPORT = (
    "date,amount,description,payment_method\n"
    "2024-01-05,500,Corner Cafe,Credit\n"
    "2024-01-06,800,Store A,\n"
    "2024-01-07,1200,Banana Stand,Cash\n"
    "2024-01-07,1200,Banana Stand,Cash\n"
    "2024-01-08,,Missing Amount,\n"
)

PAYPAY_EXPORT = (
    "取引日,出金金額（円）,入金金額（円）,海外出金金額,通貨,変換レート（円）,利用国,取引内容,取引先,取引方法,支払い区分,利用者,取引番号\n"
    "2024/02/01 12:34:56,\"1,280\",-,-,-,-,-,支払い,セブン-イレブン,PayPay残高,-,-,0001\n"
    "2024/02/02 08:00:00,-,\"5,000\",-,-,-,-,チャージ,銀行,銀行口座,-,-,0002\n"
)


async def _categories_by_description(session_factory) -> dict[str, object]:
    async with session_factory() as fresh:
        result = await fresh.execute(select(Transaction.description, Transaction.category_id))
        return dict(result.all())


async def _upload_statuses(session_factory) -> list[str]:
    async with session_factory() as fresh:
        return list((await fresh.execute(select(CsvUpload.status))).scalars().all())


class TestImportFlow:
    async def test_import_then_reimport_is_idempotent(self, db_session, session_factory, test_user, system_categories):
        db_session.add(Rule(user_id=test_user.id, keyword="cafe", category_id=system_categories["food"].id))
        await db_session.commit()
        service = CsvImportService(db_session)

        first = await service.import_csv(test_user.id, "export_20240101-20240131.csv", EXPORT)
        second = await service.import_csv(test_user.id, "export_20240101-20240131.csv", EXPORT)

        assert (first.total_rows, first.imported_rows, first.skipped_rows, first.duplicate_rows) == (5, 3, 1, 1)
        assert (second.total_rows, second.imported_rows, second.skipped_rows, second.duplicate_rows) == (5, 0, 1, 4)

        categories = await _categories_by_description(session_factory)
        assert categories == {
            "Corner Cafe": system_categories["food"].id,
            "Store A": system_categories["other"].id,
            "Banana Stand": system_categories["other"].id,
        }
        assert await _upload_statuses(session_factory) == ["COMPLETED", "COMPLETED"]

    async def test_paypay_export(self, db_session, session_factory, test_user, system_categories):
        result = await CsvImportService(db_session).import_csv(test_user.id, "paypay.csv", PAYPAY_EXPORT)

        assert (result.total_rows, result.imported_rows, result.skipped_rows) == (2, 1, 1)
        async with session_factory() as fresh:
            txn = (await fresh.execute(select(Transaction))).scalar_one()
        assert txn.amount == 1280
        assert txn.description == "セブン-イレブン"
        assert txn.payment_method == "PayPay残高"
        assert txn.external_transaction_id == "0001"

    async def test_unrecognized_file_leaves_failed_upload(self, db_session, session_factory, test_user, system_categories):
        user_id = test_user.id

        with pytest.raises(CsvInputError) as exc_info:
            await CsvImportService(db_session).import_csv(user_id, "notes.csv", "hello,world\n1,2\n")

        assert exc_info.value.error_code == "CSV_002"
        assert await _upload_statuses(session_factory) == ["FAILED"]

    async def test_missing_other_category(self, db_session, session_factory, test_user):
        with pytest.raises(ConfigurationError):
            await CsvImportService(db_session).import_csv(test_user.id, "export.csv", EXPORT)

        assert await _upload_statuses(session_factory) == ["FAILED"]

    async def test_failed_insert_stores_nothing(
        self, db_session, session_factory, test_user, system_categories, monkeypatch
    ):
        user_id = test_user.id

        async def broken_insert_many(self, *args, **kwargs):
            raise RuntimeError("disk full")

        monkeypatch.setattr(TransactionRepository, "insert_many", broken_insert_many)

        with pytest.raises(PersistenceError) as exc_info:
            await CsvImportService(db_session).import_csv(user_id, "export.csv", EXPORT)

        assert exc_info.value.error_code == "DB_001"
        async with session_factory() as fresh:
            assert await fresh.scalar(select(func.count()).select_from(Transaction)) == 0
        assert await _upload_statuses(session_factory) == ["FAILED"]

    async def test_failed_history_read_leaves_failed_upload(
        self, db_session, session_factory, test_user, system_categories, monkeypatch
    ):
        user_id = test_user.id

        async def broken_find_existing(self, *args, **kwargs):
            raise RuntimeError("connection reset")

        monkeypatch.setattr(TransactionRepository, "find_existing", broken_find_existing)

        with pytest.raises(PersistenceError) as exc_info:
            await CsvImportService(db_session).import_csv(user_id, "export.csv", EXPORT)

        assert exc_info.value.error_code == "DB_001"
        assert await _upload_statuses(session_factory) == ["FAILED"]


class TestSweepFlow:
    async def test_sweep_after_adding_rules(self, db_session, session_factory, test_user, system_categories):
        user_id = test_user.id
        food = system_categories["food"].id
        shopping = system_categories["shopping"].id
        await CsvImportService(db_session).import_csv(user_id, "export.csv", EXPORT)

        db_session.add_all(
            [
                Rule(user_id=user_id, keyword="store", category_id=food, priority=1),
                Rule(user_id=user_id, keyword="a", category_id=shopping, priority=2),
            ]
        )
        await db_session.commit()

        result = await RecategorizationService(db_session).recategorize(user_id)

        assert result.status == RecategorizeStatus.COMPLETED
        categories = await _categories_by_description(session_factory)
        assert categories["Store A"] == food
        assert categories["Banana Stand"] == shopping
        # "Corner Cafe" was still in Other, and it contains an "a"
        assert categories["Corner Cafe"] == shopping
        assert result.updated_count == 3

    async def test_sweep_never_moves_categorized_rows(self, db_session, session_factory, test_user, system_categories):
        user_id = test_user.id
        food = system_categories["food"].id
        transport = system_categories["transport"].id
        db_session.add(Rule(user_id=user_id, keyword="cafe", category_id=food))
        await db_session.commit()
        await CsvImportService(db_session).import_csv(user_id, "export.csv", EXPORT)

        db_session.add(Rule(user_id=user_id, keyword="corner", category_id=transport, priority=0))
        await db_session.commit()
        service = RecategorizationService(db_session)

        first = await service.recategorize(user_id)
        second = await service.recategorize(user_id)

        assert first.updated_count == 0
        assert second.updated_count == 0
        assert (await _categories_by_description(session_factory))["Corner Cafe"] == food

    async def test_sweep_respects_period(self, db_session, session_factory, test_user, system_categories):
        user_id = test_user.id
        await CsvImportService(db_session).import_csv(user_id, "export.csv", EXPORT)
        db_session.add(Rule(user_id=user_id, keyword="store", category_id=system_categories["food"].id))
        await db_session.commit()

        february = await RecategorizationService(db_session).recategorize(user_id, year=2024, month=2)
        january = await RecategorizationService(db_session).recategorize(user_id, year=2024, month=1)

        assert february.updated_count == 0
        assert january.updated_count == 1

    async def test_second_sweep_changes_nothing(self, db_session, session_factory, test_user, system_categories):
        user_id = test_user.id
        food = system_categories["food"].id
        await CsvImportService(db_session).import_csv(user_id, "export.csv", EXPORT)
        db_session.add(Rule(user_id=user_id, keyword="store", category_id=food))
        await db_session.commit()
        service = RecategorizationService(db_session)

        first = await service.recategorize(user_id)
        after_first = await _categories_by_description(session_factory)
        second = await service.recategorize(user_id)

        assert (first.updated_count, second.updated_count) == (1, 0)
        assert await _categories_by_description(session_factory) == after_first
        assert after_first["Store A"] == food

    async def test_no_rules(self, db_session, test_user, system_categories):
        await CsvImportService(db_session).import_csv(test_user.id, "export.csv", EXPORT)

        result = await RecategorizationService(db_session).recategorize(test_user.id)

        assert result.status == RecategorizeStatus.NO_RULES
        assert result.updated_count == 0
