"""Unit tests for CsvImportService."""

from dataclasses import dataclass
from datetime import date
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, Mock
from uuid import UUID, uuid4

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from expense_ledger.core.exceptions import ConfigurationError, CsvInputError, PersistenceError
from expense_ledger.ingestion.dedup import DeduplicationFilter
from expense_ledger.models.csv_upload import UploadStatus
from expense_ledger.services.importer import CsvImportService

USER_ID = uuid4()
UPLOAD_ID = uuid4()
OTHER_ID = uuid4()
FOOD_ID = uuid4()

GENERIC_CSV = (
    "date,amount,description,payment_method\n"
    "2024-01-05,500,Corner Cafe,Credit\n"
    "2024-01-06,800,City Bus,\n"
    "2024-01-06,oops,Broken Row,\n"
    "2024-01-05,500,corner cafe ,Credit\n"
)


@dataclass
class FakeRule:
    keyword: str
    category_id: UUID
    priority: int = 0


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock(spec=AsyncSession)
    db.add = Mock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.execute = AsyncMock(return_value=MagicMock())
    return db


@pytest.fixture
def service(mock_db):
    """Service with every repository replaced by an AsyncMock."""
    service = CsvImportService(mock_db)

    service.upload_repo = AsyncMock()
    service.upload_repo.create_upload.return_value = SimpleNamespace(id=UPLOAD_ID)

    service.category_repo = AsyncMock()
    service.category_repo.find_other_category.return_value = SimpleNamespace(id=OTHER_ID)

    service.rule_repo = AsyncMock()
    service.rule_repo.find_applicable_rules.return_value = [FakeRule("cafe", FOOD_ID)]

    service.transaction_repo = AsyncMock()
    service.transaction_repo.find_existing.return_value = []
    service.transaction_repo.insert_many.side_effect = lambda user_id, rows, upload_id=None: [
        uuid4() for _ in rows
    ]
    service.dedup = DeduplicationFilter(service.transaction_repo)
    return service


def _statuses(service) -> list[UploadStatus]:
    return [c.args[1] for c in service.upload_repo.update_status.await_args_list]


class TestCsvImportService:
    """Test suite for CsvImportService."""

    def test_initialization(self, mock_db):
        service = CsvImportService(mock_db)

        assert service.db == mock_db
        assert service.parser_factory is not None
        assert service.upload_repo is not None
        assert service.transaction_repo is not None

    async def test_import_success_counts_reconcile(self, service, mock_db):
        result = await service.import_csv(USER_ID, "export.csv", GENERIC_CSV)

        assert result.upload_id == UPLOAD_ID
        assert result.total_rows == 4
        assert result.imported_rows == 2
        assert result.skipped_rows == 1
        assert result.duplicate_rows == 1
        assert result.total_rows == result.imported_rows + result.skipped_rows + result.duplicate_rows
        assert _statuses(service) == [UploadStatus.PROCESSING, UploadStatus.COMPLETED]
        mock_db.rollback.assert_not_called()

    async def test_upload_recorded_with_provisional_count(self, service):
        await service.import_csv(USER_ID, "export.csv", GENERIC_CSV)

        service.upload_repo.create_upload.assert_awaited_once_with(
            user_id=USER_ID, file_name="export.csv", raw_data=GENERIC_CSV, row_count=4
        )
        completed = service.upload_repo.update_status.await_args_list[-1]
        assert completed.kwargs == {"row_count": 4}

    async def test_rows_are_categorized_once_with_fallback(self, service):
        await service.import_csv(USER_ID, "export.csv", GENERIC_CSV)

        service.rule_repo.find_applicable_rules.assert_awaited_once_with(USER_ID)
        rows = service.transaction_repo.insert_many.await_args.args[1]
        assert [(c.description, category) for c, category in rows] == [
            ("Corner Cafe", FOOD_ID),
            ("City Bus", OTHER_ID),
        ]
        assert service.transaction_repo.insert_many.await_args.kwargs == {"upload_id": UPLOAD_ID}

    async def test_existing_history_counts_as_duplicates(self, service):
        service.transaction_repo.find_existing.return_value = [
            SimpleNamespace(txn_date=date(2024, 1, 6), amount=800, description="City Bus"),
        ]

        result = await service.import_csv(USER_ID, "export.csv", GENERIC_CSV)

        assert result.imported_rows == 1
        assert result.duplicate_rows == 2
        service.transaction_repo.find_existing.assert_awaited_once_with(
            USER_ID, (date(2024, 1, 5), date(2024, 1, 6))
        )

    async def test_conflict_rejected_rows_count_as_duplicates(self, service):
        service.transaction_repo.insert_many.side_effect = None
        service.transaction_repo.insert_many.return_value = [uuid4()]

        result = await service.import_csv(USER_ID, "export.csv", GENERIC_CSV)

        assert result.imported_rows == 1
        assert result.duplicate_rows == 2
        assert result.total_rows == result.imported_rows + result.skipped_rows + result.duplicate_rows

    @pytest.mark.parametrize("content", ["", "   \n\n"])
    async def test_empty_content_rejected_before_audit(self, service, content):
        with pytest.raises(CsvInputError) as exc_info:
            await service.import_csv(USER_ID, "export.csv", content)

        assert exc_info.value.error_code == "CSV_001"
        assert exc_info.value.http_status == 400
        service.upload_repo.create_upload.assert_not_called()

    async def test_unrecognized_format_fails_upload(self, service):
        with pytest.raises(CsvInputError) as exc_info:
            await service.import_csv(USER_ID, "export.csv", "foo,bar\n1,2\n")

        assert exc_info.value.error_code == "CSV_002"
        assert _statuses(service) == [UploadStatus.FAILED]
        service.transaction_repo.insert_many.assert_not_called()

    async def test_no_parseable_rows_fails_upload(self, service):
        with pytest.raises(CsvInputError) as exc_info:
            await service.import_csv(USER_ID, "export.csv", "date,amount,description\n2024-01-01,x,y\n")

        assert exc_info.value.error_code == "CSV_003"
        assert _statuses(service) == [UploadStatus.FAILED]

    async def test_missing_other_category(self, service):
        service.category_repo.find_other_category.return_value = None

        with pytest.raises(ConfigurationError) as exc_info:
            await service.import_csv(USER_ID, "export.csv", GENERIC_CSV)

        assert exc_info.value.error_code == "CFG_001"
        assert _statuses(service) == [UploadStatus.PROCESSING, UploadStatus.FAILED]
        service.transaction_repo.insert_many.assert_not_called()

    async def test_persistence_failure_rolls_back_and_fails_upload(self, service, mock_db):
        service.transaction_repo.insert_many.side_effect = OperationalError("INSERT", {}, Exception("boom"))

        with pytest.raises(PersistenceError) as exc_info:
            await service.import_csv(USER_ID, "export.csv", GENERIC_CSV)

        assert exc_info.value.error_code == "DB_001"
        assert exc_info.value.http_status == 500
        mock_db.rollback.assert_awaited()
        assert _statuses(service) == [UploadStatus.PROCESSING, UploadStatus.FAILED]

    async def test_commit_failure_rolls_back(self, service, mock_db):
        # PENDING->PROCESSING commit succeeds, the batch commit fails
        mock_db.commit.side_effect = [None, OperationalError("COMMIT", {}, Exception("boom")), None]

        with pytest.raises(PersistenceError):
            await service.import_csv(USER_ID, "export.csv", GENERIC_CSV)

        mock_db.rollback.assert_awaited()
        assert _statuses(service)[-1] == UploadStatus.FAILED

    @pytest.mark.parametrize("failing_read", ["history", "rules"])
    async def test_read_failure_after_processing_fails_upload(self, service, mock_db, failing_read):
        error = OperationalError("SELECT", {}, Exception("connection lost"))
        if failing_read == "history":
            service.transaction_repo.find_existing.side_effect = error
        else:
            service.rule_repo.find_applicable_rules.side_effect = error

        with pytest.raises(PersistenceError) as exc_info:
            await service.import_csv(USER_ID, "export.csv", GENERIC_CSV)

        assert exc_info.value.error_code == "DB_001"
        mock_db.rollback.assert_awaited()
        assert _statuses(service) == [UploadStatus.PROCESSING, UploadStatus.FAILED]
        service.transaction_repo.insert_many.assert_not_called()
