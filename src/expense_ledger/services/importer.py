"""CSV batch import service.

This module orchestrates one upload end to end:
1. Record the upload (audit trail)
2. Parse rows and collect row errors
3. Resolve the Other category
4. Drop duplicates against persisted history
5. Categorize with the merged rule set
6. Persist the whole batch in one commit
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from expense_ledger.categorization.rules import RuleSet
from expense_ledger.config import settings
from expense_ledger.core.exceptions import ConfigurationError, CsvInputError, PersistenceError
from expense_ledger.ingestion.dedup import DeduplicationFilter
from expense_ledger.models.csv_upload import UploadStatus
from expense_ledger.parsers.csv_reader import iter_records
from expense_ledger.parsers.factory import EmptyCsvError, UnrecognizedFormatError, get_parser_factory
from expense_ledger.repositories.category import CategoryRepository
from expense_ledger.repositories.csv_upload import CsvUploadRepository
from expense_ledger.repositories.rule import RuleRepository
from expense_ledger.repositories.transaction import TransactionRepository
from expense_ledger.schemas.ingestion import CsvImportResult
from expense_ledger.schemas.internal import ParseResult

logger = logging.getLogger(__name__)


class CsvImportService:
    """Service for importing uploaded CSV exports.

    A batch is all-or-nothing: either every new row is stored and the upload
    is COMPLETED, or nothing is stored and the upload is FAILED.
    """

    def __init__(self, db: AsyncSession):
        """Initialize the service.

        Args:
            db: Database session for persistence
        """
        self.db = db
        self.parser_factory = get_parser_factory()
        self.category_repo = CategoryRepository(db)
        self.rule_repo = RuleRepository(db)
        self.transaction_repo = TransactionRepository(db)
        self.upload_repo = CsvUploadRepository(db)
        self.dedup = DeduplicationFilter(self.transaction_repo)

    async def import_csv(self, user_id: UUID, file_name: str, csv_content: str) -> CsvImportResult:
        """Import one CSV file for a user.

        Args:
            user_id: Owner of the imported transactions
            file_name: Original file name (kept for the audit record)
            csv_content: Decoded file content

        Returns:
            CsvImportResult where total = imported + skipped + duplicates

        Raises:
            CsvInputError: If the file is empty, unrecognized or has no usable rows
            ConfigurationError: If the user has no Other category
            PersistenceError: If the batch could not be stored
        """
        if not csv_content.strip():
            raise CsvInputError("CSV_001", {"file_name": file_name})

        provisional_rows = max(len(list(iter_records(csv_content))) - 1, 0)
        upload = await self.upload_repo.create_upload(
            user_id=user_id,
            file_name=file_name,
            raw_data=csv_content,
            row_count=provisional_rows,
        )
        # Instances expire on rollback, so keep the plain id around
        upload_id = upload.id
        logger.info("Upload recorded", extra={"upload_id": str(upload_id), "row_count": provisional_rows})

        parsed = await self._parse(upload_id, csv_content)

        try:
            await self.upload_repo.update_status(upload_id, UploadStatus.PROCESSING)
            await self.db.commit()

            other = await self.category_repo.find_other_category(user_id)
            if other is None:
                await self._fail(upload_id)
                raise ConfigurationError("CFG_001", {"user_id": str(user_id)})

            dedup_result = await self.dedup.filter(user_id, parsed.rows)
            rules = RuleSet(await self.rule_repo.find_applicable_rules(user_id), other.id)
            categorized = [
                (candidate, rules.categorize(candidate.description)) for candidate in dedup_result.to_import
            ]

            inserted_ids = await self.transaction_repo.insert_many(user_id, categorized, upload_id=upload_id)
            await self.upload_repo.update_status(upload_id, UploadStatus.COMPLETED, row_count=parsed.total_rows)
            await self.db.commit()
        except ConfigurationError:
            raise
        except Exception as e:
            await self._abort(upload_id, e)
            raise PersistenceError("DB_001", {"upload_id": str(upload_id)}) from e

        imported_rows = len(inserted_ids)
        duplicate_rows = len(dedup_result.duplicates) + (len(categorized) - imported_rows)

        logger.info(
            "CSV import completed",
            extra={
                "upload_id": str(upload_id),
                "format": parsed.format,
                "total_rows": parsed.total_rows,
                "imported_rows": imported_rows,
                "skipped_rows": parsed.skipped_rows,
                "duplicate_rows": duplicate_rows,
            },
        )
        return CsvImportResult(
            upload_id=upload_id,
            total_rows=parsed.total_rows,
            imported_rows=imported_rows,
            skipped_rows=parsed.skipped_rows,
            duplicate_rows=duplicate_rows,
        )

    async def _parse(self, upload_id: UUID, csv_content: str) -> ParseResult:
        """Parse the upload, failing it on unusable input.

        Raises:
            CsvInputError: CSV_001/CSV_002/CSV_003
        """
        try:
            parsed = self.parser_factory.parse(csv_content)
        except EmptyCsvError as e:
            await self._fail(upload_id)
            raise CsvInputError("CSV_001", {"upload_id": str(upload_id)}) from e
        except UnrecognizedFormatError as e:
            logger.warning("Unrecognized CSV format", extra={"upload_id": str(upload_id)})
            await self._fail(upload_id)
            raise CsvInputError("CSV_002", {"upload_id": str(upload_id)}) from e

        if not parsed.rows:
            logger.warning(
                "No parseable rows",
                extra={"upload_id": str(upload_id), "total_rows": parsed.total_rows},
            )
            await self._fail(upload_id)
            raise CsvInputError(
                "CSV_003",
                {"upload_id": str(upload_id), "skipped_rows": parsed.skipped_rows},
            )
        return parsed

    async def _abort(self, upload_id: UUID, error: Exception) -> None:
        """Roll back a batch that failed after parsing and mark the upload FAILED.

        Covers failures while reading history and rules as well as while
        writing the batch, so the upload never stays PROCESSING.
        """
        extra = {"upload_id": str(upload_id), "error_type": type(error).__name__}
        if settings.debug:
            logger.exception("Batch import failed", extra=extra)
        else:
            logger.error("Batch import failed", extra=extra)
        await self.db.rollback()
        try:
            await self._fail(upload_id)
        except Exception as fail_error:
            logger.error(
                "Could not mark upload failed",
                extra={"upload_id": str(upload_id), "error_type": type(fail_error).__name__},
            )
            await self.db.rollback()

    async def _fail(self, upload_id: UUID) -> None:
        """Mark the upload FAILED in its own commit."""
        await self.upload_repo.update_status(upload_id, UploadStatus.FAILED)
        await self.db.commit()
        logger.info("Upload marked failed", extra={"upload_id": str(upload_id)})
