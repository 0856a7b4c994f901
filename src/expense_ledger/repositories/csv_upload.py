"""Upload audit repository."""
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from expense_ledger.models.csv_upload import CsvUpload, UploadStatus, can_transition
from expense_ledger.repositories.base import BaseRepository


class InvalidStatusTransition(ValueError):
    """Upload status may only move forward."""


class CsvUploadRepository(BaseRepository[CsvUpload]):
    """Repository for CsvUpload audit records."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, CsvUpload)

    async def create_upload(
        self,
        user_id: UUID,
        file_name: str,
        raw_data: str,
        row_count: int,
        status: UploadStatus = UploadStatus.PENDING,
    ) -> CsvUpload:
        """Create and commit a new audit record."""
        return await self.create(
            CsvUpload(
                user_id=user_id,
                file_name=file_name,
                raw_data=raw_data,
                row_count=row_count,
                status=status.value,
            )
        )

    async def update_status(
        self, upload_id: UUID, status: UploadStatus, row_count: int | None = None
    ) -> None:
        """Advance the upload status. Does not commit.

        Works by ID with SQL statements so it is safe to call right after a
        rollback, when loaded instances are expired.

        Raises:
            InvalidStatusTransition: If the move is backwards or repeated
        """
        current = await self.db.scalar(select(CsvUpload.status).where(CsvUpload.id == upload_id))
        if current is None:
            raise InvalidStatusTransition(f"Upload {upload_id} does not exist")
        if not can_transition(current, status.value):
            raise InvalidStatusTransition(f"Cannot move upload from {current} to {status.value}")

        values: dict = {"status": status.value}
        if row_count is not None:
            values["row_count"] = row_count
        await self.db.execute(
            update(CsvUpload)
            .where(CsvUpload.id == upload_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )

    async def list_file_names(self, user_id: UUID) -> list[str]:
        result = await self.db.execute(
            select(CsvUpload.file_name).where(CsvUpload.user_id == user_id)
        )
        return list(result.scalars().all())
