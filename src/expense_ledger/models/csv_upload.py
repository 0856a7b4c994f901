"""CSV upload audit record.

One row per upload attempt; provenance for imported transactions and the
source of the year list derived from export file names.
"""
import enum
from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from expense_ledger.models.base import BaseModel, utcnow


class UploadStatus(str, enum.Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


# Status only moves forward; COMPLETED and FAILED are terminal.
ALLOWED_TRANSITIONS: dict[UploadStatus, set[UploadStatus]] = {
    UploadStatus.PENDING: {UploadStatus.PROCESSING, UploadStatus.FAILED},
    UploadStatus.PROCESSING: {UploadStatus.COMPLETED, UploadStatus.FAILED},
    UploadStatus.COMPLETED: set(),
    UploadStatus.FAILED: set(),
}


def can_transition(current: str, new: str) -> bool:
    return UploadStatus(new) in ALLOWED_TRANSITIONS[UploadStatus(current)]


class CsvUpload(BaseModel):
    """Audit record for one uploaded CSV file."""

    __tablename__ = "csv_uploads"

    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    uploaded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    raw_data: Mapped[str] = mapped_column(Text, nullable=False)
    row_count: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=UploadStatus.PENDING.value, nullable=False)

    def __repr__(self) -> str:
        return f"<CsvUpload(id={self.id}, file_name={self.file_name}, status={self.status})>"
