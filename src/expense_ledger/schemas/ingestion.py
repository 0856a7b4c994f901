"""Request/response schemas for CSV import and re-categorization."""

import enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CsvImportResult(BaseModel):
    """Result of one CSV import.

    total_rows always equals imported_rows + skipped_rows + duplicate_rows.
    """

    upload_id: UUID = Field(description="ID of the upload audit record")
    total_rows: int = Field(description="Data lines in the file (header excluded)")
    imported_rows: int = Field(description="Transactions created by this upload")
    skipped_rows: int = Field(description="Rows rejected by the parser")
    duplicate_rows: int = Field(description="Rows already imported or repeated in the file")

    model_config = ConfigDict(from_attributes=True)


class RecategorizeStatus(str, enum.Enum):
    COMPLETED = "COMPLETED"
    NO_RULES = "NO_RULES"


class RecategorizeRequest(BaseModel):
    """Scope of a sweep; month narrows the year."""

    year: int | None = Field(None, ge=1900, le=9999)
    month: int | None = Field(None, ge=1, le=12)

    @model_validator(mode="after")
    def month_needs_year(self) -> "RecategorizeRequest":
        if self.month is not None and self.year is None:
            raise ValueError("month requires year")
        return self


class RecategorizeResult(BaseModel):
    """Result of a re-categorization sweep."""

    status: RecategorizeStatus
    updated_count: int = Field(description="Transactions moved out of Other/uncategorized")


class AvailableYearsResponse(BaseModel):
    years: list[int]
