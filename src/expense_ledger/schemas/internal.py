"""Internal data schemas for parsed CSV data.

These models represent the intermediate data between the CSV parser and
persistence. Amounts are integers in the currency's minor unit, kept exactly
as the source file states them.
"""

import enum
import datetime

from pydantic import BaseModel, Field, field_validator


class RowErrorReason(str, enum.Enum):
    COLUMN_COUNT = "COLUMN_COUNT"
    UNTERMINATED_QUOTE = "UNTERMINATED_QUOTE"
    INVALID_DATE = "INVALID_DATE"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    EMPTY_DESCRIPTION = "EMPTY_DESCRIPTION"
    NOT_AN_EXPENSE = "NOT_AN_EXPENSE"


class CandidateTransaction(BaseModel):
    """A normalized, not yet persisted transaction."""

    date: datetime.date = Field(..., description="Transaction date")
    amount: int = Field(..., description="Signed amount in minor currency units")
    description: str = Field(..., description="Merchant / description text")
    payment_method: str = Field(default="", description="Payment method as exported")
    external_id: str | None = Field(default=None, description="Transaction number assigned by the source service")

    @field_validator("description")
    @classmethod
    def description_not_empty(cls, v: str) -> str:
        """Ensure description is not empty."""
        if not v or not v.strip():
            raise ValueError("Description cannot be empty")
        return v.strip()


class RowError(BaseModel):
    """Why one data line was left out of the batch."""

    line_number: int = Field(..., description="1-based line number in the uploaded file")
    reason: RowErrorReason
    message: str = ""


class ParseResult(BaseModel):
    """Output of a CSV parser."""

    format: str = Field(..., description="Detected file format (e.g. paypay, generic)")
    rows: list[CandidateTransaction] = Field(default_factory=list)
    errors: list[RowError] = Field(default_factory=list)
    total_rows: int = Field(0, description="Data lines excluding the header")

    @property
    def skipped_rows(self) -> int:
        return len(self.errors)
