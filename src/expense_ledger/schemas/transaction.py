"""Transaction list, entry and summary schemas."""

import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator


class TransactionListQuery(BaseModel):
    """Filters, paging and ordering for the transaction list."""

    year: int | None = Field(None, ge=1900, le=9999, description="Filter by calendar year")
    month: int | None = Field(None, ge=1, le=12, description="Filter by month of `year`")
    category_id: UUID | None = Field(None, description="Filter by category ID")
    search: str | None = Field(None, max_length=200, description="Search descriptions")
    page: int = Field(1, ge=1, description="Page number (1-indexed)")
    limit: int = Field(50, ge=1, le=200, description="Items per page (1-200)")
    sort_by: Literal["date", "amount"] = Field("date", description="Sort field")
    sort_order: Literal["asc", "desc"] = Field("desc", description="Sort direction")

    @model_validator(mode="after")
    def month_needs_year(self) -> "TransactionListQuery":
        if self.month is not None and self.year is None:
            raise ValueError("month requires year")
        return self


class TransactionCreateRequest(BaseModel):
    """A hand-entered expense."""

    date: datetime.date
    amount: int = Field(description="Amount in minor currency units")
    description: str = Field(min_length=1, max_length=200)
    category_id: UUID

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Description cannot be blank")
        return v.strip()


class TransactionUpdateRequest(BaseModel):
    """Manual recategorization. Date, amount and description are fixed."""

    category_id: UUID


class TransactionResponse(BaseModel):
    id: UUID
    date: datetime.date
    description: str
    amount: int
    payment_method: str | None = None
    external_transaction_id: str | None = None
    upload_id: UUID | None = None
    category_id: UUID | None = None
    category_name: str | None = None
    category_color: str | None = None
    display_order: int | None = None
    created_at: datetime.datetime
    updated_at: datetime.datetime


class Pagination(BaseModel):
    page: int
    limit: int
    total_count: int
    total_pages: int
    total_amount: int = Field(description="Sum over every matching transaction, not just this page")


class TransactionListResult(BaseModel):
    data: list[TransactionResponse]
    pagination: Pagination


class SummaryTotals(BaseModel):
    total_amount: int
    transaction_count: int


class CategoryBreakdown(BaseModel):
    category_id: UUID | None = None
    category_name: str
    category_color: str
    display_order: int
    total_amount: int
    transaction_count: int


class MonthlyBreakdown(BaseModel):
    month: int = Field(ge=1, le=12)
    total_amount: int
    categories: list[CategoryBreakdown]


class TransactionSummaryResponse(BaseModel):
    """Spending for a year or one month of it.

    monthly_breakdown is only filled for whole-year summaries.
    """

    year: int
    month: int | None = None
    summary: SummaryTotals
    category_breakdown: list[CategoryBreakdown]
    monthly_breakdown: list[MonthlyBreakdown] | None = None
