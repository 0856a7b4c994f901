"""Transaction queries, manual entry and manual recategorization."""

import logging
import re
from collections import defaultdict
from datetime import date
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from expense_ledger.config import settings
from expense_ledger.core.exceptions import ConflictError, NotFoundError
from expense_ledger.models.category import OTHER_DISPLAY_ORDER
from expense_ledger.repositories import results
from expense_ledger.repositories.csv_upload import CsvUploadRepository
from expense_ledger.repositories.transaction import CategoryTotalRow, TransactionRepository, TransactionRow
from expense_ledger.schemas.internal import CandidateTransaction
from expense_ledger.schemas.transaction import (
    CategoryBreakdown,
    MonthlyBreakdown,
    Pagination,
    SummaryTotals,
    TransactionCreateRequest,
    TransactionListQuery,
    TransactionListResult,
    TransactionResponse,
    TransactionSummaryResponse,
)

logger = logging.getLogger(__name__)

# Export file names carry the covered period: "..._20240101-20241231.csv"
PERIOD_IN_FILE_NAME = re.compile(r"(\d{4})\d{4}-(\d{4})\d{4}")

# Hand-entered expenses are recorded as cash payments
MANUAL_PAYMENT_METHOD = "現金"

# Rows whose category was deleted
UNCATEGORIZED_NAME = "未分類"
UNCATEGORIZED_COLOR = "#CCCCCC"
UNCATEGORIZED_DISPLAY_ORDER = OTHER_DISPLAY_ORDER + 1


def years_from_file_name(file_name: str) -> set[int]:
    """Every year covered by the period embedded in an export file name."""
    match = PERIOD_IN_FILE_NAME.search(file_name)
    if not match:
        return set()
    start, end = int(match.group(1)), int(match.group(2))
    if start > end:
        start, end = end, start
    return set(range(start, end + 1))


def _to_response(row: TransactionRow) -> TransactionResponse:
    txn = row.transaction
    return TransactionResponse(
        id=txn.id,
        date=txn.txn_date,
        description=txn.description,
        amount=txn.amount,
        payment_method=txn.payment_method,
        external_transaction_id=txn.external_transaction_id,
        upload_id=txn.upload_id,
        category_id=txn.category_id,
        category_name=row.category_name,
        category_color=row.category_color,
        display_order=row.display_order,
        created_at=txn.created_at,
        updated_at=txn.updated_at,
    )


def _to_breakdown(row: CategoryTotalRow) -> CategoryBreakdown:
    # A category deleted after import leaves its rows with no category
    known = row.category_id is not None and row.category_name is not None
    return CategoryBreakdown(
        category_id=row.category_id,
        category_name=row.category_name if known else UNCATEGORIZED_NAME,
        category_color=row.category_color if known else UNCATEGORIZED_COLOR,
        display_order=row.display_order if known else UNCATEGORIZED_DISPLAY_ORDER,
        total_amount=row.total_amount,
        transaction_count=row.transaction_count,
    )


def _sorted_breakdown(rows: list[CategoryTotalRow]) -> list[CategoryBreakdown]:
    return sorted((_to_breakdown(row) for row in rows), key=lambda b: (b.display_order, b.category_name))


def _unwrap(result):
    if isinstance(result, results.Ok):
        return result.value
    if isinstance(result, results.NotFoundError):
        error_code = "API_005" if result.entity == "transaction" else "API_003"
        raise NotFoundError(error_code, {f"{result.entity}_id": str(result.id)})
    if isinstance(result, results.DuplicateTransactionError):
        raise ConflictError(
            "TXN_001",
            {"date": result.txn_date.isoformat(), "amount": result.amount, "description": result.description},
        )
    raise TypeError(f"Unexpected store result: {result!r}")


class TransactionService:
    """Service layer for transaction queries and single-row edits.

    Each edit commits on its own; batch imports and sweeps go through
    CsvImportService and RecategorizationService instead.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.transaction_repo = TransactionRepository(db)
        self.upload_repo = CsvUploadRepository(db)

    async def available_years(self, user_id: UUID, today: date | None = None) -> list[int]:
        """Years the user has data for, newest first.

        Combines the periods of uploaded files with the years of stored
        transactions. Years before `settings.min_available_year` are dropped;
        the current year is returned when nothing remains.
        """
        years: set[int] = set()
        for file_name in await self.upload_repo.list_file_names(user_id):
            years |= years_from_file_name(file_name)
        years |= set(await self.transaction_repo.get_years(user_id))

        years = {year for year in years if year >= settings.min_available_year}
        if not years:
            years = {(today or date.today()).year}
        return sorted(years, reverse=True)

    async def list_transactions(self, user_id: UUID, query: TransactionListQuery) -> TransactionListResult:
        """One page of the user's transactions plus totals over all matches."""
        rows, total_count, total_amount = await self.transaction_repo.find_page(
            user_id,
            year=query.year,
            month=query.month,
            category_id=query.category_id,
            search=query.search,
            sort_by=query.sort_by,
            sort_order=query.sort_order,
            offset=(query.page - 1) * query.limit,
            limit=query.limit,
        )
        return TransactionListResult(
            data=[_to_response(row) for row in rows],
            pagination=Pagination(
                page=query.page,
                limit=query.limit,
                total_count=total_count,
                total_pages=(total_count + query.limit - 1) // query.limit if total_count > 0 else 0,
                total_amount=total_amount,
            ),
        )

    async def get_summary(self, user_id: UUID, year: int, month: int | None = None) -> TransactionSummaryResponse:
        """Spending totals per category, and per month when a whole year is asked for."""
        category_rows = await self.transaction_repo.sum_by_category(user_id, year, month)
        summary = SummaryTotals(
            total_amount=sum(row.total_amount for row in category_rows),
            transaction_count=sum(row.transaction_count for row in category_rows),
        )

        monthly_breakdown = None
        if month is None:
            by_month: dict[int, list[CategoryTotalRow]] = defaultdict(list)
            for month_number, row in await self.transaction_repo.sum_by_month_and_category(user_id, year):
                by_month[month_number].append(row)
            monthly_breakdown = [
                MonthlyBreakdown(
                    month=month_number,
                    total_amount=sum(row.total_amount for row in by_month[month_number]),
                    categories=_sorted_breakdown(by_month[month_number]),
                )
                for month_number in sorted(by_month)
            ]

        return TransactionSummaryResponse(
            year=year,
            month=month,
            summary=summary,
            category_breakdown=_sorted_breakdown(category_rows),
            monthly_breakdown=monthly_breakdown,
        )

    async def create_transaction(self, user_id: UUID, body: TransactionCreateRequest) -> TransactionResponse:
        """Record a hand-entered expense.

        Raises:
            NotFoundError: API_003 if the category is not visible to the user
            ConflictError: TXN_001 if the same date, amount and description exist
        """
        candidate = CandidateTransaction(
            date=body.date,
            amount=body.amount,
            description=body.description,
            payment_method=MANUAL_PAYMENT_METHOD,
        )
        transaction_id = _unwrap(
            await self.transaction_repo.create_manual(user_id, candidate, body.category_id)
        )
        await self.db.commit()
        logger.info("Transaction created", extra={"transaction_id": str(transaction_id)})
        return _to_response(await self.transaction_repo.get_row(user_id, transaction_id))

    async def update_category(self, user_id: UUID, transaction_id: UUID, category_id: UUID) -> TransactionResponse:
        """Manually recategorize one transaction.

        Raises:
            NotFoundError: API_005 for an unknown transaction, API_003 for an
                unknown category
        """
        _unwrap(await self.transaction_repo.update_category(user_id, transaction_id, category_id))
        await self.db.commit()
        logger.info(
            "Transaction recategorized",
            extra={"transaction_id": str(transaction_id), "category_id": str(category_id)},
        )
        return _to_response(await self.transaction_repo.get_row(user_id, transaction_id))

    async def delete_transaction(self, user_id: UUID, transaction_id: UUID) -> None:
        _unwrap(await self.transaction_repo.delete_owned(user_id, transaction_id))
        await self.db.commit()
        logger.info("Transaction deleted", extra={"transaction_id": str(transaction_id)})
