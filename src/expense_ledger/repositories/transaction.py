"""Transaction repository: history lookups, batch insert, listing and category sweeps.

Write methods here do not commit; the calling service owns the database
transaction so a whole import or sweep commits (or rolls back) as one unit.
"""
from datetime import date, datetime, timezone
from typing import NamedTuple
from uuid import UUID, uuid4

from sqlalchemy import asc, delete, desc, distinct, extract, func, or_, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from expense_ledger.ingestion.dedup import description_key
from expense_ledger.models.category import Category
from expense_ledger.models.transaction import Transaction
from expense_ledger.repositories.base import BaseRepository
from expense_ledger.repositories.category import is_category_accessible
from expense_ledger.repositories.results import DuplicateTransactionError, NotFoundError, Ok
from expense_ledger.schemas.internal import CandidateTransaction

# Keeps multi-row INSERTs well under PostgreSQL's bind parameter limit.
INSERT_CHUNK_SIZE = 1000


class TransactionRow(NamedTuple):
    transaction: Transaction
    category_name: str | None
    category_color: str | None
    display_order: int | None


class CategoryTotalRow(NamedTuple):
    category_id: UUID | None
    category_name: str | None
    category_color: str | None
    display_order: int | None
    total_amount: int
    transaction_count: int


def period_bounds(year: int, month: int | None = None) -> tuple[date, date]:
    """Half-open [start, end) date range for a year or one month of it."""
    if month is None:
        return date(year, 1, 1), date(year + 1, 1, 1)
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return start, end


class TransactionRepository(BaseRepository[Transaction]):
    """Repository for Transaction model."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Transaction)

    async def find_existing(
        self, user_id: UUID, date_range: tuple[date, date] | None = None
    ) -> list[Transaction]:
        """Get the user's transactions, optionally within an inclusive date range."""
        query = select(Transaction).where(Transaction.user_id == user_id)
        if date_range is not None:
            start, end = date_range
            query = query.where(Transaction.txn_date >= start, Transaction.txn_date <= end)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def insert_many(
        self,
        user_id: UUID,
        rows: list[tuple[CandidateTransaction, UUID]],
        upload_id: UUID | None = None,
    ) -> list[UUID]:
        """Insert categorized candidates, skipping rows that hit the dedup key.

        Uses INSERT .. ON CONFLICT DO NOTHING so a concurrent import of an
        overlapping file cannot create the same transaction twice; rows
        rejected by the constraint are simply absent from the returned ids.

        Args:
            user_id: Owner of the rows
            rows: (candidate, category_id) pairs
            upload_id: Audit record the rows came from

        Returns:
            IDs of the rows actually inserted
        """
        if not rows:
            return []

        insert = self._dialect_insert()
        now = datetime.now(timezone.utc)
        values = [
            {
                "id": uuid4(),
                "user_id": user_id,
                "upload_id": upload_id,
                "txn_date": candidate.date,
                "description": candidate.description,
                "description_key": description_key(candidate.description),
                "amount": candidate.amount,
                "payment_method": candidate.payment_method[:100] or None,
                "external_transaction_id": (candidate.external_id or "")[:50] or None,
                "category_id": category_id,
                "created_at": now,
                "updated_at": now,
            }
            for candidate, category_id in rows
        ]

        inserted: list[UUID] = []
        for start in range(0, len(values), INSERT_CHUNK_SIZE):
            chunk = values[start:start + INSERT_CHUNK_SIZE]
            stmt = (
                insert(Transaction)
                .values(chunk)
                .on_conflict_do_nothing()
                .returning(Transaction.id)
            )
            result = await self.db.execute(stmt)
            inserted.extend(result.scalars().all())
        return inserted

    async def find_uncategorized(
        self,
        user_id: UUID,
        other_category_id: UUID,
        year: int | None = None,
        month: int | None = None,
    ) -> list[Transaction]:
        """Get transactions still in the Other category or without a category."""
        query = select(Transaction).where(
            Transaction.user_id == user_id,
            or_(
                Transaction.category_id == other_category_id,
                Transaction.category_id.is_(None),
            ),
        )
        if year is not None:
            start, end = period_bounds(year, month)
            query = query.where(Transaction.txn_date >= start, Transaction.txn_date < end)

        result = await self.db.execute(query.order_by(Transaction.txn_date, Transaction.id))
        return list(result.scalars().all())

    async def update_category_where(
        self,
        user_id: UUID,
        transaction_ids: list[UUID],
        other_category_id: UUID,
        new_category_id: UUID,
    ) -> int:
        """Move the given transactions to a new category.

        Rows that left Other/uncategorized since they were read (for example a
        manual recategorization) are not touched.

        Returns:
            Number of rows changed
        """
        if not transaction_ids:
            return 0

        result = await self.db.execute(
            update(Transaction)
            .where(
                Transaction.user_id == user_id,
                Transaction.id.in_(transaction_ids),
                or_(
                    Transaction.category_id == other_category_id,
                    Transaction.category_id.is_(None),
                ),
            )
            .values(category_id=new_category_id, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    async def get_years(self, user_id: UUID) -> list[int]:
        """Distinct years that have at least one transaction."""
        year = extract("year", Transaction.txn_date)
        result = await self.db.execute(
            select(distinct(year)).where(Transaction.user_id == user_id)
        )
        return [int(value) for value in result.scalars().all() if value is not None]

    def _conditions(
        self,
        user_id: UUID,
        year: int | None = None,
        month: int | None = None,
        category_id: UUID | None = None,
        search: str | None = None,
    ) -> list:
        conditions = [Transaction.user_id == user_id]
        if year is not None:
            start, end = period_bounds(year, month)
            conditions += [Transaction.txn_date >= start, Transaction.txn_date < end]
        if category_id is not None:
            conditions.append(Transaction.category_id == category_id)
        if search:
            conditions.append(Transaction.description.icontains(search, autoescape=True))
        return conditions

    def _with_category(self):
        return select(Transaction, Category.name, Category.color, Category.display_order).outerjoin(
            Category, Transaction.category_id == Category.id
        )

    async def find_page(
        self,
        user_id: UUID,
        year: int | None = None,
        month: int | None = None,
        category_id: UUID | None = None,
        search: str | None = None,
        sort_by: str = "date",
        sort_order: str = "desc",
        offset: int = 0,
        limit: int = 50,
    ) -> tuple[list[TransactionRow], int, int]:
        """Get one page of the user's transactions with their category.

        Args:
            user_id: Owner of the transactions
            year: Limit to this calendar year
            month: Limit to this month of `year`
            category_id: Limit to one category
            search: Case-insensitive substring of the description
            sort_by: "date" or "amount"
            sort_order: "asc" or "desc"
            offset: Rows to skip
            limit: Maximum rows to return

        Returns:
            (rows, total_count, total_amount) where the totals cover every
            matching row, not just the page
        """
        conditions = self._conditions(user_id, year, month, category_id, search)

        totals = await self.db.execute(
            select(func.count(Transaction.id), func.coalesce(func.sum(Transaction.amount), 0)).where(
                *conditions
            )
        )
        total_count, total_amount = totals.one()

        column = Transaction.amount if sort_by == "amount" else Transaction.txn_date
        direction = asc if sort_order == "asc" else desc
        result = await self.db.execute(
            self._with_category()
            .where(*conditions)
            .order_by(direction(column), direction(Transaction.created_at), Transaction.id)
            .offset(offset)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        rows = [TransactionRow(*row) for row in result.all()]
        return rows, int(total_count), int(total_amount)

    async def get_row(self, user_id: UUID, transaction_id: UUID) -> TransactionRow | None:
        """Get one of the user's transactions with its category."""
        result = await self.db.execute(
            self._with_category()
            .where(Transaction.id == transaction_id, Transaction.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        row = result.one_or_none()
        return TransactionRow(*row) if row is not None else None

    async def create_manual(
        self, user_id: UUID, candidate: CandidateTransaction, category_id: UUID
    ) -> Ok[UUID] | NotFoundError | DuplicateTransactionError:
        """Insert one hand-entered transaction under the same dedup key as imports."""
        if not await is_category_accessible(self.db, user_id, category_id):
            return NotFoundError(entity="category", id=category_id)

        inserted = await self.insert_many(user_id, [(candidate, category_id)])
        if not inserted:
            return DuplicateTransactionError(
                txn_date=candidate.date, amount=candidate.amount, description=candidate.description
            )
        return Ok(inserted[0])

    async def update_category(
        self, user_id: UUID, transaction_id: UUID, category_id: UUID
    ) -> Ok[UUID] | NotFoundError:
        """Move one of the user's transactions to an own or system category.

        Works from any category, including Other; a later sweep leaves the
        row alone unless it is moved back to Other.
        """
        if await self.get_owned(user_id, transaction_id) is None:
            return NotFoundError(entity="transaction", id=transaction_id)
        if not await is_category_accessible(self.db, user_id, category_id):
            return NotFoundError(entity="category", id=category_id)

        await self.db.execute(
            update(Transaction)
            .where(Transaction.id == transaction_id, Transaction.user_id == user_id)
            .values(category_id=category_id, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        return Ok(transaction_id)

    async def delete_owned(self, user_id: UUID, transaction_id: UUID) -> Ok[UUID] | NotFoundError:
        result = await self.db.execute(
            delete(Transaction)
            .where(Transaction.id == transaction_id, Transaction.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        if not result.rowcount:
            return NotFoundError(entity="transaction", id=transaction_id)
        return Ok(transaction_id)

    async def sum_by_category(
        self, user_id: UUID, year: int, month: int | None = None
    ) -> list[CategoryTotalRow]:
        """Total amount and count per category for a year or month."""
        result = await self.db.execute(
            select(
                Transaction.category_id,
                Category.name,
                Category.color,
                Category.display_order,
                func.sum(Transaction.amount),
                func.count(Transaction.id),
            )
            .outerjoin(Category, Transaction.category_id == Category.id)
            .where(*self._conditions(user_id, year, month))
            .group_by(Transaction.category_id, Category.name, Category.color, Category.display_order)
        )
        return [CategoryTotalRow(*row[:4], int(row[4]), int(row[5])) for row in result.all()]

    async def sum_by_month_and_category(self, user_id: UUID, year: int) -> list[tuple[int, CategoryTotalRow]]:
        """Per-category totals for each month of a year that has data."""
        month = extract("month", Transaction.txn_date)
        result = await self.db.execute(
            select(
                month,
                Transaction.category_id,
                Category.name,
                Category.color,
                Category.display_order,
                func.sum(Transaction.amount),
                func.count(Transaction.id),
            )
            .outerjoin(Category, Transaction.category_id == Category.id)
            .where(*self._conditions(user_id, year))
            .group_by(month, Transaction.category_id, Category.name, Category.color, Category.display_order)
        )
        return [
            (int(row[0]), CategoryTotalRow(*row[1:5], int(row[5]), int(row[6])))
            for row in result.all()
        ]

    def _dialect_insert(self):
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert
        if dialect == "sqlite":
            return sqlite.insert
        raise NotImplementedError(f"ON CONFLICT inserts are not supported on {dialect}")
