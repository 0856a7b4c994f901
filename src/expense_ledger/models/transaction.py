"""Transaction model representing one imported or manually entered expense."""
from datetime import date
from uuid import UUID

from sqlalchemy import BigInteger, Date, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from expense_ledger.models.base import BaseModel


class Transaction(BaseModel):
    """Persisted expense.

    Date, amount and description never change after creation; only the
    category is mutable. `description_key` (trimmed, lower-cased description)
    backs the dedup unique constraint.
    """

    __tablename__ = "transactions"

    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    upload_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("csv_uploads.id", ondelete="SET NULL"), nullable=True
    )
    txn_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(String(200), nullable=False)
    description_key: Mapped[str] = mapped_column(String(200), nullable=False)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    payment_method: Mapped[str | None] = mapped_column(String(100), nullable=True)
    external_transaction_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    category_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("categories.id", ondelete="SET NULL"), nullable=True
    )

    __table_args__ = (
        UniqueConstraint(
            "user_id", "txn_date", "amount", "description_key", name="uq_transactions_dedup_key"
        ),
        Index("ix_transactions_user_id_txn_date", "user_id", "txn_date"),
        Index("ix_transactions_user_id_category_id", "user_id", "category_id"),
    )

    def __repr__(self) -> str:
        return f"<Transaction(id={self.id}, description={self.description}, amount={self.amount})>"
