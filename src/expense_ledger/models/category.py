"""Category model.

`user_id = NULL` marks a system category shared by every account. Exactly
one category per scope has `is_other = True`; it is the categorization
fallback and always sorts last.
"""
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from expense_ledger.models.base import BaseModel

# Display order pinned to the Other category.
OTHER_DISPLAY_ORDER = 9999


class Category(BaseModel):
    """Expense category, either system-wide or owned by one user."""

    __tablename__ = "categories"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_category_user_name"),)

    user_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    color: Mapped[str] = mapped_column(String(7), nullable=False)
    icon: Mapped[str | None] = mapped_column(String(50), nullable=True)
    display_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_other: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    @property
    def is_system(self) -> bool:
        return self.user_id is None

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name={self.name}, is_other={self.is_other})>"
