"""Keyword rule mapping a description substring to a category."""
from uuid import UUID

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from expense_ledger.models.base import BaseModel
from expense_ledger.models.category import Category


class Rule(BaseModel):
    """Categorization rule.

    `user_id = NULL` denotes a system rule visible to every account. Priority
    is one flat ordering space shared by system and user rules.
    """

    __tablename__ = "category_rules"

    user_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True
    )
    keyword: Mapped[str] = mapped_column(String(100), nullable=False)
    category_id: Mapped[UUID] = mapped_column(
        ForeignKey("categories.id", ondelete="CASCADE"), nullable=False, index=True
    )
    priority: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    category: Mapped[Category] = relationship(Category, lazy="selectin")

    @property
    def category_name(self) -> str | None:
        return self.category.name if self.category is not None else None

    def __repr__(self) -> str:
        return f"<Rule(id={self.id}, keyword={self.keyword}, priority={self.priority})>"
