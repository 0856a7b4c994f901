"""Initial ledger schema with system categories and rules.

Revision ID: a1f4c2e9b7d0
Revises:
Create Date: 2026-10-18
"""

import uuid
from datetime import datetime, timezone
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "a1f4c2e9b7d0"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# (name, color, icon, display_order, is_other)
SYSTEM_CATEGORIES = [
    ("食費", "#FF6B6B", "utensils", 1, False),
    ("交通費", "#4ECDC4", "train", 2, False),
    ("日用品", "#45B7D1", "shopping-cart", 3, False),
    ("娯楽", "#96CEB4", "gamepad-2", 4, False),
    ("通信費", "#FFEAA7", "wifi", 5, False),
    ("光熱費", "#DDA0DD", "zap", 6, False),
    ("医療費", "#98D8C8", "stethoscope", 7, False),
    ("その他", "#9C9C9C", "circle-dot", 9999, True),
]

# (keyword, category name)
SYSTEM_RULES = [
    ("ファミリーマート", "日用品"),
    ("セブン－イレブン", "日用品"),
    ("ローソン", "日用品"),
    ("マクドナルド", "食費"),
    ("吉野家", "食費"),
    ("スターバックス", "食費"),
    ("ＪＲ", "交通費"),
    ("地下鉄", "交通費"),
    ("タクシー", "交通費"),
    ("ソフトバンク", "通信費"),
    ("ドコモ", "通信費"),
    ("ａｕ", "通信費"),
]


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    categories = op.create_table(
        "categories",
        sa.Column("user_id", sa.Uuid(), nullable=True),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("color", sa.String(length=7), nullable=False),
        sa.Column("icon", sa.String(length=50), nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.Column("is_default", sa.Boolean(), nullable=False),
        sa.Column("is_other", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "name", name="uq_category_user_name"),
    )
    op.create_index("ix_categories_user_id", "categories", ["user_id"], unique=False)

    rules = op.create_table(
        "category_rules",
        sa.Column("user_id", sa.Uuid(), nullable=True),
        sa.Column("keyword", sa.String(length=100), nullable=False),
        sa.Column("category_id", sa.Uuid(), nullable=False),
        sa.Column("priority", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_category_rules_user_id", "category_rules", ["user_id"], unique=False)
    op.create_index("ix_category_rules_category_id", "category_rules", ["category_id"], unique=False)

    op.create_table(
        "csv_uploads",
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("file_name", sa.String(length=255), nullable=False),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("raw_data", sa.Text(), nullable=False),
        sa.Column("row_count", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_csv_uploads_user_id", "csv_uploads", ["user_id"], unique=False)

    op.create_table(
        "transactions",
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("upload_id", sa.Uuid(), nullable=True),
        sa.Column("txn_date", sa.Date(), nullable=False),
        sa.Column("description", sa.String(length=200), nullable=False),
        sa.Column("description_key", sa.String(length=200), nullable=False),
        sa.Column("amount", sa.BigInteger(), nullable=False),
        sa.Column("payment_method", sa.String(length=100), nullable=True),
        sa.Column("category_id", sa.Uuid(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["upload_id"], ["csv_uploads.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "user_id", "txn_date", "amount", "description_key", name="uq_transactions_dedup_key"
        ),
    )
    op.create_index("ix_transactions_user_id", "transactions", ["user_id"], unique=False)
    op.create_index(
        "ix_transactions_user_id_txn_date", "transactions", ["user_id", "txn_date"], unique=False
    )
    op.create_index(
        "ix_transactions_user_id_category_id",
        "transactions",
        ["user_id", "category_id"],
        unique=False,
    )

    # System categories and rules (user_id NULL) shared by every account.
    now = datetime.now(timezone.utc)
    category_ids = {name: uuid.uuid4() for name, *_ in SYSTEM_CATEGORIES}
    op.bulk_insert(
        categories,
        [
            {
                "id": category_ids[name],
                "user_id": None,
                "name": name,
                "color": color,
                "icon": icon,
                "display_order": display_order,
                "is_default": True,
                "is_other": is_other,
                "created_at": now,
                "updated_at": now,
            }
            for name, color, icon, display_order, is_other in SYSTEM_CATEGORIES
        ],
    )
    op.bulk_insert(
        rules,
        [
            {
                "id": uuid.uuid4(),
                "user_id": None,
                "keyword": keyword,
                "category_id": category_ids[category_name],
                "priority": 0,
                "created_at": now,
                "updated_at": now,
            }
            for keyword, category_name in SYSTEM_RULES
        ],
    )


def downgrade() -> None:
    op.drop_index("ix_transactions_user_id_category_id", table_name="transactions")
    op.drop_index("ix_transactions_user_id_txn_date", table_name="transactions")
    op.drop_index("ix_transactions_user_id", table_name="transactions")
    op.drop_table("transactions")
    op.drop_index("ix_csv_uploads_user_id", table_name="csv_uploads")
    op.drop_table("csv_uploads")
    op.drop_index("ix_category_rules_category_id", table_name="category_rules")
    op.drop_index("ix_category_rules_user_id", table_name="category_rules")
    op.drop_table("category_rules")
    op.drop_index("ix_categories_user_id", table_name="categories")
    op.drop_table("categories")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
