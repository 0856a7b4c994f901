"""add_external_transaction_id_to_transactions

Revision ID: c5d83a1e6f42
Revises: a1f4c2e9b7d0
Create Date: 2026-10-18 10:12:31.904117

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'c5d83a1e6f42'
down_revision: Union[str, None] = 'a1f4c2e9b7d0'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Transaction number from the source export (PayPay 取引番号); not part of the dedup key
    op.add_column('transactions', sa.Column('external_transaction_id', sa.String(length=50), nullable=True))


def downgrade() -> None:
    op.drop_column('transactions', 'external_transaction_id')
