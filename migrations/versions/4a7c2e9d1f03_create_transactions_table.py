"""create transactions table

Revision ID: 4a7c2e9d1f03
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "4a7c2e9d1f03"
down_revision = None
branch_labels = None
depends_on = None

transaction_type = sa.Enum("INCOME", "EXPENSE", "TRANSFER", name="transactiontype")


def upgrade() -> None:
    op.create_table(
        "transactions",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("type", transaction_type, nullable=False),
        sa.Column("amount", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column(
            "description", sa.String(length=300), server_default="", nullable=False
        ),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("payment_method", sa.String(length=50), nullable=True),
        sa.Column("vendor", sa.String(length=120), nullable=True),
        sa.Column("category_id", sa.UUID(), nullable=True),
        sa.Column("account_id", sa.UUID(), nullable=True),
        sa.Column("installments", sa.Integer(), nullable=True),
        sa.Column("installment_no", sa.Integer(), nullable=True),
        sa.Column("installment_group_id", sa.UUID(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_transactions_user_id", "transactions", ["user_id"], unique=False
    )
    op.create_index(
        "ix_transactions_installment_group_id",
        "transactions",
        ["installment_group_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_transactions_installment_group_id", table_name="transactions")
    op.drop_index("ix_transactions_user_id", table_name="transactions")
    op.drop_table("transactions")
    transaction_type.drop(op.get_bind(), checkfirst=True)
