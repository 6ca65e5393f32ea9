# ruff: noqa: I001
"""Ledger core tables: transactions and fixed deposits.

Revision ID: 0001_ledger_core
Revises: None
Create Date: 2026-10-18
"""

from __future__ import annotations  # ruff: noqa: I001

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_ledger_core"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
    ]


def upgrade() -> None:
    # ledger_transactions
    op.create_table(
        "ledger_transactions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("identifier", sa.Text(), nullable=False, unique=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("narration", sa.Text(), nullable=False),
        sa.Column("ref_no", sa.Text(), nullable=True),
        sa.Column("value_date", sa.Date(), nullable=True),
        sa.Column(
            "withdrawal_amt", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")
        ),
        sa.Column("deposit_amt", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("closing_balance", sa.Numeric(18, 2), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column(
            "category", sa.Text(), nullable=False, server_default=sa.text("'Uncategorized'")
        ),
        *_timestamps(),
    )
    op.create_index("ix_ledger_tx_date", "ledger_transactions", ["date"])
    op.create_index("ix_ledger_tx_ref_no", "ledger_transactions", ["ref_no"])
    op.create_index("ix_ledger_tx_category", "ledger_transactions", ["category"])

    # fixed_deposits
    op.create_table(
        "fixed_deposits",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("fd_number", sa.Text(), nullable=False, unique=True),
        sa.Column("principal_amt", sa.Numeric(18, 2), nullable=True),
        sa.Column("interest_rate", sa.Numeric(6, 3), nullable=True),
        sa.Column("maturity_date", sa.Date(), nullable=True),
        sa.Column("maturity_amt", sa.Numeric(18, 2), nullable=True),
        sa.Column("status", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_fixed_deposits_status", "fixed_deposits", ["status"])
    op.create_index("ix_fixed_deposits_maturity_date", "fixed_deposits", ["maturity_date"])


def downgrade() -> None:
    op.drop_index("ix_fixed_deposits_maturity_date", table_name="fixed_deposits")
    op.drop_index("ix_fixed_deposits_status", table_name="fixed_deposits")
    op.drop_table("fixed_deposits")

    op.drop_index("ix_ledger_tx_category", table_name="ledger_transactions")
    op.drop_index("ix_ledger_tx_ref_no", table_name="ledger_transactions")
    op.drop_index("ix_ledger_tx_date", table_name="ledger_transactions")
    op.drop_table("ledger_transactions")
