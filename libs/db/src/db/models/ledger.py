from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    Index,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


# ---------------------------
# Core: ledger_transactions
# ---------------------------


class LedgerTransaction(Base):
    __tablename__ = "ledger_transactions"

    # UUID rendered as text so SQLite and Postgres share one column type.
    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    # ``ref:<ref_no>`` or ``hash:<sha256>``; see statement_ledger.duplicates.
    identifier: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    narration: Mapped[str] = mapped_column(Text, nullable=False)
    ref_no: Mapped[str | None] = mapped_column(Text, nullable=True)
    value_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    withdrawal_amt: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), nullable=False, server_default=text("0")
    )
    deposit_amt: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), nullable=False, server_default=text("0")
    )
    closing_balance: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    # User-edited; upserts never overwrite tags or category.
    tags: Mapped[list[Any]] = mapped_column(JSON, nullable=False, server_default=text("'[]'"))
    category: Mapped[str] = mapped_column(
        Text, nullable=False, server_default=text("'Uncategorized'")
    )
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )

    __table_args__ = (
        Index("ix_ledger_tx_date", "date"),
        Index("ix_ledger_tx_ref_no", "ref_no"),
        Index("ix_ledger_tx_category", "category"),
    )


# ---------------------------
# Core: fixed_deposits
# ---------------------------


class FixedDeposit(Base):
    __tablename__ = "fixed_deposits"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    fd_number: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    principal_amt: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    interest_rate: Mapped[Decimal | None] = mapped_column(Numeric(6, 3), nullable=True)
    maturity_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    maturity_amt: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    status: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )

    __table_args__ = (
        Index("ix_fixed_deposits_status", "status"),
        Index("ix_fixed_deposits_maturity_date", "maturity_date"),
    )


__all__ = [
    "Base",
    "LedgerTransaction",
    "FixedDeposit",
]
