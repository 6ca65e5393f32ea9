"""DB helpers for tests: bootstrap a temporary SQLite DB from the ORM schema."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from db import Base
from db.client import get_engine, session_scope
from db.models.ledger import FixedDeposit, LedgerTransaction
from sqlalchemy import select
from sqlalchemy import text as sql_text


def bootstrap_sqlite_db(db_file: Path, *, set_default_env: bool = False) -> str:
    """Create a SQLite database file, initialize schema, and return the URL.

    Using a file-backed SQLite DB ensures multiple SQLAlchemy connections share
    the same state (in-memory DBs are per-connection by default).
    """

    url = f"sqlite+pysqlite:///{db_file}"
    # Ensure parent exists before engine creation attempts any writes
    db_file.parent.mkdir(parents=True, exist_ok=True)
    engine = get_engine(database_url=url)
    Base.metadata.create_all(bind=engine)
    _assert_schema_in_sync(url)

    # Make it the default for any code paths that read from the environment
    if set_default_env:
        # Preserve prior non-overriding semantics
        os.environ.setdefault("DATABASE_URL", url)
    return url


def fetch_transactions(database_url: str) -> list[dict[str, Any]]:
    """All ledger rows as plain dicts, ordered by date then narration."""

    with session_scope(database_url=database_url) as session:
        rows = session.execute(
            select(LedgerTransaction).order_by(
                LedgerTransaction.date, LedgerTransaction.narration
            )
        ).scalars()
        return [
            {
                "id": r.id,
                "identifier": r.identifier,
                "date": r.date.isoformat(),
                "narration": r.narration,
                "ref_no": r.ref_no,
                "withdrawal_amt": float(r.withdrawal_amt),
                "deposit_amt": float(r.deposit_amt),
                "closing_balance": (
                    None if r.closing_balance is None else float(r.closing_balance)
                ),
                "tags": list(r.tags),
                "category": r.category,
            }
            for r in rows
        ]


def fetch_fixed_deposits(database_url: str) -> list[dict[str, Any]]:
    with session_scope(database_url=database_url) as session:
        rows = session.execute(select(FixedDeposit).order_by(FixedDeposit.fd_number)).scalars()
        return [
            {
                "fd_number": r.fd_number,
                "principal_amt": None if r.principal_amt is None else float(r.principal_amt),
                "maturity_amt": None if r.maturity_amt is None else float(r.maturity_amt),
                "maturity_date": None if r.maturity_date is None else r.maturity_date.isoformat(),
                "status": r.status,
            }
            for r in rows
        ]


def _assert_schema_in_sync(database_url: str) -> None:
    """Quick sanity check: ORM column sets match the SQLite table column sets."""

    for model in (LedgerTransaction, FixedDeposit):
        expected = {c.name for c in model.__table__.columns}
        with session_scope(database_url=database_url) as session:
            rows = session.execute(
                sql_text(f"PRAGMA table_info('{model.__tablename__}')")
            ).fetchall()
            got = {row[1] for row in rows}  # (cid, name, type, notnull, dflt_value, pk)
        missing = expected - got
        extra = got - expected
        assert not missing and not extra, (
            f"{model.__tablename__} schema drift: missing={missing or '∅'}, extra={extra or '∅'}"
        )
