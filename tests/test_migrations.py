from __future__ import annotations

from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

ALEMBIC_INI = Path(__file__).resolve().parents[1] / "libs" / "db" / "alembic.ini"


def test_migrations_create_and_drop_ledger_tables(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    url = f"sqlite+pysqlite:///{tmp_path / 'migrated.sqlite3'}"
    monkeypatch.setenv("DATABASE_URL", url)
    cfg = Config(str(ALEMBIC_INI))

    command.upgrade(cfg, "head")

    engine = create_engine(url)
    try:
        insp = inspect(engine)
        assert {"ledger_transactions", "fixed_deposits"} <= set(insp.get_table_names())
        unique_cols = {
            tuple(u["column_names"]) for u in insp.get_unique_constraints("ledger_transactions")
        }
        assert ("identifier",) in unique_cols

        command.downgrade(cfg, "base")
        assert "ledger_transactions" not in inspect(engine).get_table_names()
    finally:
        engine.dispose()
