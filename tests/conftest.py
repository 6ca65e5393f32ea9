"""Pytest configuration for test isolation.

The ledger code reads its settings from the environment (``DATABASE_URL`` and
the ``STATEMENT_LEDGER_*`` limits). A developer's shell or ``.env`` must not
leak into tests, so an autouse fixture clears them for every test and tests
that need a database opt in through the ``sqlite_url`` fixture.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from db.client import dispose_engines

from tests.helpers.db import bootstrap_sqlite_db

_ENV_VARS = (
    "DATABASE_URL",
    "STATEMENT_LEDGER_MAX_UPLOAD_MB",
    "STATEMENT_LEDGER_GROUPING_MAX_ITEMS",
)


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop ledger env vars and run from a per-test directory without a ``.env``."""

    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def sqlite_url(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[str]:
    """A fresh file-backed SQLite ledger, also exported as ``DATABASE_URL``."""

    url = bootstrap_sqlite_db(tmp_path / "ledger.sqlite3")
    monkeypatch.setenv("DATABASE_URL", url)
    yield url
    dispose_engines()
