"""Environment-driven settings.

Entrypoints load a ``.env`` from the working directory (``python-dotenv``,
never overriding variables already set) before any of these helpers run.
Malformed values fall back to the defaults instead of failing the process.
"""

from __future__ import annotations

import os

DEFAULT_MAX_UPLOAD_MB = 10
DEFAULT_GROUPING_MAX_ITEMS = 2000


def _positive_int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        return default
    return value if value > 0 else default


def max_upload_bytes() -> int:
    """Upload size limit in bytes (``STATEMENT_LEDGER_MAX_UPLOAD_MB``, default 10)."""

    return _positive_int_from_env("STATEMENT_LEDGER_MAX_UPLOAD_MB", DEFAULT_MAX_UPLOAD_MB) * (
        1024 * 1024
    )


def grouping_max_items() -> int:
    """Size guard for narration grouping (``STATEMENT_LEDGER_GROUPING_MAX_ITEMS``)."""

    return _positive_int_from_env(
        "STATEMENT_LEDGER_GROUPING_MAX_ITEMS", DEFAULT_GROUPING_MAX_ITEMS
    )


def database_url(override: str | None = None) -> str | None:
    """Return ``override`` or ``DATABASE_URL``; ``None`` when neither is set."""

    return override or os.getenv("DATABASE_URL") or None


__all__ = ["max_upload_bytes", "grouping_max_items", "database_url"]
