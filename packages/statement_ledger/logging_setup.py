"""Logging for ``statement_ledger``.

Every module logs through ``get_logger("statement_ledger.<module>")`` and stays
silent until an entrypoint calls :func:`configure_logging`. The CLI root
callback and :func:`statement_ledger.server.create_app` are those entrypoints;
both end up writing ingest, mapping and storage events to stderr.

The level comes from the caller (``--log-level`` on the CLI), else from
``STATEMENT_LEDGER_LOG_LEVEL``, else ``INFO``. Unknown names fall back to
``INFO`` rather than failing an import.
"""

from __future__ import annotations

import logging
import os
import sys

_PKG_LOGGER_NAME = "statement_ledger"
_LEVEL_ENV_VAR = "STATEMENT_LEDGER_LOG_LEVEL"
_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_CONFIGURED = False


def resolve_level(level: int | str | None = None) -> int:
    """Map an explicit level, or the environment, to a ``logging`` level number."""

    if level is None or level == "":
        level = os.getenv(_LEVEL_ENV_VAR) or logging.INFO
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    return logging.getLevelNamesMapping().get(name, logging.INFO)


def configure_logging(level: int | str | None = None) -> None:
    """Attach one stderr handler to the package logger; later calls are no-ops."""

    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(resolve_level(level))
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "resolve_level"]
