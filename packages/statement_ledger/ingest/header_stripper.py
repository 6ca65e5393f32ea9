"""Locate the real column header inside a delimited bank export.

Vendor exports (HDFC in particular) put a block of human-readable account
metadata above the transaction table. :func:`strip_preamble` drops that block
and returns the text starting at the header row.

Detection runs an ordered list of independent strategies; each returns the
0-based index of the header line or ``None``:

1. ``keyword_header``: the first line mentioning ``date`` together with a
   narration, amount or balance keyword.
2. ``header_before_first_data_row``: within the first 30 lines, find the
   first line that looks like a data row (a date and at least 3 fields) and
   take the header from the 1–2 lines above it.
3. ``fixed_preamble``: skip the 22 lines observed in HDFC exports.

The result is best-effort. Downstream parsing reports whatever this gets wrong
as row-level errors.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence

from ..logging_setup import get_logger

_logger = get_logger("statement_ledger.ingest.header_stripper")

HDFC_PREAMBLE_LINES = 22
DATA_ROW_SCAN_LIMIT = 30

_NARRATION_WORDS = ("narration", "description", "particulars")
_AMOUNT_WORDS = ("withdrawal", "deposit", "debit", "credit", "amount")
_BALANCE_WORDS = ("balance",)

_DATA_ROW_DATE_RE = re.compile(
    r"(?<!\d)(?:\d{1,2}[-/]\d{1,2}[-/]\d{2,4}|\d{4}[-/]\d{1,2}[-/]\d{1,2})(?!\d)"
)
_DELIMITERS = (",", "\t", "|", ";")


def _field_count(line: str) -> int:
    return max(len(line.split(d)) for d in _DELIMITERS)


def keyword_header(lines: Sequence[str]) -> int | None:
    for i, raw in enumerate(lines):
        line = raw.lower()
        if "date" not in line:
            continue
        if (
            any(w in line for w in _NARRATION_WORDS)
            or any(w in line for w in _AMOUNT_WORDS)
            or any(w in line for w in _BALANCE_WORDS)
        ):
            return i
    return None


def header_before_first_data_row(lines: Sequence[str]) -> int | None:
    for i, line in enumerate(lines[:DATA_ROW_SCAN_LIMIT]):
        if not _DATA_ROW_DATE_RE.search(line) or _field_count(line) < 3:
            continue
        for j in range(max(0, i - 2), i):
            candidate = lines[j].lower()
            if "date" in candidate or "narration" in candidate:
                return j
        return max(0, i - 1)
    return None


def fixed_preamble(lines: Sequence[str]) -> int | None:
    return HDFC_PREAMBLE_LINES


HEADER_STRATEGIES: tuple[Callable[[Sequence[str]], int | None], ...] = (
    keyword_header,
    header_before_first_data_row,
    fixed_preamble,
)


def find_header_index(lines: Sequence[str]) -> int:
    """Return the index of the header line according to the first matching strategy."""

    for strategy in HEADER_STRATEGIES:
        idx = strategy(lines)
        if idx is not None:
            _logger.debug("header detected at line %d via %s", idx, strategy.__name__)
            return idx
    return 0


def strip_preamble(text: str) -> str:
    """Return ``text`` starting at the detected header line.

    Lines are split on ``"\\n"`` and re-joined the same way, so ``"\\r\\n"``
    endings survive untouched for the CSV reader.
    """

    lines = text.split("\n")
    idx = find_header_index(lines)
    if idx:
        _logger.info("stripped %d preamble line(s)", min(idx, len(lines)))
    return "\n".join(lines[idx:])


def estimate_header_lines(text: str) -> int:
    """Number of lines :func:`strip_preamble` would remove from ``text``."""

    lines = text.split("\n")
    return min(find_header_index(lines), len(lines))


__all__ = [
    "HEADER_STRATEGIES",
    "keyword_header",
    "header_before_first_data_row",
    "fixed_preamble",
    "find_header_index",
    "strip_preamble",
    "estimate_header_lines",
]
