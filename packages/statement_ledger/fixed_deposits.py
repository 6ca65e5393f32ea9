"""Best-effort extraction of fixed-deposit records from statement text.

The input is plain text already pulled out of a PDF (see
:mod:`statement_ledger.pdf_text`). Layouts vary per bank and per year, so the
extractor works on keyword windows rather than on table structure:

1. Whitespace is collapsed and the text uppercased.
2. Section path: every ``FIXED DEPOSIT`` / ``FD DETAILS`` / ``DEPOSIT ACCOUNT``
   / ``TERM DEPOSIT`` heading opens a window of up to 500 following
   characters, and each window yields at most one record.
3. Fallback path, used only when no heading is present: every distinct 8-15
   digit number becomes a candidate and is read from a window spanning 200
   characters before it to 500 after. Amounts of 1000 or less are ignored
   there since page numbers and serials would otherwise be picked up.

Records without an FD number are discarded, and the result keeps the first
record per FD number. Text that matches nothing yields ``[]``.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date

from .logging_setup import get_logger
from .models import FixedDepositRecord
from .normalizers import normalize_date

_logger = get_logger("statement_ledger.fixed_deposits")

SECTION_WINDOW = 500
CONTEXT_BEFORE = 200
CONTEXT_AFTER = 500
FALLBACK_MIN_AMOUNT = 1000.0

_WS_RE = re.compile(r"\s+")
_SECTION_RE = re.compile(
    r"(?:FIXED\s*DEPOSIT|FD\s*DETAILS|DEPOSIT\s*ACCOUNT|TERM\s*DEPOSIT)[\s\S]{0,%d}" % SECTION_WINDOW
)
_FD_NUMBER_RE = re.compile(r"(?:\bFD\s*)?(?<!\d)(\d{8,15})(?!\d)")
_AMOUNT_RE = re.compile(r"(?:₹|(?<![A-Z])RS\.?|(?<![A-Z])INR)\s*(\d[\d,]*(?:\.\d+)?)")
_RATE_RE = re.compile(r"(?:RATE|INTEREST|ROI)[\s:\-]*(\d+(?:\.\d+)?)\s*%")
_BARE_PERCENT_RE = re.compile(r"(?<![\d.])(\d+(?:\.\d+)?)\s*%")
_DATE_RE = re.compile(
    r"(?<!\d)(?:\d{1,2}[-/]\d{1,2}[-/]\d{2,4}"
    r"|\d{1,2}[-/ ](?:JAN|FEB|MAR|APR|MAY|JUN|JUL|AUG|SEP|OCT|NOV|DEC)[A-Z]*[-/ ,]+\d{2,4})(?!\d)"
)
_STATUS_RE = re.compile(r"\bSTAT(?:US)?[\s:\-]*(ACTIVE|CLOSED|MATURED|PENDING)\b")


@dataclass(frozen=True, slots=True)
class _Window:
    text: str
    fd_number: str | None = None


def _normalize_text(text: str) -> str:
    return _WS_RE.sub(" ", text or "").upper()


def _longest_fd_number(window: str) -> str | None:
    numbers = [m.group(1) for m in _FD_NUMBER_RE.finditer(window)]
    if not numbers:
        return None
    return max(numbers, key=len)


def _amounts(window: str, minimum: float | None = None) -> list[float]:
    out: list[float] = []
    for m in _AMOUNT_RE.finditer(window):
        try:
            value = float(m.group(1).replace(",", ""))
        except ValueError:
            continue
        if minimum is not None and value <= minimum:
            continue
        out.append(value)
    return out


def _interest_rate(window: str, *, allow_bare: bool) -> float | None:
    m = _RATE_RE.search(window)
    if m:
        return float(m.group(1)) or None
    if allow_bare:
        for bare in _BARE_PERCENT_RE.finditer(window):
            rate = float(bare.group(1))
            if 0 < rate < 20:
                return rate
    return None


def _maturity_date(window: str) -> str | None:
    found = _DATE_RE.findall(window)
    if not found:
        return None
    return normalize_date(found[-1])


def _status(window: str, maturity_date: str | None, today: date) -> str:
    m = _STATUS_RE.search(window)
    if m:
        return m.group(1).title()
    if maturity_date is None:
        return "Active"
    return "Closed" if date.fromisoformat(maturity_date) < today else "Active"


def _record_from_window(
    window: _Window, today: date, *, min_amount: float | None, allow_bare_rate: bool
) -> FixedDepositRecord | None:
    fd_number = window.fd_number or _longest_fd_number(window.text)
    if not fd_number:
        return None

    amounts = _amounts(window.text, min_amount)
    principal = amounts[0] if amounts else None
    maturity_amt = max(amounts) if len(amounts) > 1 else None
    maturity = _maturity_date(window.text)

    return FixedDepositRecord(
        fd_number=fd_number,
        principal_amt=principal or None,
        interest_rate=_interest_rate(window.text, allow_bare=allow_bare_rate),
        maturity_date=maturity,
        maturity_amt=maturity_amt or None,
        status=_status(window.text, maturity, today),
    )


def section_windows(normalized: str) -> list[_Window]:
    return [_Window(m.group(0)) for m in _SECTION_RE.finditer(normalized)]


def number_windows(normalized: str) -> list[_Window]:
    seen: set[str] = set()
    windows: list[_Window] = []
    for m in _FD_NUMBER_RE.finditer(normalized):
        number = m.group(1)
        if number in seen:
            continue
        seen.add(number)
        start = m.start(1)
        windows.append(
            _Window(
                normalized[max(0, start - CONTEXT_BEFORE) : start + CONTEXT_AFTER],
                fd_number=number,
            )
        )
    return windows


def _dedupe(records: list[FixedDepositRecord]) -> list[FixedDepositRecord]:
    seen: set[str] = set()
    out: list[FixedDepositRecord] = []
    for rec in records:
        if rec.fd_number in seen:
            continue
        seen.add(rec.fd_number)
        out.append(rec)
    return out


# (window finder, minimum amount, accept a bare percentage as the rate)
_PATHS: tuple[tuple[str, Callable[[str], list[_Window]], float | None, bool], ...] = (
    ("sections", section_windows, None, False),
    ("fd-numbers", number_windows, FALLBACK_MIN_AMOUNT, True),
)


def extract_fixed_deposits(text: str, *, today: date | None = None) -> list[FixedDepositRecord]:
    """Return the fixed deposits found in ``text`` (possibly none).

    ``today`` decides whether a deposit past its maturity date is reported as
    ``Closed``; it defaults to the current date.
    """

    normalized = _normalize_text(text)
    if not normalized.strip():
        return []
    ref_day = today or date.today()

    for name, find_windows, min_amount, allow_bare_rate in _PATHS:
        windows = find_windows(normalized)
        if not windows:
            continue
        records: list[FixedDepositRecord] = []
        for window in windows:
            rec = _record_from_window(
                window, ref_day, min_amount=min_amount, allow_bare_rate=allow_bare_rate
            )
            if rec is not None:
                records.append(rec)
        result = _dedupe(records)
        _logger.info(
            "fixed deposits: %d record(s) via %s path (%d window(s))",
            len(result),
            name,
            len(windows),
        )
        return result

    _logger.info("fixed deposits: no candidates found")
    return []


__all__ = [
    "SECTION_WINDOW",
    "CONTEXT_BEFORE",
    "CONTEXT_AFTER",
    "FALLBACK_MIN_AMOUNT",
    "section_windows",
    "number_windows",
    "extract_fixed_deposits",
]
