"""Best-effort value normalizers for statement cells.

Both helpers return a sentinel (``None`` for dates, ``0`` for amounts) instead
of raising; callers decide whether a missing value is fatal for the record.

Date handling follows the conventions of Indian bank exports:

- ``DD-MM-YYYY`` / ``DD/MM/YYYY`` and ``DD-MM-YY`` / ``DD/MM/YY`` are
  day-first;
- ``YYYY-MM-DD`` / ``YYYY/MM/DD`` are year-first;
- whichever group carries four digits decides the order (first group →
  year-first, otherwise day-first);
- two-digit years ``00``–``30`` map to ``2000``–``2030`` and ``31``–``99`` to
  ``1931``–``1999``.

``DD-Mon-YYYY`` (e.g. ``05-Nov-2024``) is accepted as well since several
vendors print abbreviated month names.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import date
from typing import Any

# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

_DAY_FIRST_RE = re.compile(r"(?<!\d)(\d{1,2})[-/](\d{1,2})[-/](\d{4})(?!\d)")
_YEAR_FIRST_RE = re.compile(r"(?<!\d)(\d{4})[-/](\d{1,2})[-/](\d{1,2})")
_DAY_FIRST_SHORT_RE = re.compile(r"(?<!\d)(\d{1,2})[-/](\d{1,2})[-/](\d{2})(?!\d)")
_MONTH_NAME_RE = re.compile(
    r"(?<!\d)(\d{1,2})[-/ ]([A-Za-z]{3})[A-Za-z]*[-/ ,]+(\d{4}|\d{2})(?!\d)"
)

_MONTHS = {
    name: i
    for i, name in enumerate(
        ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"),
        start=1,
    )
}


def _expand_two_digit_year(yy: str) -> int:
    n = int(yy)
    return 2000 + n if n <= 30 else 1900 + n


def _day_first(s: str) -> tuple[int, int, int] | None:
    m = _DAY_FIRST_RE.search(s)
    if not m:
        return None
    return int(m.group(3)), int(m.group(2)), int(m.group(1))


def _year_first(s: str) -> tuple[int, int, int] | None:
    m = _YEAR_FIRST_RE.search(s)
    if not m:
        return None
    return int(m.group(1)), int(m.group(2)), int(m.group(3))


def _day_first_short(s: str) -> tuple[int, int, int] | None:
    m = _DAY_FIRST_SHORT_RE.search(s)
    if not m:
        return None
    return _expand_two_digit_year(m.group(3)), int(m.group(2)), int(m.group(1))


def _month_name(s: str) -> tuple[int, int, int] | None:
    m = _MONTH_NAME_RE.search(s)
    if not m:
        return None
    month = _MONTHS.get(m.group(2).lower())
    if month is None:
        return None
    yy = m.group(3)
    year = int(yy) if len(yy) == 4 else _expand_two_digit_year(yy)
    return year, month, int(m.group(1))


# Tried in order; the first strategy that matches decides the result.
_DATE_STRATEGIES: tuple[Callable[[str], tuple[int, int, int] | None], ...] = (
    _day_first,
    _year_first,
    _day_first_short,
    _month_name,
)


def normalize_date(value: Any) -> str | None:
    """Return ``value`` as an ISO ``YYYY-MM-DD`` string, or ``None``.

    ``None`` is returned for empty input, text without a recognizable date,
    and matches that do not form a real calendar day (e.g. ``31-02-2024``).
    """

    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None

    for strategy in _DATE_STRATEGIES:
        parts = strategy(s)
        if parts is None:
            continue
        year, month, day = parts
        try:
            return date(year, month, day).isoformat()
        except ValueError:
            return None
    return None


# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------

_CURRENCY_PREFIX_RE = re.compile(r"^(?:₹|rs\.?|inr)\s*", re.IGNORECASE)
_NON_NUMERIC_RE = re.compile(r"[^\d.\-]")
_LEADING_NUMBER_RE = re.compile(r"-?(?:\d+\.?\d*|\.\d+)")


def normalize_amount(value: Any) -> float:
    """Parse a currency-like string into a float; ``0`` when it cannot.

    Currency symbols, thousands separators (including the Indian lakh grouping
    ``1,23,456.50``) and any other character that is not a digit, ``.`` or
    ``-`` are removed before parsing. The leading number of what remains is
    read, so trailing markers such as ``/-`` or ``Cr.`` do not void the value.
    Negative values are preserved.
    """

    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, int | float):
        return float(value)
    s = str(value).strip()
    if not s or s == "-":
        return 0.0
    cleaned = _NON_NUMERIC_RE.sub("", _CURRENCY_PREFIX_RE.sub("", s))
    m = _LEADING_NUMBER_RE.match(cleaned)
    if not m:
        return 0.0
    return float(m.group(0))


__all__ = ["normalize_date", "normalize_amount"]
