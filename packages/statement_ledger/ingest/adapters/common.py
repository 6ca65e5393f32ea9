"""Header and cell normalization shared by the tabular adapters.

Both adapters must produce identical keys for the same visible header so that
column type inference does not depend on the source format.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from ...models import ParsedRow

_WS_RE = re.compile(r"\s+")


def normalize_header(value: object) -> str:
    """Trim, lowercase, and collapse internal whitespace runs into ``_``."""

    if value is None:
        return ""
    return _WS_RE.sub("_", str(value).strip().lower())


def normalize_headers(values: Iterable[object]) -> list[str]:
    """Normalize a header row and make every key unique.

    Blank headers become ``column_<n>`` (1-based position); repeats get a
    ``_<k>`` suffix in order of appearance.
    """

    out: list[str] = []
    seen: dict[str, int] = {}
    for pos, raw in enumerate(values, start=1):
        key = normalize_header(raw) or f"column_{pos}"
        if key in seen:
            seen[key] += 1
            key = f"{key}_{seen[key]}"
        seen.setdefault(key, 0)
        out.append(key)
    return out


def build_row(fields: Sequence[str], cells: Sequence[str]) -> ParsedRow:
    """Zip normalized headers with trimmed cell values (missing cells → ``""``)."""

    row: ParsedRow = {}
    for i, key in enumerate(fields):
        row[key] = cells[i].strip() if i < len(cells) and cells[i] is not None else ""
    return row


def is_blank(cells: Iterable[str | None]) -> bool:
    return all((c or "").strip() == "" for c in cells)


__all__ = ["normalize_header", "normalize_headers", "build_row", "is_blank"]
