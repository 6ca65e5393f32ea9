"""Adapter for spreadsheet exports (``.xlsx`` / ``.xlsm``) via :mod:`openpyxl`.

Only the first worksheet is read. Every cell becomes a string (empty cells
become ``""``) so that rows have exactly the same shape as the delimited
adapter's output, and headers are normalized by the same helper.

The header row is the first row that passes the keyword check used for
delimited exports (``date`` plus a narration/amount/balance word); when no row
does, the first non-blank row is the header. Rows whose values are all blank
are dropped.
"""

from __future__ import annotations

import io
from collections.abc import Iterable, Sequence
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

from openpyxl import load_workbook

from ...logging_setup import get_logger
from ...models import ParsedRow, ParseError, ParseResult
from ..header_stripper import keyword_header
from .common import build_row, is_blank, normalize_headers

_logger = get_logger("statement_ledger.ingest.adapters.spreadsheet_xlsx")


def cell_to_text(value: Any) -> str:
    """String form of a cell value as a user would read it."""

    if value is None:
        return ""
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float):
        # Integral floats (reference numbers, whole amounts) without ".0".
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, Decimal):
        return format(value, "f")
    return str(value).strip()


def _header_index(rows: Sequence[Sequence[str]]) -> int | None:
    joined = [",".join(r) for r in rows]
    idx = keyword_header(joined)
    if idx is not None:
        return idx
    for i, cells in enumerate(rows):
        if not is_blank(cells):
            return i
    return None


def rows_to_result(raw_rows: Iterable[Sequence[Any]]) -> ParseResult:
    """Convert raw worksheet rows (already materialized) into a ParseResult."""

    text_rows = [[cell_to_text(v) for v in row] for row in raw_rows]
    header_idx = _header_index(text_rows)
    if header_idx is None:
        return ParseResult(rows=[], errors=[], fields=[])

    header_cells = text_rows[header_idx]
    # Trailing unnamed columns carry no data worth keeping.
    while header_cells and not header_cells[-1]:
        header_cells = header_cells[:-1]
    fields = normalize_headers(header_cells)

    rows: list[ParsedRow] = []
    errors: list[ParseError] = []
    for data_idx, cells in enumerate(text_rows[header_idx + 1 :]):
        row = build_row(fields, cells)
        if is_blank(row.values()):
            continue
        if len(cells) > len(fields) and not is_blank(cells[len(fields) :]):
            errors.append(
                ParseError(
                    f"row has values outside the header columns ({len(cells)} > {len(fields)})",
                    row=data_idx,
                )
            )
        rows.append(row)
    return ParseResult(rows=rows, errors=errors, fields=fields)


def parse_xlsx_bytes(data: bytes) -> ParseResult:
    """Read the first worksheet of an ``.xlsx`` workbook into normalized rows.

    A workbook openpyxl cannot open yields an empty result with one file-level
    error rather than an exception.
    """

    try:
        wb = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except Exception as exc:  # openpyxl raises several unrelated types here
        _logger.warning("could not open workbook: %s", exc)
        return ParseResult(rows=[], errors=[ParseError(f"could not read workbook: {exc}")])

    try:
        if not wb.worksheets:
            return ParseResult(rows=[], errors=[ParseError("workbook has no sheets")])
        ws = wb.worksheets[0]
        raw_rows = [tuple(r) for r in ws.iter_rows(values_only=True)]
    finally:
        wb.close()

    result = rows_to_result(raw_rows)
    _logger.debug("spreadsheet parse: %d row(s) from sheet", len(result.rows))
    return result


__all__ = ["cell_to_text", "rows_to_result", "parse_xlsx_bytes"]
