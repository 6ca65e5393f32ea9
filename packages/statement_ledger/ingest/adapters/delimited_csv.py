"""Adapter for delimited-text statement exports (CSV, TSV, pipe, semicolon).

Pipeline
--------
1. Decode bytes as UTF-8 (BOM tolerated). Undecodable bytes are replaced and
   reported once as a file-level :class:`~statement_ledger.models.ParseError`.
2. Drop the vendor preamble via
   :func:`~statement_ledger.ingest.header_stripper.strip_preamble`.
3. Guess the delimiter among ``,``, tab, ``|`` and ``;``.
4. Read with the stdlib :mod:`csv` module (non-strict quoting); the first
   non-blank row is the header.

Row-level problems (wrong field count, unparsable quoting) are recorded with
the 0-based data-row index and the row is excluded; parsing continues.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterator, Sequence

from ...logging_setup import get_logger
from ...models import ParsedRow, ParseError, ParseResult
from ..header_stripper import strip_preamble
from .common import build_row, is_blank, normalize_headers

_logger = get_logger("statement_ledger.ingest.adapters.delimited_csv")

CANDIDATE_DELIMITERS: tuple[str, ...] = (",", "\t", "|", ";")
_SNIFF_LINES = 10


def decode_text(data: bytes) -> tuple[str, list[ParseError]]:
    """Decode file bytes; never raises."""

    try:
        return data.decode("utf-8-sig"), []
    except UnicodeDecodeError as exc:
        text = data.decode("utf-8-sig", errors="replace")
        return text, [
            ParseError(
                f"file is not valid UTF-8 (byte {exc.start}); undecodable bytes were replaced"
            )
        ]


def _reader(text: str, delimiter: str) -> Iterator[list[str]]:
    return csv.reader(
        io.StringIO(text, newline=""),
        delimiter=delimiter,
        quotechar='"',
        doublequote=True,
        strict=False,
    )


def detect_delimiter(text: str, candidates: Sequence[str] = CANDIDATE_DELIMITERS) -> str:
    """Pick the delimiter that yields the most rows agreeing with the header width.

    Only delimiters producing a header of more than one field are eligible;
    ties resolve in ``candidates`` order. Defaults to ``,``.
    """

    lines = [ln for ln in text.splitlines() if ln.strip()][:_SNIFF_LINES]
    if not lines:
        return ","
    sample = "\n".join(lines)

    best, best_score = ",", (-1, -1)
    for delim in candidates:
        try:
            parsed = [r for r in _reader(sample, delim) if r]
        except csv.Error:
            continue
        if not parsed or len(parsed[0]) < 2:
            continue
        width = len(parsed[0])
        consistent = sum(1 for r in parsed if len(r) == width)
        score = (consistent, width)
        if score > best_score:
            best, best_score = delim, score
    return best


def parse_csv_text(text: str) -> ParseResult:
    """Parse delimited ``text`` into normalized rows plus recoverable errors."""

    cleaned = strip_preamble(text)
    delimiter = detect_delimiter(cleaned)
    reader = _reader(cleaned, delimiter)

    fields: list[str] | None = None
    rows: list[ParsedRow] = []
    errors: list[ParseError] = []
    data_idx = 0

    while True:
        try:
            cells = next(reader)
        except StopIteration:
            break
        except csv.Error as exc:
            if fields is None:
                errors.append(ParseError(f"malformed header line: {exc}"))
            else:
                errors.append(ParseError(f"malformed row: {exc}", row=data_idx))
                data_idx += 1
            continue

        if is_blank(cells):
            continue
        if fields is None:
            fields = normalize_headers(cells)
            continue

        width = len(fields)
        if len(cells) > width:
            if is_blank(cells[width:]):
                cells = cells[:width]
            else:
                errors.append(
                    ParseError(
                        f"too many fields: expected {width}, found {len(cells)}",
                        row=data_idx,
                    )
                )
                data_idx += 1
                continue
        elif len(cells) < width:
            errors.append(
                ParseError(
                    f"too few fields: expected {width}, found {len(cells)}",
                    row=data_idx,
                )
            )
            data_idx += 1
            continue

        rows.append(build_row(fields, cells))
        data_idx += 1

    if errors:
        _logger.info("delimited parse: %d row(s), %d error(s)", len(rows), len(errors))
    return ParseResult(rows=rows, errors=errors, fields=fields or [], delimiter=delimiter)


def parse_csv_bytes(data: bytes) -> ParseResult:
    """Decode ``data`` and parse it with :func:`parse_csv_text`."""

    text, decode_errors = decode_text(data)
    result = parse_csv_text(text)
    if not decode_errors:
        return result
    return ParseResult(
        rows=result.rows,
        errors=[*decode_errors, *result.errors],
        fields=result.fields,
        delimiter=result.delimiter,
    )


__all__ = [
    "CANDIDATE_DELIMITERS",
    "decode_text",
    "detect_delimiter",
    "parse_csv_text",
    "parse_csv_bytes",
]
