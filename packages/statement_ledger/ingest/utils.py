"""Ingest utilities shared by the CLI, the HTTP app and library callers.

Exposes a single dispatcher that picks the tabular adapter from the file
extension and rejects formats the pipeline cannot read before any parsing is
attempted.
"""

from __future__ import annotations

from os import PathLike
from pathlib import Path, PurePath

from ..errors import UnsupportedFormatError
from ..models import ParseResult

DELIMITED_SUFFIXES = frozenset({".csv", ".txt", ".tsv"})
SPREADSHEET_SUFFIXES = frozenset({".xlsx", ".xlsm"})
PDF_SUFFIXES = frozenset({".pdf"})

_EXPORT_HINT = "Please export the statement as Excel (.xlsx) or CSV (.csv) first."


def check_tabular_format(filename: str) -> str:
    """Return the lowercased suffix of ``filename`` or raise ``UnsupportedFormatError``."""

    suffix = PurePath(filename).suffix.lower()
    if suffix in DELIMITED_SUFFIXES or suffix in SPREADSHEET_SUFFIXES:
        return suffix
    if suffix == ".numbers":
        raise UnsupportedFormatError(f"Numbers (.numbers) files are not supported. {_EXPORT_HINT}")
    if suffix == ".xls":
        raise UnsupportedFormatError(
            f"Legacy Excel 97-2003 (.xls) workbooks are not supported. {_EXPORT_HINT}"
        )
    if suffix in PDF_SUFFIXES:
        raise UnsupportedFormatError(
            f"PDF statements are read for fixed deposits only. {_EXPORT_HINT}"
        )
    shown = suffix or "(no extension)"
    raise UnsupportedFormatError(f"File type {shown} is not supported. {_EXPORT_HINT}")


def parse_tabular_bytes(filename: str, data: bytes) -> ParseResult:
    """Parse ``data`` with the adapter matching ``filename``'s extension."""

    suffix = check_tabular_format(filename)
    if suffix in SPREADSHEET_SUFFIXES:
        from .adapters.spreadsheet_xlsx import parse_xlsx_bytes

        return parse_xlsx_bytes(data)

    from .adapters.delimited_csv import parse_csv_bytes

    return parse_csv_bytes(data)


def load_parsed_rows(path: str | PathLike[str]) -> ParseResult:
    """Read a statement file from disk and parse it."""

    p = Path(path)
    check_tabular_format(p.name)
    return parse_tabular_bytes(p.name, p.read_bytes())


__all__ = [
    "DELIMITED_SUFFIXES",
    "SPREADSHEET_SUFFIXES",
    "PDF_SUFFIXES",
    "check_tabular_format",
    "parse_tabular_bytes",
    "load_parsed_rows",
]
