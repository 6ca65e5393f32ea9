"""Public API and upload orchestration for the ``statement_ledger`` package.

This module is the stable import surface used by the HTTP app
(:mod:`statement_ledger.server`) and the CLI (:mod:`statement_ledger.cli`).
The ingestion, mapping and identity rules live in their own modules; the
functions here sequence them and turn "nothing usable" outcomes into the
exception types of :mod:`statement_ledger.errors`.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from .columns import MappingOutcome, detect_column_types, resolve_column_mapping, transform_rows
from .config import max_upload_bytes
from .duplicates import remove_duplicates
from .errors import EmptyBatchError, StorageError, UploadTooLargeError
from .fixed_deposits import extract_fixed_deposits
from .ingest.utils import parse_tabular_bytes
from .logging_setup import get_logger
from .models import ColumnMapping, FixedDepositRecord, ParseResult, Transaction
from .pdf_text import extract_pdf_text
from .persistence import UpsertResult

_logger = get_logger("statement_ledger.api")


class TransactionStore(Protocol):
    """Storage collaborator consumed by :func:`upload_transactions`."""

    def upsert_transactions(self, transactions: Sequence[Transaction]) -> UpsertResult: ...


class FixedDepositStore(Protocol):
    def upsert_fixed_deposits(self, records: Sequence[FixedDepositRecord]) -> UpsertResult: ...


@dataclass(frozen=True, slots=True)
class UploadSummary:
    """Counts reported back to the uploader.

    ``total`` counts rows that survived mapping and validation; ``uploaded``
    counts those left after in-batch de-duplication.
    """

    uploaded: int
    total: int
    duplicates: int
    rejected: int = 0
    ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, int | bool]:
        return {
            "success": True,
            "uploaded": self.uploaded,
            "total": self.total,
            "duplicates": self.duplicates,
        }


@dataclass(frozen=True, slots=True)
class PdfParseOutcome:
    text: str
    metadata: dict[str, str]
    page_count: int
    fixed_deposits: list[FixedDepositRecord]


def _check_size(data: bytes) -> None:
    limit = max_upload_bytes()
    if len(data) > limit:
        raise UploadTooLargeError(
            f"File size exceeds the {limit // (1024 * 1024)}MB limit ({len(data)} bytes)"
        )


def parse_statement(filename: str, data: bytes) -> ParseResult:
    """Parse an uploaded statement export into rows plus recoverable errors.

    Input
    -----
    filename:
        Original name of the upload; only its extension is used to pick the
        adapter (``.csv``/``.txt``/``.tsv`` delimited, ``.xlsx``/``.xlsm``
        spreadsheet).
    data:
        Raw file bytes.

    Output
    ------
    A :class:`~statement_ledger.models.ParseResult`. Row-level problems are
    reported in ``errors``; they never abort the parse.

    Raises
    ------
    UnsupportedFormatError
        For ``.numbers``, ``.xls``, ``.pdf`` and unknown extensions, before
        any bytes are read.
    UploadTooLargeError
        When ``data`` exceeds ``STATEMENT_LEDGER_MAX_UPLOAD_MB``.
    """

    _check_size(data)
    result = parse_tabular_bytes(filename, data)
    _logger.info(
        "parsed %s: %d row(s), %d error(s), %d column(s)",
        filename,
        len(result.rows),
        len(result.errors),
        len(result.fields),
    )
    return result


def suggest_column_mapping(rows: Sequence[Mapping[str, str]]) -> dict[str, str]:
    """Advisory target per column (see :func:`statement_ledger.columns.detect_column_types`)."""

    return detect_column_types(rows)


def upload_transactions(
    rows: Sequence[Mapping[str, object]],
    mapping: Mapping[str, str | None] | None,
    store: TransactionStore,
) -> UploadSummary:
    """Map, validate, de-duplicate and store one batch of parsed rows.

    The whole batch is transformed and de-duplicated in parse order before a
    single call to ``store.upsert_transactions``; nothing is written when the
    mapping is invalid or no row survives validation.

    Raises
    ------
    MappingValidationError
        ``mapping`` lacks ``date`` or ``narration`` or names an unknown field.
    EmptyBatchError
        No row has both a parsable date and a narration.
    StorageError
        The store reported an error; its message is passed through verbatim.
    """

    resolved: ColumnMapping = resolve_column_mapping(rows, mapping)
    outcome: MappingOutcome = transform_rows(rows, resolved)
    if not outcome.transactions:
        raise EmptyBatchError("No valid transactions to upload")

    unique = remove_duplicates(outcome.transactions)
    result = store.upsert_transactions(unique)
    if result.error is not None:
        if result.inserted_ids:
            _logger.warning(
                "storage reported an error after returning %d id(s); treating the batch "
                "as failed without reconciling which rows were written",
                len(result.inserted_ids),
            )
        raise StorageError(result.error)

    total = len(outcome.transactions)
    summary = UploadSummary(
        uploaded=len(unique),
        total=total,
        duplicates=total - len(unique),
        rejected=len(outcome.rejected),
        ids=list(result.inserted_ids),
    )
    _logger.info(
        "upload complete: %d uploaded, %d duplicate(s), %d rejected",
        summary.uploaded,
        summary.duplicates,
        summary.rejected,
    )
    return summary


def parse_pdf(data: bytes) -> PdfParseOutcome:
    """Extract text from a PDF statement and read fixed deposits out of it."""

    _check_size(data)
    pdf = extract_pdf_text(data)
    deposits = extract_fixed_deposits(pdf.text)
    return PdfParseOutcome(
        text=pdf.text,
        metadata=pdf.metadata,
        page_count=pdf.page_count,
        fixed_deposits=deposits,
    )


def save_fixed_deposits(
    records: Sequence[FixedDepositRecord], store: FixedDepositStore
) -> list[str]:
    """Upsert extracted deposits by ``fd_number``; returns the stored ids."""

    if not records:
        return []
    result = store.upsert_fixed_deposits(records)
    if result.error is not None:
        raise StorageError(result.error)
    return list(result.inserted_ids)


__all__ = [
    "TransactionStore",
    "FixedDepositStore",
    "UploadSummary",
    "PdfParseOutcome",
    "parse_statement",
    "suggest_column_mapping",
    "resolve_column_mapping",
    "transform_rows",
    "upload_transactions",
    "parse_pdf",
    "save_fixed_deposits",
]
