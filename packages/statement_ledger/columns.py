"""Column type inference and mapping of parsed rows to ledger transactions.

The suggestions from :func:`detect_column_types` are advisory. The user
confirms (or overrides) them as a :data:`~statement_ledger.models.ColumnMapping`;
the suggestions are only applied automatically when no mapping was supplied
(:func:`resolve_column_mapping`).
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from .errors import MappingValidationError
from .logging_setup import get_logger
from .models import (
    DEFAULT_CATEGORY,
    REQUIRED_TARGETS,
    TARGET_FIELDS,
    ColumnMapping,
    RejectedRow,
    Transaction,
)
from .normalizers import normalize_amount, normalize_date

_logger = get_logger("statement_ledger.columns")

SAMPLE_SIZE = 10
GENERIC_AMOUNT = "amount"

# Checked in order; the first keyword set with a substring hit wins.
_NAME_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("date", ("date", "dt")),
    ("narration", ("narration", "description", "particulars")),
    ("ref_no", ("ref", "reference", "chq")),
    ("withdrawal_amt", ("withdrawal", "debit", "dr")),
    ("deposit_amt", ("deposit", "credit", "cr")),
    ("closing_balance", ("balance", "closing")),
)

_DATE_SHAPE_RE = re.compile(r"\d{1,2}[-/]\d{1,2}[-/]\d{2,4}|\d{4}[-/]\d{1,2}[-/]\d{1,2}")
_AMOUNT_SHAPE_RE = re.compile(r"\d")


def _suggest_by_name(column: str) -> str | None:
    col = column.lower()
    if "value" in col and ("date" in col or "dt" in col):
        return "value_date"
    for target, keywords in _NAME_RULES:
        if any(k in col for k in keywords):
            return target
    return None


def _suggest_by_content(value: str) -> str | None:
    if _DATE_SHAPE_RE.search(value):
        return "date"
    if _AMOUNT_SHAPE_RE.search(value) and ("." in value or "," in value):
        return GENERIC_AMOUNT
    return None


def detect_column_types(rows: Sequence[Mapping[str, str]]) -> dict[str, str]:
    """Suggest a target field for each column of ``rows``.

    Uses at most the first :data:`SAMPLE_SIZE` rows. Columns matching no rule
    are left out. ``"amount"`` means "some amount column" and is not a valid
    mapping target on its own.
    """

    if not rows:
        return {}
    sample = rows[:SAMPLE_SIZE]
    suggestions: dict[str, str] = {}
    for col in sample[0]:
        by_name = _suggest_by_name(col)
        if by_name is not None:
            suggestions[col] = by_name
            continue
        first = next((str(r.get(col)) for r in sample if r.get(col)), None)
        if first is None:
            continue
        by_content = _suggest_by_content(first)
        if by_content is not None:
            suggestions[col] = by_content
    return suggestions


def validate_column_mapping(mapping: Mapping[str, str | None] | None) -> list[str]:
    """Return the list of problems with ``mapping`` (empty when valid).

    A ``None`` or empty target means the column is skipped.
    """

    if not mapping:
        return ["Column mapping is empty. Map at least one column to 'date' and one to 'narration'."]

    problems: list[str] = []
    for column, target in mapping.items():
        if target and target not in TARGET_FIELDS:
            problems.append(
                f"Column {column!r} is mapped to unknown field {target!r}. "
                f"Allowed: {', '.join(TARGET_FIELDS)}"
            )
    mapped = {t for t in mapping.values() if t and t != "skip"}
    for required in REQUIRED_TARGETS:
        if required not in mapped:
            problems.append(f"A column must be mapped to '{required}'.")
    return problems


def require_valid_mapping(mapping: Mapping[str, str | None] | None) -> ColumnMapping:
    problems = validate_column_mapping(mapping)
    if problems:
        raise MappingValidationError(problems)
    assert mapping is not None
    return {column: target or "skip" for column, target in mapping.items()}


def suggestions_to_mapping(suggestions: Mapping[str, str]) -> ColumnMapping:
    """Turn advisory suggestions into a mapping: first column per target wins."""

    mapping: ColumnMapping = {}
    claimed: set[str] = set()
    for column, target in suggestions.items():
        if target not in TARGET_FIELDS or target == "skip" or target in claimed:
            mapping[column] = "skip"
            continue
        claimed.add(target)
        mapping[column] = target
    return mapping


def resolve_column_mapping(
    rows: Sequence[Mapping[str, str]],
    mapping: Mapping[str, str | None] | None = None,
) -> ColumnMapping:
    """Return the user's mapping, or the suggested one when ``mapping`` is ``None``.

    An empty mapping counts as supplied (and invalid). Raises
    :class:`~statement_ledger.errors.MappingValidationError` when the resulting
    mapping lacks a required target.
    """

    if mapping is not None:
        return require_valid_mapping(mapping)
    auto = suggestions_to_mapping(detect_column_types(rows))
    _logger.info("no column mapping supplied; using suggestions: %s", auto)
    return require_valid_mapping(auto)


@dataclass(frozen=True, slots=True)
class MappingOutcome:
    transactions: list[Transaction]
    rejected: list[RejectedRow]


def _lookup(row: Mapping[str, object], column: str) -> object:
    if column in row:
        return row[column]
    lowered = column.lower()
    for key, value in row.items():
        if key.lower() == lowered:
            return value
    return None


def row_to_transaction(
    row: Mapping[str, object], mapping: Mapping[str, str | None]
) -> tuple[Transaction | None, str | None]:
    """Map one row. Returns ``(transaction, None)`` or ``(None, reason)``."""

    values: dict[str, object] = {}
    for column, target in mapping.items():
        if not target or target == "skip":
            continue
        value = _lookup(row, column)
        if target in ("date", "value_date"):
            values[target] = normalize_date(value)
        elif target == "narration":
            values[target] = str(value if value is not None else "").strip()
        elif target == "ref_no":
            text = str(value).strip() if value is not None else ""
            values[target] = text or None
        elif target in ("withdrawal_amt", "deposit_amt"):
            values[target] = normalize_amount(value)
        elif target == "closing_balance":
            # A blank or zero balance cell means "not reported".
            values[target] = normalize_amount(value) or None

    date_val = values.get("date")
    narration = values.get("narration")
    if not date_val and not narration:
        return None, "missing date and narration"
    if not date_val:
        return None, "missing or unparsable date"
    if not narration:
        return None, "missing narration"

    return (
        Transaction(
            date=str(date_val),
            narration=str(narration),
            ref_no=values.get("ref_no"),  # type: ignore[arg-type]
            value_date=values.get("value_date"),  # type: ignore[arg-type]
            withdrawal_amt=float(values.get("withdrawal_amt") or 0.0),  # type: ignore[arg-type]
            deposit_amt=float(values.get("deposit_amt") or 0.0),  # type: ignore[arg-type]
            closing_balance=values.get("closing_balance"),  # type: ignore[arg-type]
            tags=(),
            category=DEFAULT_CATEGORY,
        ),
        None,
    )


def transform_rows(
    rows: Sequence[Mapping[str, object]], mapping: Mapping[str, str | None]
) -> MappingOutcome:
    """Apply a validated ``mapping`` to every row, in parse order.

    Rows that lack a date or narration after normalization are dropped and
    recorded in :attr:`MappingOutcome.rejected`.
    """

    valid = require_valid_mapping(mapping)
    transactions: list[Transaction] = []
    rejected: list[RejectedRow] = []
    for i, row in enumerate(rows):
        txn, reason = row_to_transaction(row, valid)
        if txn is None:
            rejected.append(RejectedRow(row=i, reason=reason or "invalid row"))
            continue
        transactions.append(txn)

    if rejected:
        _logger.warning(
            "dropped %d of %d row(s) missing date or narration (first: row %d, %s)",
            len(rejected),
            len(rows),
            rejected[0].row,
            rejected[0].reason,
        )
    return MappingOutcome(transactions=transactions, rejected=rejected)


__all__ = [
    "SAMPLE_SIZE",
    "GENERIC_AMOUNT",
    "detect_column_types",
    "validate_column_mapping",
    "require_valid_mapping",
    "suggestions_to_mapping",
    "resolve_column_mapping",
    "MappingOutcome",
    "row_to_transaction",
    "transform_rows",
]
