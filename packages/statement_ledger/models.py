"""Data models and type aliases for ``statement_ledger``.

Ledger-side records are frozen dataclasses with explicit defaults supplied at
construction time. Request/response bodies crossing the HTTP boundary are
pydantic models (see the DTO section at the bottom).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------

type ParsedRow = dict[str, str]
"""One tabular row keyed by normalized header (lowercase, ``_`` for spaces).

Insertion order follows the source column order.
"""


@dataclass(frozen=True, slots=True)
class ParseError:
    """A recoverable, row-level problem found while reading a file.

    ``row`` is the 0-based data-row index (header excluded) when known.
    """

    message: str
    row: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "row": self.row}


@dataclass(frozen=True, slots=True)
class ParseResult:
    """Uniform output of both tabular ingestion adapters."""

    rows: list[ParsedRow]
    errors: list[ParseError] = field(default_factory=list)
    fields: list[str] = field(default_factory=list)
    delimiter: str | None = None


# ---------------------------------------------------------------------------
# Column mapping
# ---------------------------------------------------------------------------

type TargetField = Literal[
    "date",
    "narration",
    "ref_no",
    "value_date",
    "withdrawal_amt",
    "deposit_amt",
    "closing_balance",
    "skip",
]

TARGET_FIELDS: tuple[str, ...] = (
    "date",
    "narration",
    "ref_no",
    "value_date",
    "withdrawal_amt",
    "deposit_amt",
    "closing_balance",
    "skip",
)

REQUIRED_TARGETS: tuple[str, ...] = ("date", "narration")

type ColumnMapping = dict[str, str]
"""Source column name -> target field (one of :data:`TARGET_FIELDS`)."""


# ---------------------------------------------------------------------------
# Ledger records
# ---------------------------------------------------------------------------

DEFAULT_CATEGORY = "Uncategorized"


def normalize_tags(tags: Any) -> tuple[str, ...]:
    """Trim labels, drop blanks and case-insensitive repeats; keep first-seen order."""

    if tags is None:
        return ()
    if isinstance(tags, str):
        tags = [tags]
    seen: set[str] = set()
    out: list[str] = []
    for raw in tags:
        if raw is None:
            continue
        label = str(raw).strip()
        key = label.casefold()
        if not label or key in seen:
            continue
        seen.add(key)
        out.append(label)
    return tuple(out)


def _float_or(value: Any, default: float | None) -> float | None:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _str_or_none(value: Any) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


@dataclass(frozen=True, slots=True)
class Transaction:
    """A canonical ledger entry.

    ``date`` and ``value_date`` are ISO ``YYYY-MM-DD`` strings. ``id`` is
    assigned by storage and stays ``None`` until the record is persisted.
    """

    date: str
    narration: str
    ref_no: str | None = None
    value_date: str | None = None
    withdrawal_amt: float = 0.0
    deposit_amt: float = 0.0
    closing_balance: float | None = None
    tags: tuple[str, ...] = ()
    category: str = DEFAULT_CATEGORY
    id: str | None = None

    @property
    def is_group(self) -> bool:
        return False

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Transaction:
        """Build a transaction from a storage row or JSON object."""

        date_val = record.get("date")
        return cls(
            id=_str_or_none(record.get("id")),
            date=str(date_val) if date_val is not None else "",
            narration=str(record.get("narration") or "").strip(),
            ref_no=_str_or_none(record.get("ref_no")),
            value_date=_str_or_none(record.get("value_date")),
            withdrawal_amt=_float_or(record.get("withdrawal_amt"), 0.0) or 0.0,
            deposit_amt=_float_or(record.get("deposit_amt"), 0.0) or 0.0,
            closing_balance=_float_or(record.get("closing_balance"), None),
            tags=normalize_tags(record.get("tags")),
            category=_str_or_none(record.get("category")) or DEFAULT_CATEGORY,
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "narration": self.narration,
            "ref_no": self.ref_no,
            "value_date": self.value_date,
            "withdrawal_amt": self.withdrawal_amt,
            "deposit_amt": self.deposit_amt,
            "closing_balance": self.closing_balance,
            "tags": list(self.tags),
            "category": self.category,
        }


@dataclass(frozen=True, slots=True)
class RejectedRow:
    """A mapped row dropped before storage, with the reason recorded."""

    row: int
    reason: str


@dataclass(frozen=True, slots=True)
class FixedDepositRecord:
    """A fixed deposit extracted from statement text. ``fd_number`` is mandatory."""

    fd_number: str
    principal_amt: float | None = None
    interest_rate: float | None = None
    maturity_date: str | None = None
    maturity_amt: float | None = None
    status: str | None = None

    def to_record(self) -> dict[str, Any]:
        return {
            "fd_number": self.fd_number,
            "principal_amt": self.principal_amt,
            "interest_rate": self.interest_rate,
            "maturity_date": self.maturity_date,
            "maturity_amt": self.maturity_amt,
            "status": self.status,
        }


@dataclass(frozen=True, slots=True)
class GroupedTransaction:
    """A display-only aggregate of several transactions. Never persisted."""

    id: str
    date: str
    narration: str
    withdrawal_amt: float
    deposit_amt: float
    closing_balance: float | None
    count: int
    transactions: tuple[Transaction, ...]

    @property
    def is_group(self) -> bool:
        return True

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "narration": self.narration,
            "withdrawal_amt": self.withdrawal_amt,
            "deposit_amt": self.deposit_amt,
            "closing_balance": self.closing_balance,
            "count": self.count,
            "is_group": True,
            "transactions": [t.to_record() for t in self.transactions],
        }


type DisplayTransaction = Transaction | GroupedTransaction

type GroupingMode = Literal["none", "date", "narration"]


# ---------------------------------------------------------------------------
# DTOs for the HTTP boundary
# ---------------------------------------------------------------------------


class UploadTransactionsRequest(BaseModel):
    """Body of ``POST /api/upload-transactions``."""

    model_config = ConfigDict(extra="ignore")

    transactions: list[dict[str, Any]]
    mapping: dict[str, str | None]


class UploadTransactionsResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    success: bool = True
    uploaded: int
    total: int
    duplicates: int


class TagsUpdateRequest(BaseModel):
    """Body of ``PUT /api/transactions/{id}/tags``."""

    model_config = ConfigDict(extra="forbid")

    tags: list[str] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def _clean_tags(cls, v: list[str]) -> list[str]:
        return list(normalize_tags(v))


__all__ = [
    "ParsedRow",
    "ParseError",
    "ParseResult",
    "TargetField",
    "TARGET_FIELDS",
    "REQUIRED_TARGETS",
    "ColumnMapping",
    "DEFAULT_CATEGORY",
    "normalize_tags",
    "Transaction",
    "RejectedRow",
    "FixedDepositRecord",
    "GroupedTransaction",
    "DisplayTransaction",
    "GroupingMode",
    "UploadTransactionsRequest",
    "UploadTransactionsResponse",
    "TagsUpdateRequest",
]
