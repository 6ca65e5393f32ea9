# ruff: noqa: I001
"""Persistence integration for statement_ledger.

Functions here write ledger transactions, fixed deposits and tag edits to the
database owned by ``libs/db``. They rely on the SQLAlchemy ORM models in
``db.models.ledger`` and a session provided by ``db.client``; committing is
left to the caller (``db.client.session_scope``).

Scope:
- Upsert transactions into ``ledger_transactions`` keyed by identifier.
- Upsert fixed deposits into ``fixed_deposits`` keyed by ``fd_number``.
- Replace the tag list of one or many transactions.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any

from sqlalchemy import func, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.models.ledger import FixedDeposit, LedgerTransaction
from .duplicates import get_identifier
from .logging_setup import get_logger
from .models import FixedDepositRecord, Transaction, normalize_tags

_logger = get_logger("statement_ledger.persistence")

CHUNK_SIZE = 1000


@dataclass(frozen=True, slots=True)
class UpsertResult:
    """Outcome of one batch upsert.

    ``inserted_ids`` lists the ids of rows written before any failure; when
    ``error`` is set the batch was rolled back and those ids are not reliable.
    """

    inserted_ids: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _to_decimal_2(raw: Any) -> Decimal | None:
    if raw is None:
        return None
    try:
        d = Decimal(str(raw))
    except (InvalidOperation, ValueError):
        return None
    return d.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _to_date(raw: Any) -> date | None:
    if raw is None:
        return None
    s = str(raw).strip()
    if not s:
        return None
    try:
        # Expect YYYY-MM-DD
        return date.fromisoformat(s)
    except ValueError:
        return None


def _insert_for(session: Session):
    """Return the dialect-specific ``insert`` supporting ``ON CONFLICT``."""

    name = session.get_bind().dialect.name
    if name == "postgresql":
        return pg_insert
    if name == "sqlite":
        return sqlite_insert
    raise NotImplementedError(f"Upserts are not implemented for the {name!r} dialect")


def _chunks(items: Sequence[Any], size: int = CHUNK_SIZE) -> Iterable[Sequence[Any]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


def _transaction_payload(txn: Transaction) -> dict[str, Any]:
    return {
        "id": txn.id or str(uuid.uuid4()),
        "identifier": get_identifier(txn),
        "date": _to_date(txn.date),
        "narration": txn.narration,
        "ref_no": txn.ref_no,
        "value_date": _to_date(txn.value_date),
        "withdrawal_amt": _to_decimal_2(txn.withdrawal_amt) or Decimal("0.00"),
        "deposit_amt": _to_decimal_2(txn.deposit_amt) or Decimal("0.00"),
        "closing_balance": _to_decimal_2(txn.closing_balance),
        "tags": list(txn.tags),
        "category": txn.category,
    }


def _fixed_deposit_payload(rec: FixedDepositRecord) -> dict[str, Any]:
    return {
        "id": str(uuid.uuid4()),
        "fd_number": rec.fd_number,
        "principal_amt": _to_decimal_2(rec.principal_amt),
        "interest_rate": None if rec.interest_rate is None else Decimal(str(rec.interest_rate)),
        "maturity_date": _to_date(rec.maturity_date),
        "maturity_amt": _to_decimal_2(rec.maturity_amt),
        "status": rec.status,
    }


def _upsert(
    session: Session,
    model: type[LedgerTransaction] | type[FixedDeposit],
    key: str,
    payloads: list[dict[str, Any]],
    update_columns: Sequence[str],
) -> UpsertResult:
    insert = _insert_for(session)
    now = func.now()
    ids: list[str] = []
    try:
        for chunk in _chunks(payloads):
            stmt = insert(model).values(list(chunk))
            stmt = stmt.on_conflict_do_update(
                index_elements=[getattr(model, key)],
                set_={**{c: stmt.excluded[c] for c in update_columns}, "updated_at": now},
            ).returning(model.id)
            ids.extend(str(r) for r in session.execute(stmt).scalars())
    except SQLAlchemyError as exc:
        session.rollback()
        _logger.error(
            "upsert into %s failed after %d row(s): %s", model.__tablename__, len(ids), exc
        )
        return UpsertResult(inserted_ids=ids, error=str(getattr(exc, "orig", None) or exc))
    _logger.info("upserted %d row(s) into %s", len(ids), model.__tablename__)
    return UpsertResult(inserted_ids=ids)


# Imported fields refreshed on conflict; tags and category are user-owned.
_TRANSACTION_UPDATE_COLUMNS = (
    "date",
    "narration",
    "ref_no",
    "value_date",
    "withdrawal_amt",
    "deposit_amt",
    "closing_balance",
)

_FIXED_DEPOSIT_UPDATE_COLUMNS = (
    "principal_amt",
    "interest_rate",
    "maturity_date",
    "maturity_amt",
    "status",
)


def upsert_transactions(session: Session, transactions: Iterable[Transaction]) -> UpsertResult:
    """Insert or update transactions into ``ledger_transactions``.

    Idempotency rule: rows are keyed by ``identifier`` (reference number when
    present, else the content hash), so re-importing a statement refreshes the
    imported columns and leaves ``tags``/``category`` untouched. Repeated
    identifiers within ``transactions`` keep the first occurrence.
    """

    payloads: list[dict[str, Any]] = []
    seen: set[str] = set()
    for txn in transactions:
        payload = _transaction_payload(txn)
        if payload["identifier"] in seen:
            continue
        seen.add(payload["identifier"])
        payloads.append(payload)
    if not payloads:
        return UpsertResult()
    return _upsert(
        session, LedgerTransaction, "identifier", payloads, _TRANSACTION_UPDATE_COLUMNS
    )


def upsert_fixed_deposits(
    session: Session, records: Iterable[FixedDepositRecord]
) -> UpsertResult:
    """Insert or update fixed deposits keyed by ``fd_number`` (conflict updates in place)."""

    payloads: list[dict[str, Any]] = []
    seen: set[str] = set()
    for rec in records:
        if rec.fd_number in seen:
            continue
        seen.add(rec.fd_number)
        payloads.append(_fixed_deposit_payload(rec))
    if not payloads:
        return UpsertResult()
    return _upsert(session, FixedDeposit, "fd_number", payloads, _FIXED_DEPOSIT_UPDATE_COLUMNS)


def update_transaction_tags(session: Session, transaction_id: str, tags: Iterable[str]) -> bool:
    """Replace the tags of one transaction. Returns ``False`` when the id is unknown."""

    return bulk_update_transaction_tags(session, [transaction_id], tags) > 0


def bulk_update_transaction_tags(
    session: Session, transaction_ids: Iterable[str], tags: Iterable[str]
) -> int:
    """Replace the tags of every listed transaction; returns the number of rows changed."""

    ids = [str(i) for i in transaction_ids]
    if not ids:
        return 0
    stmt = (
        update(LedgerTransaction)
        .where(LedgerTransaction.id.in_(ids))
        .values(tags=list(normalize_tags(list(tags))), updated_at=func.now())
    )
    result = session.execute(stmt)
    return int(result.rowcount or 0)


class SqlLedgerStore:
    """Storage collaborator for the orchestration in :mod:`statement_ledger.api`, bound to one session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def upsert_transactions(self, transactions: Sequence[Transaction]) -> UpsertResult:
        return upsert_transactions(self.session, transactions)

    def upsert_fixed_deposits(self, records: Sequence[FixedDepositRecord]) -> UpsertResult:
        return upsert_fixed_deposits(self.session, records)


__all__ = [
    "CHUNK_SIZE",
    "UpsertResult",
    "upsert_transactions",
    "upsert_fixed_deposits",
    "update_transaction_tags",
    "bulk_update_transaction_tags",
    "SqlLedgerStore",
]
