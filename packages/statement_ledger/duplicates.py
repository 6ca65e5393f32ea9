"""Transaction identity and in-batch duplicate suppression.

Public surface:
- ``generate_transaction_hash``: SHA-256 over ``date|narration|amount``.
- ``get_identifier``: ``ref:<ref_no>`` when a reference number is present,
  otherwise ``hash:<content hash>``. This is the key storage upserts on.
- ``remove_duplicates``: keep the first transaction per identifier.
- ``are_transactions_duplicate``: pairwise check; reference numbers win when
  both sides carry one, otherwise the content hashes are compared.
- ``group_transactions_by_identifier``: identifier -> members, in first-seen
  order.

``are_transactions_duplicate`` is not used by ``remove_duplicates`` and can
disagree with it: two rows with the same reference number but different
content are duplicates for both, while two rows with different reference
numbers but identical content are duplicates for neither.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable

from .logging_setup import get_logger
from .models import Transaction

_logger = get_logger("statement_ledger.duplicates")

REF_PREFIX = "ref:"
HASH_PREFIX = "hash:"


def _amount_text(value: float) -> str:
    # Integral amounts hash as "500", not "500.0".
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def generate_transaction_hash(txn: Transaction) -> str:
    """Content hash used when a transaction carries no reference number.

    The amount is the withdrawal when nonzero, else the deposit, else ``0``.
    """

    narration = (txn.narration or "").strip().lower()
    amount = _amount_text(txn.withdrawal_amt or txn.deposit_amt or 0)
    data = f"{txn.date or ''}|{narration}|{amount}"
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def get_identifier(txn: Transaction) -> str:
    ref = (txn.ref_no or "").strip()
    if ref:
        return f"{REF_PREFIX}{ref}"
    return f"{HASH_PREFIX}{generate_transaction_hash(txn)}"


def are_transactions_duplicate(a: Transaction, b: Transaction) -> bool:
    if a.ref_no and b.ref_no:
        return a.ref_no.strip() == b.ref_no.strip()
    return generate_transaction_hash(a) == generate_transaction_hash(b)


def remove_duplicates(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Single pass; first occurrence per identifier wins and order is kept."""

    seen: set[str] = set()
    unique: list[Transaction] = []
    total = 0
    for txn in transactions:
        total += 1
        ident = get_identifier(txn)
        if ident in seen:
            continue
        seen.add(ident)
        unique.append(txn)

    if total != len(unique):
        _logger.info("removed %d duplicate(s) from %d transaction(s)", total - len(unique), total)
    return unique


def group_transactions_by_identifier(
    transactions: Iterable[Transaction],
) -> dict[str, list[Transaction]]:
    groups: dict[str, list[Transaction]] = {}
    for txn in transactions:
        groups.setdefault(get_identifier(txn), []).append(txn)
    return groups


__all__ = [
    "REF_PREFIX",
    "HASH_PREFIX",
    "generate_transaction_hash",
    "get_identifier",
    "are_transactions_duplicate",
    "remove_duplicates",
    "group_transactions_by_identifier",
]
