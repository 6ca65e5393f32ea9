"""Display-time grouping of transactions.

Grouping never mutates its input and never produces anything that is stored;
``GroupedTransaction`` rows exist only for presentation.

Modes:
- ``none``: the input, unchanged.
- ``date``: one group per exact ``date`` value (including single-member
  buckets), sorted newest first.
- ``narration``: greedy clustering on normalized narrations using the
  Levenshtein distance relative to the longer string. Singletons pass through.

Narration clustering compares every remaining pair, so it refuses batches
above :func:`statement_ledger.config.grouping_max_items`.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from datetime import date

from rapidfuzz.distance import Levenshtein

from .config import grouping_max_items
from .logging_setup import get_logger
from .models import DisplayTransaction, GroupedTransaction, GroupingMode, Transaction

_logger = get_logger("statement_ledger.grouping")

DEFAULT_SIMILARITY_THRESHOLD = 0.3
UNKNOWN_DATE = "unknown"

_WS_RE = re.compile(r"\s+")
_LEADING_TYPE_RE = re.compile(
    r"^(upi|neft|imps|rtgs|atm|pos|card|online|payment|transfer)\b\s*", re.IGNORECASE
)
_TRAILING_BOILERPLATE_RE = re.compile(
    r"\s*\b(payment|transfer|transaction|ref no|refno|ref)\b.*$", re.IGNORECASE
)


def normalize_narration(narration: str) -> str:
    """Lowercase, collapse whitespace and drop payment-rail boilerplate.

    >>> normalize_narration("UPI  Swiggy Order Ref No 1234")
    'swiggy order'
    """

    s = _WS_RE.sub(" ", (narration or "").lower().strip())
    s = _LEADING_TYPE_RE.sub("", s)
    s = _TRAILING_BOILERPLATE_RE.sub("", s)
    return s.strip()


def narration_distance(a: str, b: str) -> float:
    """Levenshtein distance divided by the longer length (0 identical, 1 disjoint).

    Two empty strings count as fully different.
    """

    longer = max(len(a), len(b))
    if longer == 0:
        return 1.0
    return Levenshtein.distance(a.lower(), b.lower()) / longer


def _date_sort_key(value: str) -> tuple[int, int]:
    try:
        return (0, -date.fromisoformat(value).toordinal())
    except (TypeError, ValueError):
        return (1, 0)


def _sorted_by_date_desc(items: list[DisplayTransaction]) -> list[DisplayTransaction]:
    # Unparsable dates (including "unknown") sort after every real date.
    return sorted(items, key=lambda t: _date_sort_key(t.date))


def _aggregate(
    group_id: str, group_date: str, narration: str, members: Sequence[Transaction]
) -> GroupedTransaction:
    return GroupedTransaction(
        id=group_id,
        date=group_date,
        narration=narration,
        withdrawal_amt=sum(t.withdrawal_amt or 0.0 for t in members),
        deposit_amt=sum(t.deposit_amt or 0.0 for t in members),
        closing_balance=members[-1].closing_balance,
        count=len(members),
        transactions=tuple(members),
    )


def group_by_date(transactions: Sequence[Transaction]) -> list[DisplayTransaction]:
    buckets: dict[str, list[Transaction]] = {}
    for txn in transactions:
        buckets.setdefault(txn.date or UNKNOWN_DATE, []).append(txn)

    grouped: list[DisplayTransaction] = []
    for day, members in buckets.items():
        n = len(members)
        label = f"{n} transaction{'s' if n != 1 else ''}"
        grouped.append(_aggregate(f"group-date-{day}", day, label, members))
    return _sorted_by_date_desc(grouped)


def group_by_narration(
    transactions: Sequence[Transaction],
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    *,
    max_items: int | None = None,
) -> list[DisplayTransaction]:
    """Greedy single-pass clustering by narration similarity.

    Each unprocessed transaction seeds a cluster and absorbs every later
    unprocessed transaction within ``similarity_threshold`` of the seed.
    Raises ``ValueError`` when the batch exceeds ``max_items``.
    """

    limit = max_items if max_items is not None else grouping_max_items()
    if len(transactions) > limit:
        raise ValueError(
            f"Narration grouping is limited to {limit} transactions; got {len(transactions)}. "
            "Filter the list first."
        )

    normalized = [normalize_narration(t.narration) for t in transactions]
    processed = [False] * len(transactions)
    clusters: list[list[int]] = []

    for i in range(len(transactions)):
        if processed[i]:
            continue
        processed[i] = True
        members = [i]
        for j in range(len(transactions)):
            if processed[j]:
                continue
            if narration_distance(normalized[i], normalized[j]) <= similarity_threshold:
                members.append(j)
                processed[j] = True
        clusters.append(members)

    result: list[DisplayTransaction] = []
    for members in clusters:
        txns = [transactions[k] for k in members]
        if len(txns) == 1:
            result.append(txns[0])
            continue
        first = txns[0]
        seed = first.id if first.id is not None else str(members[0])
        result.append(
            _aggregate(
                f"group-narration-{seed}",
                first.date,
                f"{first.narration} ({len(txns)} similar)",
                txns,
            )
        )

    _logger.debug(
        "narration grouping: %d transaction(s) -> %d row(s)", len(transactions), len(result)
    )
    return _sorted_by_date_desc(result)


def group_transactions(
    transactions: Sequence[Transaction],
    mode: GroupingMode = "none",
    *,
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
) -> list[DisplayTransaction]:
    if mode == "date":
        return group_by_date(transactions)
    if mode == "narration":
        return group_by_narration(transactions, similarity_threshold)
    return list(transactions)


__all__ = [
    "DEFAULT_SIMILARITY_THRESHOLD",
    "UNKNOWN_DATE",
    "normalize_narration",
    "narration_distance",
    "group_by_date",
    "group_by_narration",
    "group_transactions",
]
