"""Shared SQLAlchemy models registry for the ledger database.

Includes the transaction and fixed-deposit tables used by ``statement_ledger``.
"""

from .ledger import Base, FixedDeposit, LedgerTransaction

__all__ = [
    "Base",
    "FixedDeposit",
    "LedgerTransaction",
]
