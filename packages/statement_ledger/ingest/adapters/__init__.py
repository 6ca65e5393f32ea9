"""Tabular adapters producing :class:`~statement_ledger.models.ParseResult`."""
