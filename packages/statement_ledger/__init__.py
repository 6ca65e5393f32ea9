"""Public interface for the ``statement_ledger`` package.

This module exposes the package's API functions and public models/types as the
stable import surface. There is no runtime logic here, only symbol re-exports.
"""

from .api import (
    PdfParseOutcome,
    UploadSummary,
    parse_pdf,
    parse_statement,
    resolve_column_mapping,
    save_fixed_deposits,
    suggest_column_mapping,
    transform_rows,
    upload_transactions,
)
from .columns import detect_column_types
from .duplicates import are_transactions_duplicate, get_identifier, remove_duplicates
from .errors import (
    EmptyBatchError,
    MappingValidationError,
    PdfReadError,
    StorageError,
    UnsupportedFormatError,
    UploadTooLargeError,
)
from .fixed_deposits import extract_fixed_deposits
from .grouping import group_transactions
from .models import (
    ColumnMapping,
    DisplayTransaction,
    FixedDepositRecord,
    GroupedTransaction,
    ParseError,
    ParseResult,
    Transaction,
)
from .normalizers import normalize_amount, normalize_date

__all__ = [
    # API
    "parse_statement",
    "suggest_column_mapping",
    "resolve_column_mapping",
    "transform_rows",
    "upload_transactions",
    "parse_pdf",
    "save_fixed_deposits",
    "UploadSummary",
    "PdfParseOutcome",
    # Core transforms
    "normalize_date",
    "normalize_amount",
    "detect_column_types",
    "get_identifier",
    "remove_duplicates",
    "are_transactions_duplicate",
    "group_transactions",
    "extract_fixed_deposits",
    # Models
    "ColumnMapping",
    "DisplayTransaction",
    "FixedDepositRecord",
    "GroupedTransaction",
    "ParseError",
    "ParseResult",
    "Transaction",
    # Errors
    "UnsupportedFormatError",
    "UploadTooLargeError",
    "MappingValidationError",
    "EmptyBatchError",
    "PdfReadError",
    "StorageError",
]
