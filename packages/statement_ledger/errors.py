"""Exception types raised by the ingestion and upload orchestration.

``ValueError`` subclasses describe problems with the caller's input (HTTP 400
at the API boundary); ``RuntimeError`` subclasses describe failures of a
collaborator (HTTP 500).
"""

from __future__ import annotations

from collections.abc import Iterable


class UnsupportedFormatError(ValueError):
    """The uploaded file format is rejected before any parsing attempt."""


class UploadTooLargeError(ValueError):
    """The uploaded file exceeds the configured size limit."""


class MappingValidationError(ValueError):
    """A column mapping is missing required targets or uses unknown ones."""

    def __init__(self, problems: Iterable[str]) -> None:
        self.problems: list[str] = list(problems)
        super().__init__("; ".join(self.problems) or "invalid column mapping")


class EmptyBatchError(ValueError):
    """No row survived mapping and validation."""


class PdfReadError(ValueError):
    """The uploaded bytes are not a readable PDF document."""


class StorageError(RuntimeError):
    """The storage collaborator reported a failure for the whole batch."""


__all__ = [
    "UnsupportedFormatError",
    "UploadTooLargeError",
    "MappingValidationError",
    "EmptyBatchError",
    "PdfReadError",
    "StorageError",
]
