"""Plain-text extraction from PDF statements via :mod:`pdfplumber`."""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from typing import Any

import pdfplumber

from .errors import PdfReadError
from .logging_setup import get_logger

_logger = get_logger("statement_ledger.pdf_text")


@dataclass(frozen=True, slots=True)
class PdfText:
    text: str
    metadata: dict[str, str] = field(default_factory=dict)
    page_count: int = 0


def _metadata_value(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    # pdfminer returns PSLiteral objects for some keys
    name = getattr(value, "name", None)
    if name is not None:
        return str(name)
    return str(value)


def extract_pdf_text(data: bytes) -> PdfText:
    """Concatenate the text of every page, one page per block.

    Raises :class:`~statement_ledger.errors.PdfReadError` when the bytes are not
    a readable PDF. A PDF without a text layer returns empty text.
    """

    try:
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            pages = [(p.extract_text() or "") for p in pdf.pages]
            metadata = {str(k): _metadata_value(v) for k, v in (pdf.metadata or {}).items()}
    except Exception as exc:  # pdfminer raises a variety of syntax/stream errors
        _logger.warning("could not read PDF: %s", exc)
        raise PdfReadError(f"Could not read PDF: {exc}") from exc

    text = "\n".join(pages)
    if not text.strip():
        _logger.info("PDF has %d page(s) but no extractable text", len(pages))
    return PdfText(text=text, metadata=metadata, page_count=len(pages))


__all__ = ["PdfText", "extract_pdf_text"]
