"""FastAPI application exposing statement upload, PDF parsing and tag edits.

Routes
------
- ``POST /api/parse-statement``: multipart upload of a CSV/TSV/XLSX export;
  returns parsed rows, row-level errors and the suggested column mapping.
- ``POST /api/upload-transactions``: JSON ``{transactions, mapping}``;
  validates, de-duplicates and upserts the batch.
- ``POST /api/parse-pdf``: multipart PDF upload; returns the extracted text and
  fixed deposits, and upserts them when ``save=true``.
- ``PUT /api/transactions/{transaction_id}/tags``: replace a transaction's tags.

Every failure is answered with ``{"error": message}``: caller mistakes
(``ValueError`` and request validation) with 400, storage failures with 500.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path, PurePath

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, File, Query, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from db.client import session_scope

from . import api
from .config import database_url
from .errors import MappingValidationError, StorageError
from .logging_setup import configure_logging, get_logger
from .models import TagsUpdateRequest, UploadTransactionsRequest, UploadTransactionsResponse
from .persistence import SqlLedgerStore, update_transaction_tags

_logger = get_logger("statement_ledger.server")

_PDF_CONTENT_TYPES = {"application/pdf", "application/x-pdf"}


def get_db_session() -> Iterator[Session]:
    """Request-scoped session; committed when the handler returns normally."""

    url = database_url()
    if not url:
        raise StorageError("DATABASE_URL is not set; cannot reach the ledger database")
    with session_scope(database_url=url) as session:
        yield session


def _error(status_code: int, message: str, **extra: object) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


async def _value_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    if isinstance(exc, MappingValidationError):
        return _error(400, str(exc), problems=exc.problems)
    _logger.info("rejected request: %s", exc)
    return _error(400, str(exc))


async def _storage_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    _logger.error("storage failure: %s", exc)
    return _error(500, str(exc))


async def _validation_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, RequestValidationError)
    details = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}"
        for err in exc.errors()
    )
    return _error(400, f"Invalid request body ({details})")


def _read_upload(file: UploadFile) -> bytes:
    return file.file.read()


def parse_statement_route(file: UploadFile = File(...)) -> dict[str, object]:
    filename = file.filename or ""
    result = api.parse_statement(filename, _read_upload(file))
    return {
        "filename": filename,
        "fields": result.fields,
        "delimiter": result.delimiter,
        "rows": result.rows,
        "errors": [e.to_dict() for e in result.errors],
        "suggested_mapping": api.suggest_column_mapping(result.rows),
    }


def upload_transactions_route(
    body: UploadTransactionsRequest, session: Session = Depends(get_db_session)
) -> UploadTransactionsResponse:
    summary = api.upload_transactions(body.transactions, body.mapping, SqlLedgerStore(session))
    return UploadTransactionsResponse(
        uploaded=summary.uploaded, total=summary.total, duplicates=summary.duplicates
    )


def parse_pdf_route(
    file: UploadFile = File(...),
    save: bool = Query(False, description="Upsert the extracted fixed deposits."),
) -> JSONResponse | dict[str, object]:
    filename = file.filename or ""
    is_pdf = PurePath(filename).suffix.lower() == ".pdf" or file.content_type in _PDF_CONTENT_TYPES
    if not is_pdf:
        return _error(400, "File must be a PDF")

    outcome = api.parse_pdf(_read_upload(file))
    saved: list[str] = []
    if save and outcome.fixed_deposits:
        url = database_url()
        if not url:
            raise StorageError("DATABASE_URL is not set; cannot save fixed deposits")
        with session_scope(database_url=url) as session:
            saved = api.save_fixed_deposits(outcome.fixed_deposits, SqlLedgerStore(session))

    return {
        "success": True,
        "text": outcome.text,
        "metadata": {**outcome.metadata, "pages": outcome.page_count},
        "fixed_deposits": [fd.to_record() for fd in outcome.fixed_deposits],
        "saved": len(saved),
    }


def update_tags_route(
    transaction_id: str,
    body: TagsUpdateRequest,
    session: Session = Depends(get_db_session),
) -> JSONResponse | dict[str, object]:
    if not update_transaction_tags(session, transaction_id, body.tags):
        return _error(404, f"Transaction {transaction_id} not found")
    return {"success": True, "id": transaction_id, "tags": body.tags}


def create_app() -> FastAPI:
    """Build the application; loads ``.env`` and configures logging once."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()

    app = FastAPI(title="statement-ledger", version="0.1.0")
    app.add_exception_handler(ValueError, _value_error_handler)
    app.add_exception_handler(StorageError, _storage_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    app.post("/api/parse-statement", response_model=None)(parse_statement_route)
    app.post("/api/upload-transactions", response_model=UploadTransactionsResponse)(
        upload_transactions_route
    )
    app.post("/api/parse-pdf", response_model=None)(parse_pdf_route)
    app.put("/api/transactions/{transaction_id}/tags", response_model=None)(update_tags_route)

    @app.get("/api/health")
    def health_check() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()


__all__ = ["app", "create_app", "get_db_session"]
