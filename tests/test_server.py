# ruff: noqa: E501
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from statement_ledger.pdf_text import PdfText
from statement_ledger.server import create_app
from tests.helpers.db import fetch_fixed_deposits, fetch_transactions

CSV_BYTES = (
    b"HDFC BANK Ltd.\n"
    b"Date,Narration,Chq./Ref.No.,Withdrawal Amt.,Deposit Amt.,Closing Balance\n"
    b"10/01/24,ATM WDL,,500.00,,9500.00\n"
    b"10/01/24,ATM WDL,,500.00,,9500.00\n"
    b"11/01/24,SALARY,NEFT001,,50000.00,59500.00\n"
)

MAPPING = {
    "date": "date",
    "narration": "narration",
    "chq./ref.no.": "ref_no",
    "withdrawal_amt.": "withdrawal_amt",
    "deposit_amt.": "deposit_amt",
    "closing_balance": "closing_balance",
}


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app())


def _parse(client: TestClient) -> dict:
    resp = client.post(
        "/api/parse-statement", files={"file": ("statement.csv", CSV_BYTES, "text/csv")}
    )
    assert resp.status_code == 200, resp.text
    return resp.json()


def test_health(client: TestClient):
    assert client.get("/api/health").json() == {"status": "ok"}


def test_parse_statement_returns_rows_and_suggestions(client: TestClient):
    body = _parse(client)

    assert body["filename"] == "statement.csv"
    assert body["delimiter"] == ","
    assert len(body["rows"]) == 3
    assert body["errors"] == []
    assert body["suggested_mapping"] == MAPPING


def test_parse_statement_rejects_unsupported_format(client: TestClient):
    resp = client.post(
        "/api/parse-statement", files={"file": ("statement.numbers", b"PK\x03\x04", "application/zip")}
    )

    assert resp.status_code == 400
    assert "not supported" in resp.json()["error"]


def test_parse_statement_enforces_size_limit(client: TestClient, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("STATEMENT_LEDGER_MAX_UPLOAD_MB", "1")
    payload = b"Date,Narration\n" + b"x" * (1024 * 1024)

    resp = client.post("/api/parse-statement", files={"file": ("big.csv", payload, "text/csv")})

    assert resp.status_code == 400
    assert "exceeds the 1MB limit" in resp.json()["error"]


def test_upload_parsed_rows_then_retag(client: TestClient, sqlite_url: str):
    rows = _parse(client)["rows"]

    resp = client.post("/api/upload-transactions", json={"transactions": rows, "mapping": MAPPING})

    assert resp.status_code == 200, resp.text
    assert resp.json() == {"success": True, "uploaded": 2, "total": 3, "duplicates": 1}

    salary = fetch_transactions(sqlite_url)[1]
    resp = client.put(f"/api/transactions/{salary['id']}/tags", json={"tags": ["income", ""]})
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "id": salary["id"], "tags": ["income"]}
    assert fetch_transactions(sqlite_url)[1]["tags"] == ["income"]


def test_upload_accepts_null_mapping_values_as_skip(client: TestClient, sqlite_url: str):
    rows = _parse(client)["rows"]
    mapping = {**MAPPING, "chq./ref.no.": None, "closing_balance": None}

    resp = client.post("/api/upload-transactions", json={"transactions": rows, "mapping": mapping})

    assert resp.status_code == 200, resp.text
    assert resp.json()["uploaded"] == 2
    assert {r["closing_balance"] for r in fetch_transactions(sqlite_url)} == {None}


def test_upload_invalid_mapping_is_400_with_problems(client: TestClient, sqlite_url: str):
    rows = _parse(client)["rows"]

    resp = client.post(
        "/api/upload-transactions", json={"transactions": rows, "mapping": {"narration": "narration"}}
    )

    assert resp.status_code == 400
    body = resp.json()
    assert "A column must be mapped to 'date'." in body["problems"]
    assert fetch_transactions(sqlite_url) == []


def test_upload_without_valid_rows_is_400(client: TestClient, sqlite_url: str):
    resp = client.post(
        "/api/upload-transactions",
        json={"transactions": [{"date": "", "narration": "x"}], "mapping": {"date": "date", "narration": "narration"}},
    )

    assert resp.status_code == 400
    assert resp.json() == {"error": "No valid transactions to upload"}


def test_upload_malformed_body_is_400(client: TestClient, sqlite_url: str):
    resp = client.post("/api/upload-transactions", json={"mapping": {}})

    assert resp.status_code == 400
    assert resp.json()["error"].startswith("Invalid request body")


def test_upload_without_database_is_500(client: TestClient):
    resp = client.post(
        "/api/upload-transactions",
        json={"transactions": [], "mapping": {"date": "date", "narration": "narration"}},
    )

    assert resp.status_code == 500
    assert "DATABASE_URL" in resp.json()["error"]


def test_tags_for_unknown_transaction_is_404(client: TestClient, sqlite_url: str):
    resp = client.put("/api/transactions/missing/tags", json={"tags": ["a"]})

    assert resp.status_code == 404
    assert resp.json() == {"error": "Transaction missing not found"}


def test_parse_pdf_rejects_other_files(client: TestClient):
    resp = client.post("/api/parse-pdf", files={"file": ("statement.csv", CSV_BYTES, "text/csv")})

    assert resp.status_code == 400
    assert resp.json() == {"error": "File must be a PDF"}


def test_parse_pdf_unreadable_file_is_400(client: TestClient):
    resp = client.post(
        "/api/parse-pdf", files={"file": ("statement.pdf", b"not a pdf", "application/pdf")}
    )

    assert resp.status_code == 400
    assert resp.json()["error"].startswith("Could not read PDF")


def test_parse_pdf_extracts_and_saves_fixed_deposits(
    client: TestClient, sqlite_url: str, monkeypatch: pytest.MonkeyPatch
):
    text = "FIXED DEPOSIT FD No 50300012345678 Principal Rs. 25,000 Status: Active"
    monkeypatch.setattr(
        "statement_ledger.api.extract_pdf_text",
        lambda data: PdfText(text=text, metadata={"Producer": "bank"}, page_count=2),
    )

    resp = client.post(
        "/api/parse-pdf?save=true",
        files={"file": ("statement.pdf", b"%PDF-1.4", "application/pdf")},
    )

    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["metadata"] == {"Producer": "bank", "pages": 2}
    assert body["saved"] == 1
    assert body["fixed_deposits"][0]["fd_number"] == "50300012345678"
    assert body["fixed_deposits"][0]["principal_amt"] == 25000.0
    assert [r["fd_number"] for r in fetch_fixed_deposits(sqlite_url)] == ["50300012345678"]
