from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from statement_ledger.cli import _parse_mapping_pairs, app
from tests.helpers.db import fetch_transactions

runner = CliRunner()

STATEMENT = (
    "HDFC BANK Ltd.\n"
    "Date,Narration,Chq./Ref.No.,Withdrawal Amt.,Deposit Amt.,Closing Balance\n"
    "10/01/24,UBER TRIP 123,,200.00,,9800.00\n"
    "10/01/24,UBER TRIP 456,,150.00,,9650.00\n"
    "11/01/24,SALARY,NEFT001,,50000.00,59650.00\n"
)


@pytest.fixture
def statement_file(tmp_path: Path) -> Path:
    p = tmp_path / "statement.csv"
    p.write_text(STATEMENT, encoding="utf-8")
    return p


def test_inspect_prints_fields_and_suggestions(statement_file: Path):
    result = runner.invoke(app, ["inspect", str(statement_file)])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["rows"] == 3
    assert payload["suggested_mapping"]["chq./ref.no."] == "ref_no"


def test_inspect_missing_file_exits_1(tmp_path: Path):
    result = runner.invoke(app, ["inspect", str(tmp_path / "nope.csv")])

    assert result.exit_code == 1


def test_import_twice_keeps_one_row_per_transaction(statement_file: Path, sqlite_url: str):
    args = ["import", str(statement_file), "--database-url", sqlite_url]

    first = runner.invoke(app, args)
    second = runner.invoke(app, args)

    assert first.exit_code == 0, first.output
    assert json.loads(first.stdout) == {
        "success": True,
        "uploaded": 3,
        "total": 3,
        "duplicates": 0,
        "rejected": 0,
    }
    assert second.exit_code == 0, second.output
    assert len(fetch_transactions(sqlite_url)) == 3


def test_import_with_explicit_mapping(statement_file: Path, sqlite_url: str):
    result = runner.invoke(
        app,
        ["import", str(statement_file), "-m", "Date=date", "-m", "Narration=narration"],
    )

    assert result.exit_code == 0, result.output
    rows = fetch_transactions(sqlite_url)
    assert {r["withdrawal_amt"] for r in rows} == {0.0}


def test_import_with_invalid_mapping_exits_1(statement_file: Path, sqlite_url: str):
    result = runner.invoke(app, ["import", str(statement_file), "-m", "Narration=narration"])

    assert result.exit_code == 1
    assert fetch_transactions(sqlite_url) == []


def test_import_without_database_url_exits_1(statement_file: Path):
    result = runner.invoke(app, ["import", str(statement_file)])

    assert result.exit_code == 1


def test_group_by_narration(statement_file: Path):
    result = runner.invoke(app, ["group", str(statement_file), "--mode", "narration"])

    assert result.exit_code == 0, result.output
    rows = json.loads(result.stdout)
    assert [r["narration"] for r in rows] == ["SALARY", "UBER TRIP 123 (2 similar)"]
    assert rows[1]["withdrawal_amt"] == pytest.approx(350.0)


def test_group_rejects_unknown_mode(statement_file: Path):
    result = runner.invoke(app, ["group", str(statement_file), "--mode", "weekly"])

    assert result.exit_code == 1


def test_parse_mapping_pairs():
    assert _parse_mapping_pairs([]) is None
    assert _parse_mapping_pairs(["Txn Date = date"]) == {"txn_date": "date"}
    with pytest.raises(ValueError):
        _parse_mapping_pairs(["no-separator"])
