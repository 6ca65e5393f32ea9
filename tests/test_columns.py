import pytest

from statement_ledger.columns import (
    detect_column_types,
    resolve_column_mapping,
    row_to_transaction,
    suggestions_to_mapping,
    transform_rows,
    validate_column_mapping,
)
from statement_ledger.errors import MappingValidationError

HDFC_ROWS = [
    {
        "date": "01/04/24",
        "narration": "UPI-SWIGGY-ORDER",
        "chq./ref.no.": "0000412345678901",
        "value_dt": "01/04/24",
        "withdrawal_amt.": "1,250.00",
        "deposit_amt.": "",
        "closing_balance": "48,750.00",
    },
    {
        "date": "02/04/24",
        "narration": "SALARY APR",
        "chq./ref.no.": "0000412345678902",
        "value_dt": "02/04/24",
        "withdrawal_amt.": "",
        "deposit_amt.": "50000.00",
        "closing_balance": "98750.00",
    },
]

HDFC_MAPPING = {
    "date": "date",
    "narration": "narration",
    "chq./ref.no.": "ref_no",
    "value_dt": "value_date",
    "withdrawal_amt.": "withdrawal_amt",
    "deposit_amt.": "deposit_amt",
    "closing_balance": "closing_balance",
}


def test_detect_column_types_by_header_name():
    assert detect_column_types(HDFC_ROWS) == HDFC_MAPPING


def test_value_date_is_checked_before_date():
    rows = [{"value_date": "01/01/2024", "txn_date": "01/01/2024"}]

    assert detect_column_types(rows) == {"value_date": "value_date", "txn_date": "date"}


def test_detect_column_types_by_content_when_header_is_opaque():
    rows = [
        {"col_a": "05-11-2024", "col_b": "1,200.00", "col_c": "hello", "col_d": ""},
        {"col_a": "06-11-2024", "col_b": "300.00", "col_c": "world", "col_d": ""},
    ]

    assert detect_column_types(rows) == {"col_a": "date", "col_b": "amount"}


def test_detect_column_types_empty_input():
    assert detect_column_types([]) == {}


def test_validate_column_mapping_reports_every_problem():
    problems = validate_column_mapping({"txn": "date", "memo": "memo"})

    assert any("unknown field 'memo'" in p for p in problems)
    assert "A column must be mapped to 'narration'." in problems
    assert not any("'date'" in p and "must be mapped" in p for p in problems)


def test_validate_column_mapping_empty():
    problems = validate_column_mapping({})

    assert len(problems) == 1
    assert problems[0].startswith("Column mapping is empty")


def test_skip_does_not_satisfy_required_targets():
    problems = validate_column_mapping({"date": "skip", "narration": "narration"})

    assert problems == ["A column must be mapped to 'date'."]


def test_null_target_is_treated_as_skip():
    mapping = {"date": "date", "narration": "narration", "value_dt": None, "closing_balance": ""}

    assert validate_column_mapping(mapping) == []
    assert validate_column_mapping({"date": None, "narration": "narration"}) == [
        "A column must be mapped to 'date'."
    ]

    outcome = transform_rows(HDFC_ROWS, mapping)

    assert len(outcome.transactions) == 2
    assert outcome.transactions[0].value_date is None
    assert outcome.transactions[0].closing_balance is None


def test_suggestions_to_mapping_first_column_wins_and_amount_is_skipped():
    mapping = suggestions_to_mapping(
        {"txn_date": "date", "post_date": "date", "details": "narration", "col_b": "amount"}
    )

    assert mapping == {
        "txn_date": "date",
        "post_date": "skip",
        "details": "narration",
        "col_b": "skip",
    }


def test_resolve_column_mapping_uses_suggestions_only_without_mapping():
    assert resolve_column_mapping(HDFC_ROWS) == HDFC_MAPPING

    with pytest.raises(MappingValidationError) as exc:
        resolve_column_mapping(HDFC_ROWS, {})
    assert exc.value.problems


def test_transform_rows_produces_canonical_transactions():
    outcome = transform_rows(HDFC_ROWS, HDFC_MAPPING)

    assert outcome.rejected == []
    first, second = outcome.transactions
    assert first.date == "2024-04-01"
    assert first.value_date == "2024-04-01"
    assert first.ref_no == "0000412345678901"
    assert first.withdrawal_amt == pytest.approx(1250.0)
    assert first.deposit_amt == 0
    assert first.closing_balance == pytest.approx(48750.0)
    assert first.tags == ()
    assert first.category == "Uncategorized"
    assert first.id is None
    assert second.deposit_amt == pytest.approx(50000.0)


def test_transform_rows_rejects_rows_missing_date_or_narration():
    rows = [
        {"date": "01/01/2024", "narration": "Tea"},
        {"date": "", "narration": "No date"},
        {"date": "garbage", "narration": "Bad date"},
        {"date": "02/01/2024", "narration": "   "},
        {"date": "", "narration": ""},
    ]

    outcome = transform_rows(rows, {"date": "date", "narration": "narration"})

    assert [t.narration for t in outcome.transactions] == ["Tea"]
    assert [(r.row, r.reason) for r in outcome.rejected] == [
        (1, "missing or unparsable date"),
        (2, "missing or unparsable date"),
        (3, "missing narration"),
        (4, "missing date and narration"),
    ]


def test_transform_rows_invalid_mapping_raises():
    with pytest.raises(MappingValidationError):
        transform_rows(HDFC_ROWS, {"narration": "narration"})


def test_row_lookup_is_case_insensitive_and_blank_ref_is_none():
    txn, reason = row_to_transaction(
        {"Date": "05-11-2024", "Narration": "ATM WDL", "Ref": "  ", "Balance": ""},
        {"date": "date", "narration": "narration", "ref": "ref_no", "balance": "closing_balance"},
    )

    assert reason is None
    assert txn is not None
    assert txn.date == "2024-11-05"
    assert txn.ref_no is None
    assert txn.closing_balance is None
