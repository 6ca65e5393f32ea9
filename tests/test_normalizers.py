from __future__ import annotations

import pytest

from statement_ledger.normalizers import normalize_amount, normalize_date


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("05-11-2024", "2024-11-05"),
        ("05/11/2024", "2024-11-05"),
        ("2024/11/05", "2024-11-05"),
        ("2024-11-05", "2024-11-05"),
        ("5/1/2024", "2024-01-05"),
        ("05/11/24", "2024-11-05"),
        ("01-02-30", "2030-02-01"),
        ("01-02-31", "1931-02-01"),
        ("05-Nov-2024", "2024-11-05"),
        ("  12/03/2023  ", "2023-03-12"),
    ],
)
def test_normalize_date_accepts_bank_formats(raw: str, expected: str) -> None:
    assert normalize_date(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "   ", "not a date", "31-02-2024", "2024-13-01"])
def test_normalize_date_returns_none_for_unusable_input(raw: str | None) -> None:
    assert normalize_date(raw) is None


@pytest.mark.parametrize("raw", ["05-11-2024", "2024/11/05", "05/11/24", "05-Nov-2024"])
def test_normalize_date_is_idempotent(raw: str) -> None:
    once = normalize_date(raw)
    assert once is not None
    assert normalize_date(once) == once


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("₹1,23,456.50", 123456.50),
        ("1,000", 1000.0),
        ("Rs. 250.75", 250.75),
        ("1,000/-", 1000.0),
        ("500.00-", 500.0),
        ("1,234.56 Cr.", 1234.56),
        ("1.2.3", 1.2),
        ("-42.10", -42.10),
        ("  99 ", 99.0),
        (1500, 1500.0),
        (12.5, 12.5),
    ],
)
def test_normalize_amount_parses_currency_strings(raw: object, expected: float) -> None:
    assert normalize_amount(raw) == pytest.approx(expected)


@pytest.mark.parametrize("raw", [None, "", "-", "abc", ".", "Cr.", True])
def test_normalize_amount_never_raises(raw: object) -> None:
    assert normalize_amount(raw) == 0
