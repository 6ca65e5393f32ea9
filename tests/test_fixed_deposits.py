import textwrap
from datetime import date

import pytest

from statement_ledger.fixed_deposits import extract_fixed_deposits
from statement_ledger.models import FixedDepositRecord


def _dedent(s: str) -> str:
    return textwrap.dedent(s).lstrip("\n").rstrip()


SECTION_TEXT = _dedent(
    """
    Account Summary
    FIXED DEPOSIT DETAILS
    FD No: 50300012345678   Principal: Rs. 1,00,000.00   Rate of Interest: 7.10%
    Maturity Date: 15/06/2025   Maturity Amount: Rs. 1,07,250.00
    """
)

FALLBACK_TEXT = _dedent(
    """
    Deposit No 123456789012 opened 01/01/2024 amount INR 50,000
    at 6.5% p.a. maturing on 01/01/2025 for INR 53,250.
    Charges INR 500   Page 1 of 2
    """
)


def test_section_path_reads_all_fields():
    records = extract_fixed_deposits(SECTION_TEXT, today=date(2025, 1, 1))

    assert records == [
        FixedDepositRecord(
            fd_number="50300012345678",
            principal_amt=100000.0,
            interest_rate=7.1,
            maturity_date="2025-06-15",
            maturity_amt=107250.0,
            status="Active",
        )
    ]


def test_status_inferred_from_maturity_date():
    (record,) = extract_fixed_deposits(SECTION_TEXT, today=date(2026, 1, 1))

    assert record.status == "Closed"


def test_explicit_status_wins_over_inference():
    text = SECTION_TEXT + "\nStatus: Matured"

    (record,) = extract_fixed_deposits(text, today=date(2025, 1, 1))

    assert record.status == "Matured"


def test_fallback_path_uses_long_numbers_and_ignores_small_amounts():
    records = extract_fixed_deposits(FALLBACK_TEXT, today=date(2024, 6, 1))

    assert len(records) == 1
    fd = records[0]
    assert fd.fd_number == "123456789012"
    assert fd.principal_amt == pytest.approx(50000.0)
    assert fd.maturity_amt == pytest.approx(53250.0)
    assert fd.interest_rate == pytest.approx(6.5)
    assert fd.maturity_date == "2025-01-01"
    assert fd.status == "Active"


def test_one_record_per_section_and_fd_numbers_are_unique():
    padding = " x" * 300
    text = (
        f"FD DETAILS FD 111122223333 Rs 10,000{padding} "
        f"FD DETAILS FD 444455556666 Rs 20,000{padding} "
        f"FD DETAILS FD 111122223333 Rs 99,999"
    )

    records = extract_fixed_deposits(text, today=date(2024, 1, 1))

    assert [r.fd_number for r in records] == ["111122223333", "444455556666"]
    assert records[0].principal_amt == pytest.approx(10000.0)
    assert records[0].maturity_amt is None
    assert records[1].status == "Active"


def test_section_without_fd_number_is_dropped():
    assert extract_fixed_deposits("TERM DEPOSIT summary: none held", today=date(2024, 1, 1)) == []


@pytest.mark.parametrize("text", ["", "   ", "lorem ipsum 1234 dolor", "%%%\x00\x01"])
def test_unrecognized_text_yields_no_records(text: str):
    assert extract_fixed_deposits(text) == []
