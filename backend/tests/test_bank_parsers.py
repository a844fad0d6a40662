"""Tests for the Truist and KeyBank checking statement parsers."""

import logging
from datetime import date

import pytest

from backend.parsers import keybank, truist
from backend.parsers.bank import BankStatementParseResult
from backend.parsers.keybank import KeyBankParser
from backend.parsers.rules import first_match
from backend.parsers.truist import TruistParser
from backend.parsers.validation import ParsingError

TRUIST_TEXT = """Truist Bank
Statement Period 02/16/2024 - 03/15/2024
Account Number: 1234-5678-9012

Checks
DATE   CHECK #  PAYEE                 AMOUNT($)
03/05  1234     NAVIENT               250.00
03/08  1235     ACME LANDSCAPING      80.00
Total checks                          330.00

Other withdrawals, debits and service charges
DATE   DESCRIPTION                    AMOUNT($)
03/15  MOHELA STUDENT LOAN PMT        312.45
03/18  NETFLIX.COM                    15.49
Total other withdrawals, debits and service charges  327.94
"""

KEYBANK_TEXT = """KeyBank
Statement Period 02/16/2024 - 03/15/2024
Account Number: XXXXXX4321

Paper Checks paid
Check   Date   Payee         Amount
1234    3-05   NAVIENT       250.00
1235    3-08   CITY WATER    45.00
Total checks paid            295.00

Withdrawals
Date   Description                          Amount
3-15   MOHELA ACH PMT 0000123               312.45
3-18   VERIZON WIRELESS                     89.99
Total withdrawals                           402.44
"""


class TestTruistParser:
    """Test Truist statement parsing."""

    def test_keeps_only_loan_payments(self):
        """Checks and withdrawals to other payees are filtered out."""
        result = TruistParser().parse(TRUIST_TEXT)

        assert isinstance(result, BankStatementParseResult)
        assert [t.description for t in result.transactions] == ["NAVIENT", "MOHELA STUDENT LOAN PMT"]

    def test_check_row(self):
        """Should read date, check number, payee and amount."""
        check = TruistParser().parse(TRUIST_TEXT).transactions[0]

        assert check.date == "2024-03-05"
        assert check.check_number == "1234"
        assert check.amount == 250.0

    def test_withdrawal_row(self):
        """Withdrawals take the statement's year and have no check number."""
        withdrawal = TruistParser().parse(TRUIST_TEXT).transactions[1]

        assert withdrawal.date == "2024-03-15"
        assert withdrawal.check_number is None
        assert withdrawal.amount == 312.45

    def test_statement_metadata(self):
        """Should pick the period end date and the account number."""
        result = TruistParser().parse(TRUIST_TEXT)

        assert result.statement_date == "2024-03-15"
        assert result.account_number == "1234-5678-9012"

    def test_check_number_in_withdrawal_description(self):
        """A check number printed in a withdrawal description is extracted."""
        text = (
            "Other withdrawals, debits and service charges\n"
            "03/20/2024  NAVIENT CHECK 1050 CLEARED   125.00\n"
        )
        result = TruistParser().parse(text)
        assert result.transactions[0].check_number == "1050"

    def test_no_loan_rows_is_empty_result(self):
        """Sections with no loan payments yield an empty, valid result."""
        text = "Checks\n03/08  1235  ACME LANDSCAPING  80.00\n"
        assert TruistParser().parse(text).transactions == []

    def test_raises_without_sections(self):
        """A statement with neither section cannot be parsed."""
        with pytest.raises(ParsingError):
            TruistParser().parse("Truist Bank\nDeposits\n03/01 PAYROLL 2,000.00")

    def test_missing_section_is_logged(self, caplog):
        """A statement with only one section parses it and logs the missing one."""
        with caplog.at_level(logging.WARNING, logger="loanledger.parsers"):
            result = TruistParser().parse("Checks\n03/05  1234  NAVIENT  250.00\n")

        assert len(result.transactions) == 1
        assert "Truist: No Other withdrawals section" in caplog.messages

    def test_year_end_statement_dates(self):
        """December rows on a statement closing in January belong to the previous year."""
        text = """Truist Bank
Statement Period: 12/15/2024 - 01/14/2025

Checks
12/28  1240  NAVIENT  250.00

Other withdrawals, debits and service charges
12/20  NAVIENT STUDENT LOAN PMT  250.00
01/05  MOHELA LOAN PMT  312.45
"""
        result = TruistParser().parse(text)

        assert result.statement_date == "2025-01-14"
        assert [t.date for t in result.transactions] == ["2024-12-28", "2024-12-20", "2025-01-05"]

    def test_check_number_first_fallback(self):
        """Number-first check columns are read when the date-first layout finds nothing."""
        text = "1234 03/05 250.00    1236* 03/19 275.50\n"
        name, rows = first_match(truist.CHECK_RULES, text, closing_date=date(2024, 3, 31))

        assert name == "check_number_first"
        assert [(r.check_number, r.date, r.amount) for r in rows] == [
            ("1234", "2024-03-05", 250.0),
            ("1236", "2024-03-19", 275.5),
        ]
        assert rows[0].description == "Check #1234"


class TestKeyBankParser:
    """Test KeyBank statement parsing."""

    def test_keeps_only_loan_payments(self):
        """Checks and withdrawals to other payees are filtered out."""
        result = KeyBankParser().parse(KEYBANK_TEXT)
        assert [t.description for t in result.transactions] == ["NAVIENT", "MOHELA ACH PMT 0000123"]

    def test_dash_dates_use_statement_year(self):
        """M-D dates are completed with the statement's year."""
        result = KeyBankParser().parse(KEYBANK_TEXT)

        assert result.statement_date == "2024-03-15"
        assert [t.date for t in result.transactions] == ["2024-03-05", "2024-03-15"]

    def test_year_end_statement_dates(self):
        """M-D rows after the closing month are dated in the previous year."""
        text = """KeyBank
Statement Period 12/15/2024 - 01/14/2025

Checks paid
1240    12-28   NAVIENT   250.00

Withdrawals
12-20   NAVIENT ACH PMT 0000123   250.00
1-05    MOHELA ACH PMT 0000456    312.45
"""
        result = KeyBankParser().parse(text)

        assert result.statement_date == "2025-01-14"
        assert [t.date for t in result.transactions] == ["2024-12-28", "2024-12-20", "2025-01-05"]

    def test_amounts_and_check_numbers(self):
        """Should read amounts as positive payments."""
        check, withdrawal = KeyBankParser().parse(KEYBANK_TEXT).transactions

        assert check.check_number == "1234"
        assert check.amount == 250.0
        assert withdrawal.check_number is None
        assert withdrawal.amount == 312.45

    def test_account_number(self):
        """Masked account numbers are kept as printed."""
        assert KeyBankParser().parse(KEYBANK_TEXT).account_number == "XXXXXX4321"

    def test_subtractions_heading(self):
        """Older statements label debits 'Subtractions'."""
        text = "Statement Date: 01/31/2023\nSubtractions\n1-15  NAVIENT PAYMENT  200.00\n"
        result = KeyBankParser().parse(text)

        assert result.statement_date == "2023-01-31"
        assert result.transactions[0].date == "2023-01-15"

    def test_raises_without_sections(self):
        """A statement with neither section cannot be parsed."""
        with pytest.raises(ParsingError):
            KeyBankParser().parse("KeyBank\nDeposits and other additions\n3-01 PAYROLL 2,000.00")

    def test_check_columns_fallback(self):
        """Several number-first checks on one line are all read."""
        text = "1234    3-05   250.00     1236*   3-19   250.00\n"
        name, rows = first_match(keybank.CHECK_RULES, text, closing_date=date(2024, 3, 31))

        assert name == "check_columns"
        assert [r.check_number for r in rows] == ["1234", "1236"]
        assert [r.date for r in rows] == ["2024-03-05", "2024-03-19"]

    def test_date_first_fallback(self):
        """Date-first check rows are the last resort."""
        text = "3-05  1234  250.00\n"
        name, rows = first_match(keybank.CHECK_RULES, text, closing_date=date(2024, 3, 31))

        assert name == "check_date_first"
        assert rows[0].check_number == "1234"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
