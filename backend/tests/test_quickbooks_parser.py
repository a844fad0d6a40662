"""Tests for the QuickBooks CSV parser."""

import pytest

from backend.parsers.quickbooks import (
    QuickBooksParser,
    _build_description,
    _build_header_map,
    _find_header_row,
)
from backend.parsers.validation import ParsingError


class TestBuildHeaderMap:
    """Test header mapping for QuickBooks export variations."""

    def test_transaction_list_headers(self):
        """Should map the default Transaction List columns."""
        header_map = _build_header_map(["Date", "Transaction type", "Ref no.", "Contact", "Memo", "Total amount"])

        assert header_map["date"] == "Date"
        assert header_map["type"] == "Transaction type"
        assert header_map["check_number"] == "Ref no."
        assert header_map["contact"] == "Contact"
        assert header_map["memo"] == "Memo"
        assert header_map["amount"] == "Total amount"

    def test_alternate_headers(self):
        """Should accept the older Vendor / Num / Amount naming."""
        header_map = _build_header_map(["Transaction Date", "Num", "Vendor", "Description", "Amount"])

        assert header_map["date"] == "Transaction Date"
        assert header_map["check_number"] == "Num"
        assert header_map["contact"] == "Vendor"
        assert header_map["memo"] == "Description"
        assert header_map["amount"] == "Amount"

    def test_missing_columns_are_absent(self):
        """Unknown columns are not mapped."""
        header_map = _build_header_map(["Date", "Amount"])
        assert "contact" not in header_map


class TestFindHeaderRow:
    """Test header row detection."""

    def test_skips_report_title_lines(self):
        """Report titles above the header are ignored."""
        rows = [["Acme LLC"], ["Transaction List by Date"], ["Date", "Contact", "Amount"]]
        assert _find_header_row(rows) == 2

    def test_returns_none_without_date_column(self):
        """Should return None when no row has a Date column."""
        assert _find_header_row([["Name", "Amount"], ["Navient", "1.00"]]) is None


class TestBuildDescription:
    """Test description building."""

    def test_full_description(self):
        assert _build_description("Check", "Navient", "1042") == "Check to Navient (Check #1042)"

    def test_empty_fields(self):
        assert _build_description("", "", "") == "QuickBooks transaction"


class TestQuickBooksParser:
    """Test end-to-end QuickBooks parsing."""

    def test_keeps_loan_rows(self, quickbooks_csv):
        """Only rows paying a loan servicer are kept."""
        result = QuickBooksParser().parse(quickbooks_csv)
        assert [t.check_number for t in result.transactions] == ["1042", "1043"]

    def test_accounting_negative_amount(self, quickbooks_csv):
        """Parenthesized totals are negative."""
        navient, mohela = QuickBooksParser().parse(quickbooks_csv).transactions

        assert navient.date == "2024-03-01"
        assert navient.amount == -150.0
        assert mohela.amount == -1200.0

    def test_description_and_memo(self, quickbooks_csv):
        """The memo is kept as the comment."""
        navient, mohela = QuickBooksParser().parse(quickbooks_csv).transactions

        assert navient.description == "Check to Navient (Check #1042)"
        assert navient.comment == "Student loan payment"
        assert mohela.comment is None

    def test_loan_keyword_in_memo(self):
        """A loan keyword in the memo is enough to keep the row."""
        csv_text = "Date,Contact,Memo,Amount\n3/1/24,Dept of Education,Consolidation loan,-99.00\n"
        result = QuickBooksParser().parse(csv_text)

        assert len(result.transactions) == 1
        assert result.transactions[0].amount == -99.0

    def test_handles_bom(self):
        """A UTF-8 byte order mark before the header is ignored."""
        csv_text = "\ufeffDate,Contact,Amount\n3/1/24,Navient,(150.00)\n"
        assert len(QuickBooksParser().parse(csv_text).transactions) == 1

    def test_skips_invalid_rows(self):
        """Rows with a bad date or amount are skipped."""
        csv_text = (
            "Date,Contact,Amount\n"
            "not a date,Navient,(150.00)\n"
            "3/1/24,Navient,abc\n"
            "3/2/24,Navient,(150.00)\n"
        )
        result = QuickBooksParser().parse(csv_text)
        assert [t.date for t in result.transactions] == ["2024-03-02"]

    def test_no_loan_rows_is_valid(self):
        """An export without loan payments is an empty result."""
        csv_text = "Date,Contact,Amount\n3/1/24,Staples,(45.10)\n"
        assert QuickBooksParser().parse(csv_text).transactions == []

    def test_raises_without_header(self):
        """A CSV without a Date column cannot be parsed."""
        with pytest.raises(ParsingError, match="header"):
            QuickBooksParser().parse("Name,Amount\nNavient,(150.00)\n")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
