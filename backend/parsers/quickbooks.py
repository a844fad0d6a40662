"""Parser for QuickBooks transaction CSV exports."""

import csv
from io import StringIO

from backend.models import ParseResult, ParserType, TransactionCandidate
from backend.parsers.base import StatementParser
from backend.parsers.validation import (
    ParseStats,
    ParsingError,
    is_loan_related,
    log_parse_result,
    normalize_date,
    normalize_description,
    parse_amount_safe,
)

# Standard field -> accepted QuickBooks header names, in order of preference
HEADER_ALIASES = {
    "date": ["date", "transaction date"],
    "type": ["type", "transaction type"],
    "check_number": ["ref no.", "ref no", "check number", "num", "no."],
    "contact": ["contact", "vendor", "payee", "name"],
    "memo": ["memo", "description", "memo/description"],
    "amount": ["total amount", "amount", "total"],
}


class QuickBooksParser(StatementParser):
    parser_type = ParserType.QUICKBOOKS

    def parse(self, text: str) -> ParseResult:
        """
        Parse a QuickBooks "Transaction List" CSV export.

        Exports may start with report title lines before the header row:

        Acme LLC
        Transaction List by Date
        Date,Transaction type,Ref no.,Contact,Memo,Total amount
        3/1/24,Check,1042,Navient,Student loan,(150.00)

        Only rows whose contact or memo mentions a loan are kept. Amounts use
        the accounting convention, so "(150.00)" is -150.00.

        Raises:
            ParsingError: If no header row with a Date column is found
        """
        stats = ParseStats()
        rows = list(csv.reader(StringIO(text.lstrip("\ufeff"))))

        header_index = _find_header_row(rows)
        if header_index is None:
            stats.errors.append("Missing header row with a Date column")
            log_parse_result(stats, "QuickBooks")
            raise ParsingError("QuickBooks export has no header row with a Date column")

        fieldnames = [cell.strip() for cell in rows[header_index]]
        header_map = _build_header_map(fieldnames)

        transactions: list[TransactionCandidate] = []
        for values in rows[header_index + 1 :]:
            if not any(cell.strip() for cell in values):
                continue

            stats.total_rows_processed += 1
            row = dict(zip(fieldnames, values))

            contact = _get_field(row, header_map, "contact")
            memo = _get_field(row, header_map, "memo")
            if not is_loan_related(contact, memo):
                stats.rows_filtered += 1
                continue

            date_str = _get_field(row, header_map, "date")
            txn_date = normalize_date(date_str)
            if not txn_date:
                stats.rows_skipped += 1
                stats.warnings.append(f"Row {stats.total_rows_processed}: Invalid date '{date_str}'")
                continue

            amount_str = _get_field(row, header_map, "amount")
            amount, amount_valid = parse_amount_safe(amount_str)
            if not amount_valid:
                stats.rows_skipped += 1
                stats.warnings.append(f"Row {stats.total_rows_processed}: Invalid amount '{amount_str}'")
                continue

            check_number = _get_field(row, header_map, "check_number")
            txn_type = _get_field(row, header_map, "type")

            transactions.append(
                TransactionCandidate(
                    date=txn_date,
                    description=_build_description(txn_type, contact, check_number),
                    check_number=check_number or None,
                    amount=amount,
                    comment=normalize_description(memo) or None,
                )
            )

        stats.rows_parsed = len(transactions)
        log_parse_result(stats, "QuickBooks")

        return ParseResult(transactions=transactions)


def _find_header_row(rows: list[list[str]]) -> int | None:
    """Index of the first row that has a Date column, skipping report title lines."""
    date_headers = set(HEADER_ALIASES["date"])
    for index, row in enumerate(rows):
        if any(cell.strip().lower() in date_headers for cell in row):
            return index
    return None


def _build_header_map(fieldnames: list[str]) -> dict[str, str]:
    """Build a mapping from standard field names to actual CSV headers."""
    normalized = {field.lower().strip(): field for field in fieldnames if field.strip()}

    header_map: dict[str, str] = {}
    for field, aliases in HEADER_ALIASES.items():
        for alias in aliases:
            if alias in normalized:
                header_map[field] = normalized[alias]
                break

    return header_map


def _get_field(row: dict, header_map: dict[str, str], field: str) -> str:
    """Get a field value using the header map."""
    if field in header_map:
        return (row.get(header_map[field]) or "").strip()
    return ""


def _build_description(txn_type: str, contact: str, check_number: str) -> str:
    """Describe a row as e.g. "Check to Navient (Check #1042)"."""
    parts = []
    if txn_type:
        parts.append(txn_type)
    if contact:
        parts.append(f"to {contact}")
    if check_number:
        parts.append(f"(Check #{check_number})")

    return " ".join(parts) or "QuickBooks transaction"
