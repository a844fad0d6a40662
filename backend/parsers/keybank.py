"""Parser for KeyBank checking statements.

KeyBank prints paid checks number-first, usually two or three per line, and
lists electronic debits under "Withdrawals" (older layouts: "Subtractions"):

    Checks paid
    Check   Date   Amount     Check   Date   Amount
    1234    3-05   250.00     1236*   3-19   250.00

    Withdrawals
    Date   Description                          Amount
    3-15   NAVIENT ACH PMT 0000123              312.45
"""

import re

from backend.models import ParserType
from backend.parsers.bank import (
    BankStatementParseResult,
    build_check_row,
    build_withdrawal_row,
    filter_loan_payments,
    find_account_number,
    find_statement_date,
    statement_closing_date,
)
from backend.parsers.base import StatementParser
from backend.parsers.rules import MONEY_CENTS, RowRule, Section, first_match
from backend.parsers.validation import ParseStats, ParsingError, log_parse_result

# KeyBank uses M-D as often as M/D
KEY_DATE = r"\d{1,2}[/-]\d{1,2}(?:[/-]\d{2,4})?"
FULL_DATE = r"\d{1,2}[/-]\d{1,2}[/-]\d{2,4}"

STATEMENT_DATES = [
    re.compile(rf"Statement\s+Period[:\s]+{FULL_DATE}\s*(?:-|to|through)\s*({FULL_DATE})", re.IGNORECASE),
    re.compile(rf"Statement\s+Date[:\s]+({FULL_DATE})", re.IGNORECASE),
    re.compile(rf"Ending\s+balance\s+on\s+({FULL_DATE})", re.IGNORECASE),
]

CHECKS_PAID = Section(
    name="checks_paid",
    start=re.compile(r"^[ \t]*(?:Paper\s+)?Checks\s+paid\b", re.IGNORECASE | re.MULTILINE),
    end=re.compile(
        r"^[ \t]*(?:Total\s+checks|Withdrawals|Subtractions|Other\s+debits|Deposits|Additions|Fees\s+and)",
        re.IGNORECASE | re.MULTILINE,
    ),
)

WITHDRAWALS = Section(
    name="withdrawals",
    start=re.compile(
        r"^[ \t]*(?:Electronic\s+)?(?:Withdrawals|Subtractions|Other\s+debits)\b",
        re.IGNORECASE | re.MULTILINE,
    ),
    end=re.compile(
        r"^[ \t]*(?:Total\s+(?:withdrawals|subtractions|other\s+debits)|(?:Paper\s+)?Checks\s+paid"
        r"|Deposits|Additions|Fees\s+and|Daily\s+balance)",
        re.IGNORECASE | re.MULTILINE,
    ),
)

CHECK_RULES = [
    # Check # | Date | Payee | Amount, one check per line with payee
    RowRule(
        "check_with_payee",
        re.compile(
            rf"^[ \t]*(?P<check>\d{{2,}})\*?[ \t]+(?P<date>{KEY_DATE})[ \t]+"
            rf"(?P<payee>[A-Za-z].*?)[ \t]+(?P<amount>{MONEY_CENTS})[ \t]*$",
            re.MULTILINE,
        ),
        build_check_row,
    ),
    # Check # | Date | Amount, columns repeated across the line
    RowRule(
        "check_columns",
        re.compile(
            rf"(?<![\d/.-])(?P<check>\d{{2,}})\*?[ \t]+(?P<date>{KEY_DATE})[ \t]+(?P<amount>{MONEY_CENTS})"
        ),
        build_check_row,
    ),
    # Date | Check # | Amount
    RowRule(
        "check_date_first",
        re.compile(
            rf"(?<![\d/.-])(?P<date>{KEY_DATE})[ \t]+(?P<check>\d{{2,}})\*?[ \t]+(?P<amount>{MONEY_CENTS})"
        ),
        build_check_row,
    ),
]

WITHDRAWAL_RULES = [
    # Date | Description | Amount
    RowRule(
        "withdrawal_row",
        re.compile(
            rf"^[ \t]*(?P<date>{KEY_DATE})[ \t]+(?P<description>.+?)[ \t]+(?P<amount>{MONEY_CENTS})[ \t]*$",
            re.MULTILINE,
        ),
        build_withdrawal_row,
    ),
]


class KeyBankParser(StatementParser):
    parser_type = ParserType.KEYBANK

    def parse(self, text: str) -> BankStatementParseResult:
        stats = ParseStats()

        statement_date = find_statement_date(STATEMENT_DATES, text)
        closing = statement_closing_date(statement_date)

        checks = CHECKS_PAID.slice_all(text)
        withdrawals = WITHDRAWALS.slice_all(text)
        if checks is None:
            stats.errors.append("No Checks paid section")
        if withdrawals is None:
            stats.errors.append("No Withdrawals section")
        if checks is None and withdrawals is None:
            log_parse_result(stats, "KeyBank")
            raise ParsingError("KeyBank statement has no Checks paid or Withdrawals section")

        transactions = []
        if checks is not None:
            _, rows = first_match(CHECK_RULES, checks, closing, stats)
            transactions.extend(rows)
        if withdrawals is not None:
            _, rows = first_match(WITHDRAWAL_RULES, withdrawals, closing, stats)
            transactions.extend(rows)

        transactions = filter_loan_payments(transactions, stats)
        stats.rows_parsed = len(transactions)
        log_parse_result(stats, "KeyBank")

        return BankStatementParseResult(
            statement_date=statement_date,
            transactions=transactions,
            account_number=find_account_number(text),
        )
