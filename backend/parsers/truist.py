"""Parser for Truist (formerly SunTrust / BB&T) checking statements.

Loan payments show up in two places:

    Checks
    DATE   CHECK #  PAYEE                 AMOUNT($)
    03/05  1234     NAVIENT               250.00

    Other withdrawals, debits and service charges
    DATE   DESCRIPTION                    AMOUNT($)
    03/15  MOHELA STUDENT LOAN PMT        312.45
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
from backend.parsers.rules import DATE, MONEY_CENTS, SHORT_DATE, RowRule, Section, first_match
from backend.parsers.validation import ParseStats, ParsingError, log_parse_result

STATEMENT_DATES = [
    re.compile(rf"Statement\s+Period[:\s]+{DATE}\s*(?:-|to|through)\s*({DATE})", re.IGNORECASE),
    re.compile(rf"Statement\s+(?:Date|Period)[:\s]+.*?({DATE})", re.IGNORECASE),
]

CHECKS = Section(
    name="checks",
    start=re.compile(r"^[ \t]*Checks\b(?!\s+paid)", re.IGNORECASE | re.MULTILINE),
    end=re.compile(
        r"^[ \t]*(?:Total\s+checks|Other\s+withdrawals|Deposits|Daily\s+balance)",
        re.IGNORECASE | re.MULTILINE,
    ),
)

OTHER_WITHDRAWALS = Section(
    name="other_withdrawals",
    start=re.compile(
        r"^[ \t]*Other\s+withdrawals,?\s+debits\s+and\s+service\s+charges", re.IGNORECASE | re.MULTILINE
    ),
    end=re.compile(
        r"^[ \t]*(?:Total\s+other\s+withdrawals|Deposits|Daily\s+balance|Checks\b)",
        re.IGNORECASE | re.MULTILINE,
    ),
)

CHECK_RULES = [
    # Date | Check # | Payee | Amount
    RowRule(
        "check_date_first",
        re.compile(
            rf"^[ \t]*(?P<date>{SHORT_DATE})[ \t]+(?P<check>\d{{2,}})\*?[ \t]+"
            rf"(?:(?P<payee>.+?)[ \t]+)?(?P<amount>{MONEY_CENTS})[ \t]*$",
            re.MULTILINE,
        ),
        build_check_row,
    ),
    # Check # | Date | Amount, possibly several per line
    RowRule(
        "check_number_first",
        re.compile(
            rf"(?<![\d/.])(?P<check>\d{{2,}})\*?[ \t]+(?P<date>{SHORT_DATE})[ \t]+(?P<amount>{MONEY_CENTS})"
        ),
        build_check_row,
    ),
]

WITHDRAWAL_RULES = [
    # Date | Description | Amount
    RowRule(
        "withdrawal_row",
        re.compile(
            rf"^[ \t]*(?P<date>{SHORT_DATE})[ \t]+(?P<description>.+?)[ \t]+(?P<amount>{MONEY_CENTS})[ \t]*$",
            re.MULTILINE,
        ),
        build_withdrawal_row,
    ),
]


class TruistParser(StatementParser):
    parser_type = ParserType.TRUIST

    def parse(self, text: str) -> BankStatementParseResult:
        stats = ParseStats()

        statement_date = find_statement_date(STATEMENT_DATES, text)
        closing = statement_closing_date(statement_date)

        checks = CHECKS.slice_all(text)
        withdrawals = OTHER_WITHDRAWALS.slice_all(text)
        if checks is None:
            stats.errors.append("No Checks section")
        if withdrawals is None:
            stats.errors.append("No Other withdrawals section")
        if checks is None and withdrawals is None:
            log_parse_result(stats, "Truist")
            raise ParsingError("Truist statement has no Checks or Other withdrawals section")

        transactions = []
        if checks is not None:
            _, rows = first_match(CHECK_RULES, checks, closing, stats)
            transactions.extend(rows)
        if withdrawals is not None:
            _, rows = first_match(WITHDRAWAL_RULES, withdrawals, closing, stats)
            transactions.extend(rows)

        transactions = filter_loan_payments(transactions, stats)
        stats.rows_parsed = len(transactions)
        log_parse_result(stats, "Truist")

        return BankStatementParseResult(
            statement_date=statement_date,
            transactions=transactions,
            account_number=find_account_number(text),
        )
