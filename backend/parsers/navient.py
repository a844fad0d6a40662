"""Parser for Navient loan statements.

Navient statements carry a payment history table:

    Payment History
    Date        Amount   Principal  Interest  Cap. Interest  Late Fees  Balance     Comments
    03/01/2024  $250.00  $180.00    $70.00    $0.00          $0.00      $15,000.00  Payment received

Some layouts drop the split columns and only print date, amount, a
description and the running balance; that layout is the fallback rule.
"""

import re
from datetime import date

from backend.models import ParseResult, ParserType, TransactionCandidate
from backend.parsers.base import StatementParser
from backend.parsers.rules import DATE, MONEY, RowRule, Section, first_match
from backend.parsers.validation import (
    ParseStats,
    ParsingError,
    log_parse_result,
    logger,
    normalize_date,
    normalize_description,
    parse_amount,
)

STATEMENT_DATE = re.compile(rf"Statement\s+Date[:\s]+({DATE})", re.IGNORECASE)

PAYMENT_HISTORY = Section(
    name="payment_history",
    start=re.compile(r"Payment\s+History:?", re.IGNORECASE),
    end=re.compile(
        r"\n[ \t]*\n"
        r"|\n[ \t]*(?:Account\s+Summary|Loan\s+Details|Important\s+(?:Information|Messages?)"
        r"|Repayment\s+Plan|Questions\?)",
        re.IGNORECASE,
    ),
)


def _build_detailed_row(match: re.Match, closing_date: date | None) -> TransactionCandidate | None:
    txn_date = normalize_date(match.group(1), closing_date=closing_date)
    if not txn_date:
        return None

    comment = normalize_description(match.group(8))
    return TransactionCandidate(
        date=txn_date,
        description=comment,
        amount=parse_amount(match.group(2)),
        principal=parse_amount(match.group(3)),
        interest=parse_amount(match.group(4)),
        capitalized_interest=parse_amount(match.group(5)),
        late_fees=parse_amount(match.group(6)),
        balance=parse_amount(match.group(7)),
        comment=comment or None,
    )


def _build_simple_row(match: re.Match, closing_date: date | None) -> TransactionCandidate | None:
    txn_date = normalize_date(match.group(1), closing_date=closing_date)
    if not txn_date:
        return None

    return TransactionCandidate(
        date=txn_date,
        amount=parse_amount(match.group(2)),
        description=normalize_description(match.group(3)),
        balance=parse_amount(match.group(4)),
    )


ROW_RULES = [
    # Date | Amount | Principal | Interest | Cap Interest | Late Fees | Balance | Comments
    RowRule(
        "detailed_history_row",
        re.compile(
            rf"^[ \t]*({DATE})[ \t]+({MONEY})[ \t]+({MONEY})[ \t]+({MONEY})"
            rf"[ \t]+({MONEY})[ \t]+({MONEY})[ \t]+({MONEY})[ \t]*(.*?)[ \t]*$",
            re.MULTILINE,
        ),
        _build_detailed_row,
    ),
    # Date | Amount | Description | Balance
    RowRule(
        "simple_history_row",
        re.compile(rf"^[ \t]*({DATE})[ \t]+({MONEY})[ \t]+(.+?)[ \t]+({MONEY})[ \t]*$", re.MULTILINE),
        _build_simple_row,
    ),
]


class NavientParser(StatementParser):
    parser_type = ParserType.NAVIENT

    def parse(self, text: str) -> ParseResult:
        stats = ParseStats()

        date_match = STATEMENT_DATE.search(text)
        statement_date = normalize_date(date_match.group(1)) if date_match else None

        history = PAYMENT_HISTORY.slice(text)
        if history is None:
            logger.debug("Navient: no Payment History section, scanning full text")
            history = text

        _, transactions = first_match(ROW_RULES, history, stats=stats)

        # A section cut short by a page break may hide the rows; retry on the full text
        if not transactions and history is not text:
            _, transactions = first_match(ROW_RULES, text, stats=stats)

        stats.rows_parsed = len(transactions)
        if not transactions:
            stats.errors.append("No payment history rows matched any rule")
        log_parse_result(stats, "Navient")

        if not transactions:
            raise ParsingError("No payment history rows found in Navient statement")

        return ParseResult(statement_date=statement_date, transactions=transactions)
