"""Parser for MOHELA loan statements.

MOHELA statements are billing summaries rather than payment histories, so this
parser only reads the account summary fields:

    Statement Date: 3/15/2024
    Unpaid Principal: $12,345.67
    Payments Since Last Bill: $250.00
    Past Due Amount: $0.00
    Current Amount Due: $250.00
    Unpaid Fees: $0.00
"""

import re

from backend.models import ParseResult, ParserType
from backend.parsers.base import StatementParser
from backend.parsers.rules import DATE, MONEY, LabeledField, extract_fields
from backend.parsers.validation import ParseStats, log_parse_result, normalize_date, parse_amount_safe


def _money(value: str) -> float | None:
    amount, ok = parse_amount_safe(value)
    return amount if ok else None


SUMMARY_FIELDS = [
    LabeledField(
        "statement_date",
        re.compile(rf"Statement\s+Date[:\s]+({DATE})", re.IGNORECASE),
        normalize_date,
    ),
    LabeledField(
        "unpaid_principal",
        re.compile(rf"Unpaid\s+Principal[:\s]+({MONEY})", re.IGNORECASE),
        _money,
    ),
    LabeledField(
        "payments_since_last_bill",
        re.compile(rf"Payments?\s+Since\s+Last\s+Bill[:\s]+({MONEY})", re.IGNORECASE),
        _money,
    ),
    LabeledField(
        "past_due",
        re.compile(rf"Past\s+Due\s+Amount[:\s]+({MONEY})", re.IGNORECASE),
        _money,
    ),
    LabeledField(
        "current_amount_due",
        re.compile(rf"Current\s+Amount\s+Due[:\s]+({MONEY})", re.IGNORECASE),
        _money,
    ),
    LabeledField(
        "unpaid_fees",
        re.compile(rf"Unpaid\s+Fees[:\s]+({MONEY})", re.IGNORECASE),
        _money,
    ),
    # Often labeled "Total Balance" or just "Balance"
    LabeledField(
        "current_balance",
        re.compile(rf"(?:Total\s+)?Balance[:\s]+({MONEY})", re.IGNORECASE),
        _money,
    ),
]


class MohelaParseResult(ParseResult):
    """MOHELA account summary. Transactions are always empty."""

    unpaid_principal: float | None = None
    payments_since_last_bill: float | None = None
    past_due: float | None = None
    current_amount_due: float | None = None
    unpaid_fees: float | None = None
    current_balance: float | None = None


class MohelaParser(StatementParser):
    parser_type = ParserType.MOHELA

    def parse(self, text: str) -> MohelaParseResult:
        stats = ParseStats()
        values = extract_fields(SUMMARY_FIELDS, text)

        missing = [name for name, value in values.items() if value is None]
        if missing:
            stats.warnings.append(f"Summary fields not found: {', '.join(missing)}")

        log_parse_result(stats, "MOHELA")
        return MohelaParseResult(**values)
