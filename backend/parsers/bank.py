"""Helpers shared by the bank statement parsers (Truist, KeyBank).

Bank statements list every debit on the account; only rows paying a student
loan servicer are kept.
"""

import re
from datetime import date
from collections.abc import Sequence

from backend.models import ParseResult, TransactionCandidate
from backend.parsers.validation import (
    ParseStats,
    is_loan_related,
    normalize_date,
    normalize_description,
    parse_amount,
)

CHECK_IN_DESCRIPTION = re.compile(r"(?:Check|Ck|#)\s*(\d+)", re.IGNORECASE)
ACCOUNT_NUMBER = re.compile(r"Account\s+(?:Number|No\.?|#)[:\s]+([\dXx*-]*\d)", re.IGNORECASE)


class BankStatementParseResult(ParseResult):
    """Loan payments found on a bank statement."""

    account_number: str | None = None


def build_check_row(match: re.Match, closing_date: date | None) -> TransactionCandidate | None:
    """Build a check row from a match with ``date``, ``check``, ``amount`` and optional ``payee`` groups."""
    groups = match.groupdict()
    txn_date = normalize_date(groups["date"], closing_date=closing_date)
    if not txn_date:
        return None

    check_number = groups["check"]
    payee = normalize_description(groups.get("payee"))
    return TransactionCandidate(
        date=txn_date,
        check_number=check_number,
        description=payee or f"Check #{check_number}",
        # Debits are recorded as positive payment amounts
        amount=abs(parse_amount(groups["amount"])),
    )


def build_withdrawal_row(match: re.Match, closing_date: date | None) -> TransactionCandidate | None:
    """Build a debit row from a match with ``date``, ``description`` and ``amount`` groups."""
    groups = match.groupdict()
    txn_date = normalize_date(groups["date"], closing_date=closing_date)
    if not txn_date:
        return None

    description = normalize_description(groups["description"])
    check_match = CHECK_IN_DESCRIPTION.search(description)
    return TransactionCandidate(
        date=txn_date,
        description=description,
        check_number=check_match.group(1) if check_match else None,
        amount=abs(parse_amount(groups["amount"])),
    )


def find_statement_date(patterns: Sequence[re.Pattern], text: str) -> str | None:
    """Return the first date captured by any pattern, in order."""
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            statement_date = normalize_date(match.group(1))
            if statement_date:
                return statement_date
    return None
def statement_closing_date(statement_date: str | None) -> date | None:
    """Reference date for MM/DD rows; None falls back to the current year."""
    return date.fromisoformat(statement_date) if statement_date else None
    """Year used for MM/DD rows; None falls back to the current year."""
    return int(statement_date[:4]) if statement_date else None


def find_account_number(text: str) -> str | None:
    match = ACCOUNT_NUMBER.search(text)
    return match.group(1) if match else None


def filter_loan_payments(
    transactions: list[TransactionCandidate], stats: ParseStats
) -> list[TransactionCandidate]:
    """Keep only rows whose description or comment names a loan servicer."""
    kept = [t for t in transactions if is_loan_related(t.description, t.comment)]
    stats.rows_filtered += len(transactions) - len(kept)
    return kept
