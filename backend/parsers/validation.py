"""Shared validation and normalization utilities for statement parsers."""

import logging
import re
from dataclasses import dataclass, field
from datetime import date

# Configure logging for parsers
logger = logging.getLogger("loanledger.parsers")

# Payees / memos that mark a bank or bookkeeping row as a loan payment
LOAN_KEYWORDS = re.compile(r"navient|mohela|loan|student\s+loan|consolidation", re.IGNORECASE)

_ISO_DATE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_NUMERIC_DATE = re.compile(r"^(\d{1,2})[/-](\d{1,2})(?:[/-](\d{2}|\d{4}))?$")

_CSV_ENCODINGS = ["utf-8-sig", "utf-8", "latin-1", "cp1252"]


@dataclass
class ParseStats:
    """Row statistics collected while parsing a statement."""

    total_rows_processed: int = 0
    rows_parsed: int = 0
    rows_skipped: int = 0
    rows_filtered: int = 0  # dropped by loan-keyword filtering
    matched_rules: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class ValidationError(Exception):
    """Raised when validation fails."""

    pass


class ParsingError(Exception):
    """Raised when a statement is missing the sections or rows its format requires."""

    pass


def decode_text(contents: bytes) -> str:
    """
    Decode raw file bytes trying common encodings.

    Raises:
        ValidationError: If no supported encoding can decode the bytes
    """
    for encoding in _CSV_ENCODINGS:
        try:
            return contents.decode(encoding)
        except UnicodeDecodeError:
            continue

    raise ValidationError("Could not decode file with any supported encoding (utf-8, latin-1, cp1252)")


def validate_amount(amount: float, min_val: float = -1_000_000, max_val: float = 1_000_000) -> bool:
    """
    Validate that an amount is within reasonable bounds.

    Args:
        amount: The amount to validate
        min_val: Minimum allowed value
        max_val: Maximum allowed value

    Returns:
        True if valid, False otherwise
    """
    if amount is None:
        return False

    # Check for NaN or infinity
    if amount != amount or abs(amount) == float("inf"):
        return False

    return min_val <= amount <= max_val


def validate_date(txn_date: date, min_year: int = 1970, max_year: int = 2100) -> bool:
    """
    Validate that a date is within reasonable bounds.

    Args:
        txn_date: The date to validate
        min_year: Minimum allowed year
        max_year: Maximum allowed year

    Returns:
        True if valid, False otherwise
    """
    if txn_date is None:
        return False

    return min_year <= txn_date.year <= max_year


def normalize_date(
    value: str | None, default_year: int | None = None, closing_date: date | None = None
) -> str | None:
    """
    Normalize a statement date string to ISO ``YYYY-MM-DD``.

    Accepts M/D/YY, MM/DD/YYYY (slashes or dashes), M/D without a year and
    dates that are already ISO. Two-digit years are read as 20YY.

    A missing year is taken from ``closing_date`` when given: rows dated in a
    later month than the closing date belong to the previous year, as on a
    statement running from December into January. Otherwise it becomes
    ``default_year``, or the current year.

    Returns:
        The ISO date, or None if the value is not a valid date
    """
    if not value:
        return None

    value = value.strip()

    iso_match = _ISO_DATE.match(value)
    if iso_match:
        year, month, day = (int(part) for part in iso_match.groups())
    else:
        match = _NUMERIC_DATE.match(value)
        if not match:
            return None

        month, day = int(match.group(1)), int(match.group(2))
        year_str = match.group(3)
        if year_str is None and closing_date is not None:
            year = closing_date.year - 1 if month > closing_date.month else closing_date.year
        elif year_str is None:
            year = default_year or date.today().year
        elif len(year_str) == 2:
            year = 2000 + int(year_str)
        else:
            year = int(year_str)

    try:
        parsed = date(year, month, day)
    except ValueError:
        return None

    if not validate_date(parsed):
        return None

    return parsed.isoformat()


def clean_amount_string(amount_str: str) -> str:
    """
    Clean an amount string for parsing.

    Args:
        amount_str: Raw amount string

    Returns:
        Cleaned amount string ready for float conversion
    """
    if not amount_str:
        return "0"

    # Remove currency symbols and whitespace
    cleaned = amount_str.replace("$", "").replace(" ", "").strip()

    # Remove thousand separators
    cleaned = cleaned.replace(",", "")

    # Handle parentheses for negative numbers
    if cleaned.startswith("(") and cleaned.endswith(")"):
        cleaned = "-" + cleaned[1:-1]

    # Handle trailing minus sign
    if cleaned.endswith("-"):
        cleaned = "-" + cleaned[:-1]

    return cleaned


def parse_amount_safe(amount_str: str, default: float = 0.0) -> tuple[float, bool]:
    """
    Safely parse an amount string.

    Args:
        amount_str: Raw amount string
        default: Default value if parsing fails

    Returns:
        Tuple of (parsed amount, success flag)
    """
    try:
        cleaned = clean_amount_string(amount_str)
        if not cleaned or cleaned == "-":
            return default, False

        amount = float(cleaned)

        if not validate_amount(amount):
            return default, False

        return amount, True
    except (ValueError, TypeError):
        return default, False


def parse_amount(amount_str: str | None, default: float = 0.0) -> float:
    """Parse a currency-formatted string to a signed float, or ``default``."""
    amount, _ = parse_amount_safe(amount_str or "", default)
    return amount


def normalize_description(description: str | None) -> str:
    """Collapse internal whitespace in a description."""
    if not description:
        return ""
    return " ".join(description.split())


def is_loan_related(*texts: str | None) -> bool:
    """Check if any of the given texts mentions a loan servicer or loan keyword."""
    return any(text and LOAN_KEYWORDS.search(text) for text in texts)


def log_parse_result(stats: ParseStats, parser_name: str) -> None:
    """
    Log parsing results for debugging.

    Args:
        stats: The parse statistics
        parser_name: Name of the parser
    """
    rules = ", ".join(stats.matched_rules) or "none"
    logger.info(
        f"{parser_name}: Parsed {stats.rows_parsed} transactions "
        f"(processed {stats.total_rows_processed}, "
        f"skipped {stats.rows_skipped}, "
        f"filtered {stats.rows_filtered}, "
        f"rules {rules})"
    )

    if stats.errors:
        for error in stats.errors[:5]:  # Log first 5 errors
            logger.warning(f"{parser_name}: {error}")

    if stats.warnings:
        for warning in stats.warnings[:5]:  # Log first 5 warnings
            logger.debug(f"{parser_name}: {warning}")
