"""Registry mapping each ParserType to its statement parser."""

import logging

from backend.models import ParserType
from backend.parsers.base import StatementParser
from backend.parsers.keybank import KeyBankParser
from backend.parsers.mohela import MohelaParser
from backend.parsers.navient import NavientParser
from backend.parsers.quickbooks import QuickBooksParser
from backend.parsers.truist import TruistParser

logger = logging.getLogger(__name__)

PARSERS: dict[ParserType, StatementParser] = {
    parser.parser_type: parser
    for parser in (
        MohelaParser(),
        NavientParser(),
        KeyBankParser(),
        TruistParser(),
        QuickBooksParser(),
    )
}


def get_parser(parser_type: ParserType) -> StatementParser:
    """Look up the parser registered for a statement format."""
    return PARSERS[parser_type]


def validate_registry(parsers: dict[ParserType, StatementParser] = PARSERS) -> None:
    """
    Check that every ParserType has a registered parser.

    Raises:
        RuntimeError: If a format has no parser
    """
    missing = [t.value for t in ParserType if t not in parsers]
    if missing:
        raise RuntimeError(f"No parser registered for: {', '.join(missing)}")
    logger.debug(f"Parser registry covers {len(parsers)} formats")


validate_registry()
