"""Statement format detection."""

import logging

from backend.models import ParserType

logger = logging.getLogger(__name__)

# Checked in order; the filename is cheaper and more reliable than content
FILENAME_KEYWORDS: dict[ParserType, tuple[str, ...]] = {
    ParserType.MOHELA: ("mohela",),
    ParserType.NAVIENT: ("navient",),
    ParserType.KEYBANK: ("keybank", "key-bank", "key bank"),
    ParserType.TRUIST: ("truist",),
    ParserType.QUICKBOOKS: ("quickbooks", ".csv"),
}

CONTENT_KEYWORDS: dict[ParserType, tuple[str, ...]] = {
    ParserType.MOHELA: ("mohela",),
    ParserType.NAVIENT: ("navient",),
    ParserType.KEYBANK: ("key bank", "keybank"),
    ParserType.TRUIST: ("truist", "suntrust", "bb&t"),
    ParserType.QUICKBOOKS: ("quickbooks",),
}


def classify(text: str, file_name: str) -> ParserType | None:
    """
    Detect which parser handles a document.

    Every filename keyword is tried before any content keyword, so a file
    named ``mohela_statement.csv`` is MOHELA even if its text mentions Navient.

    Returns:
        The matching ParserType, or None if the document type is unknown
    """
    file_name_lower = file_name.lower()
    for parser_type, keywords in FILENAME_KEYWORDS.items():
        if any(keyword in file_name_lower for keyword in keywords):
            logger.debug(f"Classified {file_name} as {parser_type.value} by filename")
            return parser_type

    text_lower = text.lower()
    for parser_type, keywords in CONTENT_KEYWORDS.items():
        if any(keyword in text_lower for keyword in keywords):
            logger.debug(f"Classified {file_name} as {parser_type.value} by content")
            return parser_type

    return None
