"""Base class for statement parsers."""

from abc import ABC, abstractmethod

from backend.models import ParseResult, ParserType


class StatementParser(ABC):
    """Converts the extracted text of one statement into a ParseResult.

    Implementations are pure: no I/O, same text in, same result out.
    """

    parser_type: ParserType

    @abstractmethod
    def parse(self, text: str) -> ParseResult:
        """Parse statement text.

        Raises:
            ParsingError: If the format requires rows and none could be found
        """
