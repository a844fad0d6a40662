"""Ordered extraction rules shared by the statement parsers.

A parser is a list of named rules tried top to bottom. Row rules turn every
regex match into a transaction candidate; ``first_match`` returns the rows of
the first rule that produced any, which is how "strict layout, then looser
layout" fallbacks are expressed.
"""

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date
from typing import Any

from backend.models import TransactionCandidate
from backend.parsers.validation import ParseStats, logger

# Common token patterns
DATE = r"\d{1,2}/\d{1,2}/\d{2,4}"
SHORT_DATE = r"\d{1,2}/\d{1,2}(?:/\d{2,4})?"  # year optional, as on bank statements
MONEY = r"\(?-?\$?\d[\d,]*(?:\.\d{1,2})?\)?"
MONEY_CENTS = r"\(?-?\$?\d[\d,]*\.\d{2}\)?"  # requires cents so check numbers don't match

RowBuilder = Callable[[re.Match, date | None], TransactionCandidate | None]


@dataclass(frozen=True)
class RowRule:
    """A row pattern plus the function that turns a match into a transaction."""

    name: str
    pattern: re.Pattern
    build: RowBuilder

    def apply(
        self, text: str, closing_date: date | None = None, stats: ParseStats | None = None
    ) -> list[TransactionCandidate]:
        """Build a candidate from every match; matches that can't be normalized are skipped."""
        rows: list[TransactionCandidate] = []
        for match in self.pattern.finditer(text):
            if stats:
                stats.total_rows_processed += 1

            candidate = self.build(match, closing_date)
            if candidate is None:
                if stats:
                    stats.rows_skipped += 1
                    stats.warnings.append(f"{self.name}: unparseable row '{match.group(0).strip()}'")
                continue

            rows.append(candidate)
        return rows


@dataclass(frozen=True)
class LabeledField:
    """A single ``Label: value`` field; group 1 of the pattern is the value."""

    name: str
    pattern: re.Pattern
    convert: Callable[[str], Any]

    def extract(self, text: str) -> Any:
        match = self.pattern.search(text)
        if not match:
            return None
        return self.convert(match.group(1))


@dataclass(frozen=True)
class Section:
    """A named region of statement text, from its header to the next boundary."""

    name: str
    start: re.Pattern
    end: re.Pattern

    def slice(self, text: str) -> str | None:
        """Return the text after the first header up to the end boundary, or None if absent."""
        header = self.start.search(text)
        if not header:
            return None
        return self._body(text, header.end())

    def slice_all(self, text: str) -> str | None:
        """Join every occurrence of the section, e.g. one continued across pages."""
        bodies = [self._body(text, header.end()) for header in self.start.finditer(text)]
        if not bodies:
            return None
        return "\n".join(bodies)

    def _body(self, text: str, offset: int) -> str:
        body = text[offset:]
        # Leading blank lines belong to the section, not its boundary
        content_start = len(body) - len(body.lstrip())
        boundary = self.end.search(body, content_start)
        return body[: boundary.start()] if boundary else body


def first_match(
    rules: Sequence[RowRule],
    text: str,
    closing_date: date | None = None,
    stats: ParseStats | None = None,
) -> tuple[str | None, list[TransactionCandidate]]:
    """Apply rules in order and return the name and rows of the first rule with rows."""
    for rule in rules:
        rows = rule.apply(text, closing_date, stats)
        if rows:
            if stats:
                stats.matched_rules.append(rule.name)
            logger.debug(f"Rule '{rule.name}' matched {len(rows)} rows")
            return rule.name, rows
    return None, []


def extract_fields(fields: Sequence[LabeledField], text: str) -> dict[str, Any]:
    """Extract every labeled field independently; missing fields map to None."""
    return {f.name: f.extract(text) for f in fields}
