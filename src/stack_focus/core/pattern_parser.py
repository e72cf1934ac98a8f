"""Parser for the stack query language.

A query is a flat chain of terms matched against a sample's frames:

    {regex}      one frame whose name matches the regex
    .            any one frame
    a,b          b must match the frame right after a
    ..a          skip any number of frames, then a must match
    a..b         sugar for a,..b
    !a           a must not match here (consumes nothing)

For example ``{^main$}..{^malloc$},!..{^free$}`` matches samples in which
``main`` transitively calls ``malloc`` and no ``free`` appears past it.
Parenthesized groups are not part of the language.
"""

from __future__ import annotations

import re

import structlog

from stack_focus.core.regex_cache import RegexCache
from stack_focus.models.pattern import AnyFrame, Leaf, Not, Pattern, PatternNode, Skip, chain
from stack_focus.utils.errors import PatternParseError
from stack_focus.utils.logging import LogEventNames

log = structlog.get_logger()


class PatternParser:
    """Compiles query text into a Pattern.

    Example:
        parser = PatternParser()
        pattern = parser.parse("{^main$}..{^malloc$}")
        print(pattern.terms)
    """

    TERM_START = "{."

    def __init__(self, cache: RegexCache | None = None) -> None:
        """Initialize the parser.

        Args:
            cache: Regex cache shared with other consumers; a fresh one
                is created if omitted
        """
        self._cache = cache if cache is not None else RegexCache()

    @property
    def cache(self) -> RegexCache:
        return self._cache

    def parse(self, text: str) -> Pattern:
        """Parse a query.

        Args:
            text: Query text

        Returns:
            Compiled Pattern

        Raises:
            PatternParseError: If the query is empty, malformed, or holds an
                invalid regex
        """
        if not text or not text.strip():
            raise PatternParseError("Empty query", text or "", 0)

        pos = self._skip_ws(text, 0)
        term, pos = self._parse_term(text, pos)
        terms: list[PatternNode] = [term]

        while True:
            pos = self._skip_ws(text, pos)
            if pos >= len(text):
                break

            if text.startswith("..", pos):
                dots = pos
                pos = self._skip_ws(text, pos + 2)
                if pos >= len(text):
                    raise PatternParseError("Expected a term after '..'", text, dots, "..")
                if text[pos] == "!" or text.startswith("..", pos):
                    raise PatternParseError(
                        "Expected '{' or '.' after infix '..'", text, pos, text[pos : pos + 2]
                    )
                atom, pos = self._parse_atom(text, pos)
                terms.append(Skip(atom))
            elif text[pos] == ",":
                comma = pos
                pos = self._skip_ws(text, pos + 1)
                if pos >= len(text):
                    raise PatternParseError("Expected a term after ','", text, comma, ",")
                term, pos = self._parse_term(text, pos)
                terms.append(term)
            else:
                raise self._unexpected(text, pos, "',' or '..'")

        pattern = Pattern(text=text, root=chain(terms))
        log.debug(LogEventNames.PATTERN_PARSED, query=text, terms=len(terms))
        return pattern

    def _parse_term(self, text: str, pos: int) -> tuple[PatternNode, int]:
        """Parse ``['!'] ['..'] atom`` starting at ``pos``."""
        negated_at: int | None = None
        if text[pos] == "!":
            negated_at = pos
            pos = self._skip_ws(text, pos + 1)
            if pos >= len(text) or not (
                text[pos] in self.TERM_START or text.startswith("..", pos)
            ):
                raise PatternParseError("Expected a term after '!'", text, negated_at, "!")

        skip = False
        if text.startswith("..", pos):
            dots = pos
            pos = self._skip_ws(text, pos + 2)
            if pos >= len(text):
                raise PatternParseError("Expected a term after '..'", text, dots, "..")
            skip = True

        node, pos = self._parse_atom(text, pos)
        if skip:
            node = Skip(node)
        if negated_at is not None:
            node = Not(node)
        return node, pos

    def _parse_atom(self, text: str, pos: int) -> tuple[PatternNode, int]:
        if text[pos] == "{":
            return self._parse_leaf(text, pos)
        if text[pos] == ".":
            return AnyFrame(), pos + 1
        raise self._unexpected(text, pos, "'{' or '.'")

    def _parse_leaf(self, text: str, pos: int) -> tuple[Leaf, int]:
        """Parse a brace-delimited regex; inner braces must balance."""
        balance = 1
        end = pos
        while balance:
            end += 1
            if end >= len(text):
                raise PatternParseError("Unmatched '{'", text, pos, text[pos:])
            char = text[end]
            if char == "{":
                balance += 1
            elif char == "}":
                balance -= 1
            elif char == "\\":
                end += 1

        regex_text = text[pos + 1 : end]
        try:
            regex = self._cache.compile(regex_text)
        except re.error as e:
            column = pos + 1 + (e.pos or 0)
            raise PatternParseError(f"Invalid regex: {e.msg}", text, column, regex_text) from e

        return Leaf(regex=regex, text=regex_text), end + 1

    @staticmethod
    def _unexpected(text: str, pos: int, expected: str) -> PatternParseError:
        char = text[pos]
        if char == "}":
            return PatternParseError("Unmatched '}'", text, pos, char)
        if char in "()":
            return PatternParseError("Nested groups are not supported", text, pos, char)
        return PatternParseError(f"Expected {expected}", text, pos, char)

    @staticmethod
    def _skip_ws(text: str, pos: int) -> int:
        while pos < len(text) and text[pos].isspace():
            pos += 1
        return pos


def parse_pattern(text: str, cache: RegexCache | None = None) -> Pattern:
    """Parse ``text`` with a one-off PatternParser."""
    try:
        return PatternParser(cache).parse(text)
    except PatternParseError as e:
        log.debug(LogEventNames.PATTERN_PARSE_ERROR, query=text, error=str(e), offset=e.offset)
        raise
