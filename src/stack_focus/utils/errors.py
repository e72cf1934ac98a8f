"""Exception hierarchy for stack-focus.

- ConfigError: bad query, bad regex, bad option or config file. Raised
  before any sample is processed.
- InternalInvariantViolation: a defect detected while matching or
  aggregating. Aborts the run.
"""

from __future__ import annotations


class StackFocusError(Exception):
    """Base exception for all stack-focus errors."""


class ConfigError(StackFocusError):
    """Invalid configuration, query or command-line option."""


class PatternParseError(ConfigError):
    """Failed to parse a query pattern.

    Attributes:
        text: The full query text.
        fragment: The offending substring.
        offset: UTF-8 byte offset of the fragment within the query.
        column: Character index of the fragment within the query.
    """

    def __init__(self, message: str, text: str, column: int, fragment: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.text = text
        self.column = column
        self.fragment = fragment
        self.offset = len(text[:column].encode("utf-8"))

    def __str__(self) -> str:
        if self.fragment:
            return f"{self.message} at offset {self.offset}: {self.fragment!r}"
        return f"{self.message} at offset {self.offset}"

    def caret_lines(self) -> list[str]:
        """Return the query and a caret line pointing at the error column."""
        return [f"    {self.text}", "    " + " " * self.column + "^"]



class InternalInvariantViolation(StackFocusError):
    """An internal invariant was broken; the current run must abort."""
