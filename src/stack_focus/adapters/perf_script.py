"""Input adapter for ``perf script`` text output.

``perf script`` prints one block per sample: a header line followed by
indented frame lines, innermost frame first, blocks separated by blank lines:

    rustc 18883 2323302.039150: cycles:
        7f82e6dee178 je_arena_salloc (/some/path.so)
        7f82e6dd4c1a je_malloc (/some/path.so)
        ...

Samples are yielded outermost frame first (call order) unless
``innermost_first`` is set.
"""

from __future__ import annotations

import sys
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TextIO

import structlog

from stack_focus.utils.logging import LogEventNames

log = structlog.get_logger()

UNKNOWN_SYMBOL = "[unknown]"


def parse_frame(line: str) -> str:
    """Extract the display name from a frame line.

    The name is every word after the address up to the first word that
    starts with ``(`` (the DSO), joined by single spaces.
    """
    words = line.split()[1:]
    name_words: list[str] = []
    for word in words:
        if word.startswith("("):
            break
        name_words.append(word)
    return " ".join(name_words) or UNKNOWN_SYMBOL


class PerfScriptReader:
    """Splits ``perf script`` output into samples.

    Malformed blocks (frame lines with no header) are logged and skipped;
    headers with no frames are dropped silently.

    Example:
        reader = PerfScriptReader()
        for frames in reader.samples(open("perf.txt")):
            print(frames)
    """

    def __init__(self, innermost_first: bool = False) -> None:
        self.innermost_first = innermost_first
        self.skipped_blocks = 0

    def samples(self, lines: Iterable[str]) -> Iterator[list[str]]:
        """Yield one frame list per sample block."""
        header: str | None = None
        frames: list[str] = []
        orphan_at: int | None = None

        for line_number, raw in enumerate(lines, start=1):
            line = raw.rstrip("\r\n")

            if line.startswith("#"):
                continue

            if not line.strip():
                if header is not None and frames:
                    yield self._ordered(frames)
                header, frames, orphan_at = None, [], None
                continue

            if not line[0].isspace():
                if header is not None and frames:
                    yield self._ordered(frames)
                header, frames, orphan_at = line, [], None
                continue

            if header is None:
                if orphan_at is None:
                    orphan_at = line_number
                    self._skip("Frame line without a sample header", line_number)
                continue

            frames.append(parse_frame(line))

        if header is not None and frames:
            yield self._ordered(frames)

    def _ordered(self, frames: list[str]) -> list[str]:
        if self.innermost_first:
            return frames
        return frames[::-1]

    def _skip(self, reason: str, line_number: int) -> None:
        self.skipped_blocks += 1
        log.warning(LogEventNames.INPUT_BLOCK_SKIPPED, reason=reason, line_number=line_number)


def read_samples(lines: Iterable[str], innermost_first: bool = False) -> Iterator[list[str]]:
    """Yield samples parsed from ``perf script`` output lines."""
    return PerfScriptReader(innermost_first).samples(lines)


@contextmanager
def open_input(path: Path | str | None) -> Iterator[TextIO]:
    """Open ``path`` for reading, or stdin for None or ``-``."""
    if path is None or str(path) == "-":
        yield sys.stdin
        return

    with Path(path).open(encoding="utf-8", errors="replace") as f:
        log.debug(LogEventNames.INPUT_OPENED, path=str(path))
        yield f
