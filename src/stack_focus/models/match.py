"""Data models for per-sample match results."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

Frame = str
Sample = Sequence[Frame]


@dataclass(frozen=True)
class MatchResult:
    """Outcome of evaluating a pattern against one sample.

    ``span`` is the half-open index range ``(start, end)`` consumed by the
    pattern, or None when the sample did not match.
    """

    matched: bool
    span: tuple[int, int] | None = None

    def __bool__(self) -> bool:
        return self.matched

    @property
    def start(self) -> int:
        return self._require_span()[0]

    @property
    def end(self) -> int:
        return self._require_span()[1]

    def callers(self, frames: Sample) -> Sample:
        """Frames before the matched span."""
        return frames[: self.start]

    def matched_frames(self, frames: Sample) -> Sample:
        """Frames inside the matched span."""
        return frames[self.start : self.end]

    def callees(self, frames: Sample) -> Sample:
        """Frames after the matched span."""
        return frames[self.end :]

    def _require_span(self) -> tuple[int, int]:
        if self.span is None:
            raise ValueError("Sample did not match; there is no span")
        return self.span


NO_MATCH = MatchResult(matched=False)
