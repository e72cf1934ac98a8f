"""Evaluation of compiled patterns against samples.

The matcher threads a cursor through the pattern's terms starting at each
frame index in turn; the first start index at which every term succeeds
wins. Adjacency is exact and there is no backtracking: a ``Skip`` commits to
the first frame its inner node matches.
"""

from __future__ import annotations

from typing import assert_never

from stack_focus.models.match import NO_MATCH, MatchResult, Sample
from stack_focus.models.pattern import AnyFrame, Leaf, Not, Pattern, PatternNode, Seq, Skip
from stack_focus.utils.errors import InternalInvariantViolation


def match_at(node: PatternNode, frames: Sample, pos: int) -> int | None:
    """Match ``node`` against ``frames`` with the cursor at ``pos``.

    Returns:
        The cursor after the match, or None if the node does not match
    """
    match node:
        case Leaf(regex=regex):
            if pos < len(frames) and regex.search(frames[pos]):
                return pos + 1
            return None
        case AnyFrame():
            return pos + 1 if pos < len(frames) else None
        case Seq(left=left, right=right):
            after = match_at(left, frames, pos)
            if after is None:
                return None
            return match_at(right, frames, after)
        case Skip(inner=inner):
            for start in range(pos, len(frames) + 1):
                after = match_at(inner, frames, start)
                if after is not None:
                    return after
            return None
        case Not(inner=inner):
            return pos if match_at(inner, frames, pos) is None else None
        case _:
            assert_never(node)


def _match_terms(
    terms: tuple[PatternNode, ...],
    frames: Sample,
    start: int,
) -> tuple[int, int] | None:
    """Match the top-level chain anchored at ``start`` and return its span."""
    cursor = start
    span_start: int | None = None
    span_end = start

    for term in terms:
        if isinstance(term, Not):
            if match_at(term, frames, cursor) is None:
                return None
            continue

        if span_start is None:
            span_start = cursor
        after = match_at(term, frames, cursor)
        if after is None:
            return None
        cursor = span_end = after

    return (start if span_start is None else span_start, span_end)


def evaluate(pattern: Pattern, sample: Sample) -> MatchResult:
    """Decide whether ``pattern`` matches ``sample``.

    Args:
        pattern: Compiled query
        sample: Frames of one sample, in call order

    Returns:
        MatchResult with the matched span on success

    Raises:
        InternalInvariantViolation: If a successful match produced a
            reversed span, or an empty one for a frame-consuming pattern
    """
    terms = pattern.terms
    consumes = pattern.consumes

    # Patterns of absence checks only are evaluated against the whole sample.
    starts = range(len(sample)) if consumes else range(1)

    for start in starts:
        span = _match_terms(terms, sample, start)
        if span is None:
            continue

        begin, end = span
        if begin > end or (consumes and begin == end) or end > len(sample):
            raise InternalInvariantViolation(
                f"Invalid matched span {span} for pattern {pattern.text!r} "
                f"over a sample of {len(sample)} frames"
            )
        return MatchResult(matched=True, span=span)

    return NO_MATCH
