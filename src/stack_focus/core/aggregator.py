"""Aggregation of match results over a stream of samples.

The Aggregator rewrites each sample's frame names, evaluates the query, and
accumulates Counts. Every sample adds to the total; which frames feed the
function and edge counts depends on the AggregationScope.

Samples read innermost frame first are matched in that order, but the fed
frames are put back into call order so that edges always run caller to
callee and the callers/callees scopes keep their meaning.

Per-sample contributions commute, so a stream can be split into chunks,
counted in worker processes, and merged by pointwise addition.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Iterator
from concurrent.futures import Future, ProcessPoolExecutor
from enum import StrEnum
from itertools import islice

import structlog

from stack_focus.core.matcher import evaluate
from stack_focus.core.rewriter import NameRewriter, RenameRule
from stack_focus.models.match import MatchResult, Sample
from stack_focus.models.pattern import Pattern
from stack_focus.models.report import Counts
from stack_focus.utils.errors import ConfigError
from stack_focus.utils.logging import LogEventNames
from stack_focus.utils.metrics import Timer, get_metrics

log = structlog.get_logger()

DEFAULT_CHUNK_SIZE = 5000


class AggregationScope(StrEnum):
    """Which samples and frames feed the function and edge counts."""

    ALL = "all"  # every sample, all frames
    MATCHED = "matched"  # matched samples, all frames
    CALLERS = "callers"  # matched samples, frames up to the end of the span
    CALLEES = "callees"  # matched samples, frames from the start of the span


class Aggregator:
    """Counts functions and call edges across a sample stream.

    Example:
        aggregator = Aggregator(parse_pattern("{^main$}..{^malloc$}"))
        counts = aggregator.run(samples)
        print(f"{counts.matched}/{counts.total} samples matched")
    """

    def __init__(
        self,
        pattern: Pattern,
        rewriter: NameRewriter | None = None,
        scope: AggregationScope = AggregationScope.ALL,
        keep_stacks: bool = False,
        innermost_first: bool = False,
    ) -> None:
        """Initialize the Aggregator.

        Args:
            pattern: Compiled query evaluated against every sample
            rewriter: Rename rules applied before matching and counting
            scope: Which samples and frames feed the occurrence counts
            keep_stacks: Also record each fed frame sequence (tree and flat
                reports need them)
            innermost_first: Samples list the innermost frame first
        """
        self.pattern = pattern
        self.rewriter = rewriter if rewriter is not None else NameRewriter()
        self.scope = AggregationScope(scope)
        self.keep_stacks = keep_stacks
        self.innermost_first = innermost_first

    def process(self, sample: Sample, counts: Counts) -> MatchResult:
        """Evaluate one sample and add its contribution to ``counts``."""
        frames = self.rewriter.rewrite_all(sample)
        result = evaluate(self.pattern, frames)

        counts.total += 1
        if result.matched:
            counts.matched += 1

        fed = self._select_frames(frames, result)
        if fed is None:
            return result
        if self.innermost_first:
            fed = fed[::-1]
        if fed:
            counts.add_frames(fed)
        if self.keep_stacks:
            counts.add_stack(fed)
        return result

    def _select_frames(self, frames: list[str], result: MatchResult) -> list[str] | None:
        if self.scope == AggregationScope.ALL:
            return frames
        if not result.matched:
            return None
        callers, callees = frames[: result.end], frames[result.start :]
        if self.innermost_first:
            callers, callees = callees, callers
        if self.scope == AggregationScope.CALLERS:
            return callers
        if self.scope == AggregationScope.CALLEES:
            return callees
        return frames

    def count(self, samples: Iterable[Sample]) -> Counts:
        """Aggregate ``samples`` without logging or metrics."""
        counts = Counts()
        for sample in samples:
            self.process(sample, counts)
        return counts

    def run(self, samples: Iterable[Sample]) -> Counts:
        """Aggregate a whole stream in this process.

        Args:
            samples: Samples in stream order

        Returns:
            Counts for the full pass
        """
        metrics = get_metrics()
        log.info(LogEventNames.AGGREGATION_STARTED, query=self.pattern.text, scope=self.scope)

        with Timer(metrics.aggregation_duration, labels={"mode": "serial"}) as timer:
            counts = self.count(samples)

        self._record(counts, timer.elapsed)
        return counts

    def run_parallel(
        self,
        samples: Iterable[Sample],
        workers: int = 2,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> Counts:
        """Aggregate a stream across worker processes.

        Chunks are merged in stream order, so the result (including the
        first-seen order of names) equals that of ``run``.

        Args:
            samples: Samples in stream order
            workers: Number of worker processes
            chunk_size: Samples per chunk sent to a worker

        Returns:
            Counts for the full pass

        Raises:
            ConfigError: If workers or chunk_size is not positive
        """
        if workers < 1:
            raise ConfigError(f"workers must be positive, got {workers}")
        if chunk_size < 1:
            raise ConfigError(f"chunk_size must be positive, got {chunk_size}")
        if workers == 1:
            return self.run(samples)

        metrics = get_metrics()
        log.info(
            LogEventNames.AGGREGATION_STARTED,
            query=self.pattern.text,
            scope=self.scope,
            workers=workers,
            chunk_size=chunk_size,
        )

        counts = Counts()
        with (
            Timer(metrics.aggregation_duration, labels={"mode": "parallel"}) as timer,
            ProcessPoolExecutor(max_workers=workers) as executor,
        ):
            pending: deque[Future[Counts]] = deque()
            for chunk in _chunked(samples, chunk_size):
                pending.append(executor.submit(_count_chunk, self, chunk))
                # Bound the number of chunks held in memory.
                if len(pending) >= workers * 2:
                    self._merge_next(counts, pending)
            while pending:
                self._merge_next(counts, pending)

        self._record(counts, timer.elapsed)
        return counts

    @staticmethod
    def _merge_next(counts: Counts, pending: deque[Future[Counts]]) -> None:
        partial = pending.popleft().result()
        counts.merge(partial)
        log.debug(LogEventNames.SHARD_COMPLETE, samples=partial.total, matched=partial.matched)

    def _record(self, counts: Counts, elapsed: float) -> None:
        metrics = get_metrics()
        metrics.samples_processed.inc(counts.total)
        metrics.samples_matched.inc(counts.matched)
        log.info(
            LogEventNames.AGGREGATION_COMPLETE,
            total=counts.total,
            matched=counts.matched,
            functions=len(counts.functions),
            edges=len(counts.edges),
            duration_seconds=round(elapsed, 3),
        )


def _count_chunk(aggregator: Aggregator, chunk: list[Sample]) -> Counts:
    """Worker entry point; module level so it can be pickled."""
    return aggregator.count(chunk)


def _chunked(samples: Iterable[Sample], size: int) -> Iterator[list[Sample]]:
    iterator = iter(samples)
    while chunk := list(islice(iterator, size)):
        yield chunk


def aggregate(
    pattern: Pattern,
    rename_rules: NameRewriter | Iterable[RenameRule] | None,
    samples: Iterable[Sample],
    scope: AggregationScope = AggregationScope.ALL,
    workers: int = 1,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Counts:
    """Run one aggregation pass.

    Args:
        pattern: Compiled query
        rename_rules: A NameRewriter, or rules to build one from
        samples: Samples in stream order
        scope: Which samples and frames feed the occurrence counts
        workers: Worker processes (1 aggregates in this process)
        chunk_size: Samples per chunk when running in parallel

    Returns:
        Counts with total, matched, function and edge occurrences
    """
    if rename_rules is None or isinstance(rename_rules, NameRewriter):
        rewriter = rename_rules
    else:
        rewriter = NameRewriter(rename_rules)

    aggregator = Aggregator(pattern, rewriter, scope)
    if workers == 1:
        return aggregator.run(samples)
    return aggregator.run_parallel(samples, workers=workers, chunk_size=chunk_size)
