"""stack-focus: structural queries over sampled call stacks.

Example:
    from stack_focus import aggregate, build_report, parse_pattern

    pattern = parse_pattern("{^main$}..{^malloc$}")
    counts = aggregate(pattern, None, samples)
    print(counts.matched / counts.total)
"""

from stack_focus._version import __version__
from stack_focus.core import (
    AggregationScope,
    Aggregator,
    NameRewriter,
    PatternParser,
    RegexCache,
    RenameRule,
    aggregate,
    build_histogram,
    build_report,
    evaluate,
    parse_pattern,
    summarize,
)
from stack_focus.models import Counts, MatchResult, MatchSummary, Pattern, ReportView

__all__ = [
    "AggregationScope",
    "Aggregator",
    "Counts",
    "MatchResult",
    "MatchSummary",
    "NameRewriter",
    "Pattern",
    "PatternParser",
    "RegexCache",
    "RenameRule",
    "ReportView",
    "__version__",
    "aggregate",
    "build_histogram",
    "build_report",
    "evaluate",
    "parse_pattern",
    "summarize",
]
