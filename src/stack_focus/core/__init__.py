"""Core query and aggregation components.

This module exports the main classes and functions:
- PatternParser: Compiles query text into a Pattern
- RegexCache: Explicit cache of compiled regexes
- evaluate: Matches a Pattern against one sample
- NameRewriter: Applies rename rules to frame names
- Aggregator: Accumulates Counts over a sample stream
- build_report: Selects top functions and edges for display
- build_tree, build_flat: Call trees and flat profiles from recorded stacks
"""

from stack_focus.core.aggregator import AggregationScope, Aggregator, aggregate
from stack_focus.core.builder import (
    DEFAULT_THRESHOLD,
    build_flat,
    build_histogram,
    build_report,
    build_tree,
    summarize,
)
from stack_focus.core.matcher import evaluate, match_at
from stack_focus.core.pattern_parser import PatternParser, parse_pattern
from stack_focus.core.regex_cache import RegexCache
from stack_focus.core.rewriter import NameRewriter, RenameRule

__all__ = [
    "DEFAULT_THRESHOLD",
    "AggregationScope",
    "Aggregator",
    "NameRewriter",
    "PatternParser",
    "RegexCache",
    "RenameRule",
    "aggregate",
    "build_flat",
    "build_histogram",
    "build_report",
    "build_tree",
    "evaluate",
    "match_at",
    "parse_pattern",
    "summarize",
]
