"""Data models and transfer objects."""

from .match import NO_MATCH, Frame, MatchResult, Sample
from .pattern import AnyFrame, Leaf, Not, Pattern, PatternNode, Seq, Skip, chain, flatten
from .report import (
    Counts,
    Edge,
    FlatView,
    MatchSummary,
    ReportEdge,
    ReportNode,
    ReportView,
    Stack,
    percent,
)
from .tree import CallTree, CallTreeNode

__all__ = [
    # Pattern models
    "AnyFrame",
    "Leaf",
    "Not",
    "Pattern",
    "PatternNode",
    "Seq",
    "Skip",
    "chain",
    "flatten",
    # Match models
    "Frame",
    "MatchResult",
    "NO_MATCH",
    "Sample",
    # Report models
    "Counts",
    "Edge",
    "FlatView",
    "MatchSummary",
    "ReportEdge",
    "ReportNode",
    "ReportView",
    "Stack",
    "percent",
    # Tree models
    "CallTree",
    "CallTreeNode",
]
