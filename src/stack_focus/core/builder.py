"""Builds report views from aggregated counts.

Histograms and graphs keep the top functions by frequency. Trees and flat
profiles are built from the recorded frame sequences (``Counts.stacks``).
"""

from __future__ import annotations

from typing import TypeVar

import structlog

from stack_focus.models.report import (
    Counts,
    FlatView,
    MatchSummary,
    ReportEdge,
    ReportNode,
    ReportView,
    percent,
)
from stack_focus.models.tree import CallTree, CallTreeNode
from stack_focus.utils.errors import ConfigError
from stack_focus.utils.logging import LogEventNames

log = structlog.get_logger()

DEFAULT_THRESHOLD = 22

K = TypeVar("K")


def _rank(mapping: dict[K, int]) -> list[tuple[K, int]]:
    """Order entries by count descending; ties keep insertion (first-seen) order."""
    ranked = sorted(enumerate(mapping.items()), key=lambda item: (-item[1][1], item[0]))
    return [entry for _, entry in ranked]


def select_top(functions: dict[str, int], top_n: int) -> list[tuple[str, int]]:
    """Return the ``top_n`` most frequent functions."""
    return _rank(functions)[:top_n]


def build_report(counts: Counts, top_n: int = DEFAULT_THRESHOLD, edges: bool = True) -> ReportView:
    """Select the top functions and the edges among them.

    Args:
        counts: Counts from an aggregation pass
        top_n: Number of functions to keep
        edges: Keep edges between selected functions (False for histograms)

    Returns:
        ReportView with percentages relative to ``counts.total``

    Raises:
        ConfigError: If ``top_n`` is not positive
    """
    if top_n < 1:
        raise ConfigError(f"threshold must be a positive integer, got {top_n}")

    total = counts.total
    selected = select_top(counts.functions, top_n)
    nodes = tuple(ReportNode(name, count, percent(count, total)) for name, count in selected)

    report_edges: tuple[ReportEdge, ...] = ()
    if edges:
        names = {node.name for node in nodes}
        kept = {
            edge: count
            for edge, count in counts.edges.items()
            if edge[0] in names and edge[1] in names
        }
        report_edges = tuple(
            ReportEdge(caller, callee, count, percent(count, total))
            for (caller, callee), count in _rank(kept)
        )

    log.debug(
        LogEventNames.REPORT_BUILT,
        nodes=len(nodes),
        edges=len(report_edges),
        total=total,
        top_n=top_n,
    )
    return ReportView(total=total, nodes=nodes, edges=report_edges)


def build_histogram(counts: Counts, top_n: int = DEFAULT_THRESHOLD) -> ReportView:
    """Histogram view: the top functions without edges."""
    return build_report(counts, top_n, edges=False)


def summarize(counts: Counts) -> MatchSummary:
    """Plain-mode matched/unmatched summary."""
    return MatchSummary(total=counts.total, matched=counts.matched)


def build_tree(counts: Counts, inverted: bool = False) -> CallTree:
    """Build a call tree from the recorded frame sequences.

    Args:
        counts: Counts from a pass that kept stacks
        inverted: Walk each sequence innermost frame first, so the tree runs
            from the matched frames up through their callers

    Returns:
        CallTree with percentages relative to ``counts.total``
    """
    root = CallTreeNode("")
    for stack, count in counts.stacks.items():
        root.add_path(reversed(stack) if inverted else stack, count)

    log.debug(
        LogEventNames.REPORT_BUILT,
        kind="tree",
        nodes=len(root.children),
        total=counts.total,
        inverted=inverted,
    )
    return CallTree(total=counts.total, root=root, inverted=inverted)


def build_flat(counts: Counts, min_percent: float = 0.0) -> FlatView:
    """Group samples by their innermost function, rolling up rare leaves.

    A leaf whose function appears in fewer than ``min_percent`` of all samples
    is dropped and its samples are credited to the next frame out. This repeats
    until every remaining leaf clears the cutoff. Samples that run out of
    frames are counted in ``FlatView.no_leaf``.

    Raises:
        ConfigError: If ``min_percent`` is outside 0..100
    """
    if not 0 <= min_percent <= 100:
        raise ConfigError(f"min_percent must be between 0 and 100, got {min_percent}")

    total = counts.total
    # leaf -> {callers of the leaf: samples}
    leaves: dict[str, dict[tuple[str, ...], int]] = {}
    no_leaf = 0

    def insert(stack: tuple[str, ...], count: int) -> None:
        nonlocal no_leaf
        if not stack:
            no_leaf += count
            return
        contexts = leaves.setdefault(stack[-1], {})
        contexts[stack[:-1]] = contexts.get(stack[:-1], 0) + count

    for stack, count in counts.stacks.items():
        insert(stack, count)

    while True:
        rare = [
            name
            for name in leaves
            if percent(counts.functions.get(name, 0), total) < min_percent
        ]
        if not rare:
            break
        for name in rare:
            for context, count in leaves.pop(name, {}).items():
                insert(context, count)

    ranked = _rank({name: sum(contexts.values()) for name, contexts in leaves.items()})
    nodes = tuple(ReportNode(name, count, percent(count, total)) for name, count in ranked)

    log.debug(
        LogEventNames.REPORT_BUILT,
        kind="flat",
        nodes=len(nodes),
        no_leaf=no_leaf,
        total=total,
        min_percent=min_percent,
    )
    return FlatView(total=total, leaves=nodes, no_leaf=no_leaf)
