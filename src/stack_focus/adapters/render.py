"""Text renderers for match summaries, histograms, trees and call graphs."""

from __future__ import annotations

from stack_focus.models.report import FlatView, MatchSummary, ReportView
from stack_focus.models.tree import CallTree, CallTreeNode

NO_LEAF_LABEL = "had no leaf function worth mentioning"


def format_percent(value: float) -> str:
    return f"{value:.1f}%"


def format_seconds(count: int, frequency: float) -> str:
    """Sample count as seconds of profiled time at ``frequency`` Hz."""
    return f"{count / frequency:.2f}s"


def _aligned(cells: list[str]) -> list[str]:
    width = max((len(cell) for cell in cells), default=0)
    return [f"{cell:>{width}}" for cell in cells]


def render_summary(summary: MatchSummary, query: str) -> str:
    """Render the plain-mode report."""
    return "\n".join(
        [
            f"Matcher: {query}",
            f"Matches in {format_percent(summary.matched_percent)} of samples.",
            f"Non-matches in {format_percent(summary.unmatched_percent)} of samples.",
        ]
    )


def render_histogram(view: ReportView, frequency: float | None = None) -> str:
    """Render one ``percent name`` row per selected function.

    With a sampling ``frequency`` each row also shows the time spent, in
    seconds, between the percentage and the name.
    """
    columns = [_aligned([format_percent(node.percent) for node in view.nodes])]
    if frequency is not None:
        columns.append(_aligned([format_seconds(node.count, frequency) for node in view.nodes]))
    columns.append([node.name for node in view.nodes])
    return "\n".join("  ".join(cells) for cells in zip(*columns, strict=True))


def render_flat(view: FlatView) -> str:
    """Render one ``percent leaf`` row per leaf, then the samples left without one."""
    labels = [node.name for node in view.leaves]
    cells = [format_percent(node.percent) for node in view.leaves]
    if view.no_leaf:
        labels.append(NO_LEAF_LABEL)
        cells.append(format_percent(view.no_leaf_percent))
    return "\n".join(
        f"{cell}  {label}" for cell, label in zip(_aligned(cells), labels, strict=True)
    )


def render_tree(tree: CallTree, max_depth: int | None = None, min_percent: float = 0.0) -> str:
    """Render the call tree as indented ``| name (T% total, S% self)`` lines.

    Each level is indented by ``": "``. Nodes below ``min_percent`` of all
    samples are left out together with their subtrees. A node at ``max_depth``
    that still has children is marked ``[...]``.
    """
    lines: list[str] = []
    pending: list[tuple[CallTreeNode, int]] = [
        (child, 0) for child in reversed(tree.root.ranked_children())
    ]
    while pending:
        node, depth = pending.pop()
        if tree.total_percent(node) < min_percent:
            continue

        line = (
            f"{': ' * depth}| {node.name} ({format_percent(tree.total_percent(node))} total, "
            f"{format_percent(tree.self_percent(node))} self)"
        )
        children = node.ranked_children()
        if children and max_depth is not None and depth + 1 >= max_depth:
            lines.append(f"{line} [...]")
            continue

        lines.append(line)
        pending.extend((child, depth + 1) for child in reversed(children))
    return "\n".join(lines)


def _quote(label: str) -> str:
    return label.replace("\\", "\\\\").replace('"', '\\"')


def render_dot(view: ReportView) -> str:
    """Render the call graph in Graphviz DOT format.

    Nodes are numbered in selection order (most frequent first).
    """
    ids = {node.name: f"n{index}" for index, node in enumerate(view.nodes)}

    lines = ["digraph G {", "  node [ shape=box ];"]
    for node in view.nodes:
        label = _quote(f"{node.name} ({format_percent(node.percent)})")
        lines.append(f'  {ids[node.name]} [label="{label}"];')
    for edge in view.edges:
        lines.append(
            f'  {ids[edge.caller]} -> {ids[edge.callee]} [label="{format_percent(edge.percent)}"];'
        )
    lines.append("}")
    return "\n".join(lines)
