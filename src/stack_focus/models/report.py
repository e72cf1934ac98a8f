"""Data models for aggregated counts and reports."""

from __future__ import annotations

from dataclasses import dataclass, field

Edge = tuple[str, str]
Stack = tuple[str, ...]


def percent(count: int, total: int) -> float:
    """Return ``count`` as a percentage of ``total`` (0.0 for an empty run)."""
    if total <= 0:
        return 0.0
    return count * 100.0 / total


@dataclass
class Counts:
    """Accumulated statistics for one pass over the sample stream.

    ``functions`` and ``edges`` keep first-seen insertion order, which the
    report builder uses to break ties. ``stacks`` counts each distinct fed
    frame sequence and is only filled for tree and flat reports.
    """

    total: int = 0
    matched: int = 0
    functions: dict[str, int] = field(default_factory=dict)
    edges: dict[Edge, int] = field(default_factory=dict)
    stacks: dict[Stack, int] = field(default_factory=dict)

    @property
    def unmatched(self) -> int:
        return self.total - self.matched

    def add_frames(self, frames: list[str] | tuple[str, ...]) -> None:
        """Count each distinct function and adjacent pair of one sample once."""
        for name in dict.fromkeys(frames):
            self.functions[name] = self.functions.get(name, 0) + 1

        pairs = dict.fromkeys(zip(frames, frames[1:], strict=False))
        for edge in pairs:
            self.edges[edge] = self.edges.get(edge, 0) + 1

    def add_stack(self, frames: list[str] | tuple[str, ...]) -> None:
        """Record one sample's fed frames as a whole sequence."""
        stack = tuple(frames)
        self.stacks[stack] = self.stacks.get(stack, 0) + 1

    def merge(self, other: Counts) -> Counts:
        """Add ``other`` into this instance pointwise and return self."""
        self.total += other.total
        self.matched += other.matched
        for name, count in other.functions.items():
            self.functions[name] = self.functions.get(name, 0) + count
        for edge, count in other.edges.items():
            self.edges[edge] = self.edges.get(edge, 0) + count
        for stack, count in other.stacks.items():
            self.stacks[stack] = self.stacks.get(stack, 0) + count
        return self


@dataclass(frozen=True)
class MatchSummary:
    """Plain-mode result: how many samples matched the query."""

    total: int
    matched: int

    @property
    def unmatched(self) -> int:
        return self.total - self.matched

    @property
    def matched_percent(self) -> float:
        return percent(self.matched, self.total)

    @property
    def unmatched_percent(self) -> float:
        return percent(self.unmatched, self.total)


@dataclass(frozen=True)
class ReportNode:
    """A function selected for a histogram or graph."""

    name: str
    count: int
    percent: float


@dataclass(frozen=True)
class ReportEdge:
    """A caller -> callee edge between two selected functions."""

    caller: str
    callee: str
    count: int
    percent: float


@dataclass(frozen=True)
class ReportView:
    """Pruned graph/histogram ready for rendering.

    Attributes:
        total: Total samples in the run (the percentage denominator)
        nodes: Selected functions, most frequent first
        edges: Edges whose endpoints are both selected, most frequent first
    """

    total: int
    nodes: tuple[ReportNode, ...]
    edges: tuple[ReportEdge, ...] = ()

    @property
    def names(self) -> list[str]:
        return [node.name for node in self.nodes]

    def histogram(self) -> list[tuple[str, float]]:
        """Return ``(name, percent)`` rows, most frequent first."""
        return [(node.name, node.percent) for node in self.nodes]


@dataclass(frozen=True)
class FlatView:
    """Samples grouped by their innermost function after rollup.

    Attributes:
        total: Total samples in the run (the percentage denominator)
        leaves: Leaf functions, most frequent first
        no_leaf: Samples whose every frame was rolled up
    """

    total: int
    leaves: tuple[ReportNode, ...]
    no_leaf: int = 0

    @property
    def no_leaf_percent(self) -> float:
        return percent(self.no_leaf, self.total)
