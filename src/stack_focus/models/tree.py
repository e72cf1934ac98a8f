"""Call tree model for tree reports."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from .report import percent


@dataclass
class CallTreeNode:
    """One function in a call tree.

    ``total`` counts the samples that pass through this node and ``self_count``
    the samples whose path ends here. Children keep first-seen order.
    """

    name: str
    total: int = 0
    self_count: int = 0
    children: dict[str, CallTreeNode] = field(default_factory=dict)

    def add_path(self, frames: Iterable[str], count: int = 1) -> None:
        """Add ``count`` samples following ``frames`` down from this node."""
        node = self
        node.total += count
        for name in frames:
            child = node.children.get(name)
            if child is None:
                child = node.children[name] = CallTreeNode(name)
            node = child
            node.total += count
        node.self_count += count

    def ranked_children(self) -> list[CallTreeNode]:
        """Children by total descending; ties keep first-seen order."""
        return sorted(self.children.values(), key=lambda child: -child.total)


@dataclass(frozen=True)
class CallTree:
    """A call tree rooted at the matched frames.

    Attributes:
        total: Total samples in the run (the percentage denominator)
        root: Unnamed root; its children are the top-level functions
        inverted: True when paths run from the match up to its callers
    """

    total: int
    root: CallTreeNode
    inverted: bool = False

    def total_percent(self, node: CallTreeNode) -> float:
        return percent(node.total, self.total)

    def self_percent(self, node: CallTreeNode) -> float:
        return percent(node.self_count, self.total)
