"""Data models for compiled query patterns.

A pattern is a tree of the node types below. The parser only builds flat
chains (``Seq`` of terms), but every wrapper node may hold any other node.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import cached_property


@dataclass(frozen=True)
class Leaf:
    """Matches one frame whose name the regex finds a match in."""

    regex: re.Pattern[str] = field(compare=False)
    text: str

    def __str__(self) -> str:
        return f"{{{self.text}}}"


@dataclass(frozen=True)
class AnyFrame:
    """Matches exactly one frame, whatever its name."""

    def __str__(self) -> str:
        return "."


@dataclass(frozen=True)
class Seq:
    """``left`` matches, then ``right`` matches starting at the next frame."""

    left: PatternNode
    right: PatternNode

    def __str__(self) -> str:
        if isinstance(flatten(self.right)[0], Skip):
            return f"{self.left}{self.right}"
        return f"{self.left},{self.right}"


@dataclass(frozen=True)
class Skip:
    """Zero or more frames are skipped before ``inner`` must match."""

    inner: PatternNode

    def __str__(self) -> str:
        return f"..{self.inner}"


@dataclass(frozen=True)
class Not:
    """Zero-width check that ``inner`` does not match at the cursor."""

    inner: PatternNode

    def __str__(self) -> str:
        return f"!{self.inner}"


PatternNode = Leaf | AnyFrame | Seq | Skip | Not


def flatten(node: PatternNode) -> tuple[PatternNode, ...]:
    """Return the left-to-right chain of terms under nested ``Seq`` nodes."""
    if isinstance(node, Seq):
        return flatten(node.left) + flatten(node.right)
    return (node,)


def chain(terms: list[PatternNode] | tuple[PatternNode, ...]) -> PatternNode:
    """Fold terms into a right-nested ``Seq`` chain."""
    if not terms:
        raise ValueError("Cannot build a pattern from zero terms")
    node = terms[-1]
    for term in reversed(terms[:-1]):
        node = Seq(term, node)
    return node


@dataclass(frozen=True)
class Pattern:
    """A compiled query.

    Attributes:
        text: The query as the user wrote it
        root: Root node of the pattern tree
    """

    text: str
    root: PatternNode

    @cached_property
    def terms(self) -> tuple[PatternNode, ...]:
        """Top-level terms, in match order."""
        return flatten(self.root)

    @cached_property
    def consumes(self) -> bool:
        """True if at least one top-level term consumes frames."""
        return any(not isinstance(term, Not) for term in self.terms)

    def __str__(self) -> str:
        return str(self.root)
