"""Index-based table-of-contents tree."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

from kobonotes.utils.identifiers import Segments

ROOT_INDEX = 0


class ContentTreeError(Exception):
    """The reconstructed tree violates its structural invariants."""


def sort_order(value: object) -> Optional[float]:
    """Coerce a document-order key to a float; anything unusable counts as missing."""
    if value is None or isinstance(value, bool):
        return None
    try:
        order = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    return None if math.isnan(order) else order


@dataclass(slots=True)
class TocNode:
    """One node of the arena; edges are indices into ``TocTree.nodes``."""

    index: int
    identifier: Optional[str]
    segments: Segments
    title: str
    declared_depth: Optional[int] = None
    order: Optional[float] = None
    parent: Optional[int] = None
    children: List[int] = field(default_factory=list)

    @property
    def is_root(self) -> bool:
        return self.parent is None


@dataclass(slots=True)
class TocTree:
    """A book's TOC as an arena of nodes, ``nodes[0]`` being the root."""

    nodes: List[TocNode]
    warnings: List[str] = field(default_factory=list)

    @property
    def root(self) -> TocNode:
        return self.nodes[ROOT_INDEX]

    def __len__(self) -> int:
        return len(self.nodes)

    def node(self, index: int) -> TocNode:
        return self.nodes[index]

    def depth_of(self, index: int) -> int:
        """Distance from the root; children of the root are at depth 1."""
        depth = 0
        current = self.nodes[index].parent
        while current is not None:
            depth += 1
            if depth > len(self.nodes):
                raise ContentTreeError(f"Cycle detected above node {index}")
            current = self.nodes[current].parent
        return depth

    def walk(self, start: int = ROOT_INDEX) -> Iterator[Tuple[int, int]]:
        """Yield ``(index, depth)`` depth-first in child order."""
        base = self.depth_of(start)
        stack = [(start, base)]
        while stack:
            index, depth = stack.pop()
            yield index, depth
            for child in reversed(self.nodes[index].children):
                stack.append((child, depth + 1))

    def validate(self) -> None:
        """Check that every node is reached exactly once from the root."""
        if not self.nodes or self.root.parent is not None:
            raise ContentTreeError("Tree has no root")
        seen = set()
        for index, _ in self.walk():
            if index in seen:
                raise ContentTreeError(f"Node {index} is reachable twice")
            seen.add(index)
            for child in self.nodes[index].children:
                if self.nodes[child].parent != index:
                    raise ContentTreeError(f"Node {child} has inconsistent parent link")
        if len(seen) != len(self.nodes):
            raise ContentTreeError(
                f"{len(self.nodes) - len(seen)} node(s) are not reachable from the root"
            )
