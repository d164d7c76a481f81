"""Place highlights on the TOC node they belong to."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from kobonotes.models import Highlight
from kobonotes.toc.tree import ROOT_INDEX, TocTree, sort_order
from kobonotes.utils.identifiers import MalformedIdentifierError, Segments, split_identifier

LOGGER = logging.getLogger(__name__)

PrefixIndex = Dict[Segments, List[int]]


@dataclass(slots=True)
class MatchResult:
    """Highlights grouped by node index plus the ones no node claimed."""

    assigned: Dict[int, List[Highlight]] = field(default_factory=dict)
    unmatched: List[Highlight] = field(default_factory=list)
    malformed: int = 0

    def highlights_for(self, index: int) -> List[Highlight]:
        return self.assigned.get(index, [])

    @property
    def matched_count(self) -> int:
        return sum(len(items) for items in self.assigned.values())

    @property
    def total(self) -> int:
        return self.matched_count + len(self.unmatched)


def build_prefix_index(tree: TocTree) -> PrefixIndex:
    """Map each non-root node's segments to the node indices carrying them."""
    index: PrefixIndex = {}
    for node in tree.nodes:
        if node.index == ROOT_INDEX:
            continue
        index.setdefault(node.segments, []).append(node.index)
    return index


def match_location(
    tree: TocTree, location: Optional[str], *, index: Optional[PrefixIndex] = None
) -> Optional[int]:
    """Return the node whose identifier is the longest prefix of ``location``.

    The root never matches: a location only under the book itself is
    uncategorized. Malformed locations match nothing.
    """
    try:
        segments = split_identifier(location)
    except MalformedIdentifierError:
        return None
    if index is None:
        index = build_prefix_index(tree)

    for length in range(len(segments), 0, -1):
        candidates = index.get(segments[:length])
        if candidates:
            return min(candidates, key=lambda idx: _order_key(tree, idx))
    return None


def _order_key(tree: TocTree, index: int) -> tuple:
    order = sort_order(tree.nodes[index].order)
    return (order is None, order if order is not None else 0, index)


def _created_key(highlight: Highlight) -> tuple:
    created = highlight.created
    return (created is None, "" if created is None else str(created))


def attach_highlights(tree: TocTree, highlights: Iterable[Highlight]) -> MatchResult:
    """Assign every highlight to exactly one node or to ``unmatched``."""
    prefix_index = build_prefix_index(tree)
    result = MatchResult()

    for highlight in highlights:
        try:
            split_identifier(highlight.location)
        except MalformedIdentifierError as exc:
            LOGGER.warning("Highlight has malformed location, leaving it uncategorized: %s", exc)
            result.malformed += 1
            result.unmatched.append(highlight)
            continue

        node_index = match_location(tree, highlight.location, index=prefix_index)
        if node_index is None:
            LOGGER.debug("No TOC entry for highlight at %s", highlight.location)
            result.unmatched.append(highlight)
        else:
            result.assigned.setdefault(node_index, []).append(highlight)

    for items in result.assigned.values():
        items.sort(key=_created_key)
    return result
