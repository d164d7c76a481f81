"""Reconstruct a book's TOC tree from flat content rows.

Kobo stores no parent pointers for TOC rows. Parentage is inferred from the
identifiers: the parent of an entry is the entry whose identifier is its
longest proper segment prefix. Rows that share no prefix with their part
(``part1.xhtml-1`` followed by ``ch1.xhtml-2``) are nested afterwards using
the declared depth and the reading order.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from kobonotes.models import ContentEntry
from kobonotes.toc.tree import ROOT_INDEX, TocNode, TocTree, sort_order
from kobonotes.utils.identifiers import (
    MalformedIdentifierError,
    Segments,
    is_proper_prefix,
    split_identifier,
)

LOGGER = logging.getLogger(__name__)


def _entry_sort_key(item: Tuple[Segments, ContentEntry]) -> tuple:
    segments, entry = item
    order = sort_order(entry.order)
    return (
        segments,
        order is None,
        order if order is not None else 0,
        entry.title or "",
        entry.content_id or "",
        entry.identifier,
    )


def _declared_depth(value: object) -> Optional[int]:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def _single_top_level(
    parsed: List[Tuple[Segments, ContentEntry]],
) -> Optional[Tuple[Segments, ContentEntry]]:
    """The sorted entry that is an ancestor of all others, if there is one."""
    if not parsed:
        return None
    candidate = parsed[0][0]
    others = [segments for segments, _ in parsed if segments != candidate]
    if others and all(is_proper_prefix(candidate, segments) for segments in others):
        return parsed[0]
    return None


def _child_sort_key(node: TocNode) -> tuple:
    order = sort_order(node.order)
    return (order is None, order if order is not None else 0, node.identifier or "")


def build_toc_tree(
    entries: Iterable[ContentEntry],
    *,
    root_id: Optional[str] = None,
    root_title: str = "",
    nest_by_depth: bool = True,
) -> TocTree:
    """Build a rooted ``TocTree`` from the content rows of one book.

    ``root_id`` is the book's own identifier: a row carrying it becomes the
    root instead of a chapter. Without such a row, a single entry whose
    identifier is a proper prefix of every other entry is the book row and
    becomes the root. Otherwise the root is synthetic.
    """
    warnings: List[str] = []

    root_segments: Segments = ()
    if root_id is not None:
        try:
            root_segments = split_identifier(root_id)
        except MalformedIdentifierError:
            root_segments = ()
    root = TocNode(index=ROOT_INDEX, identifier=root_id, segments=root_segments, title=root_title)
    nodes: List[TocNode] = [root]

    parsed: List[Tuple[Segments, ContentEntry]] = []
    for entry in entries:
        try:
            parsed.append((split_identifier(entry.identifier), entry))
        except MalformedIdentifierError as exc:
            message = f"Ignoring TOC entry {entry.content_id or entry.identifier!r}: {exc}"
            LOGGER.warning(message)
            warnings.append(message)
    parsed.sort(key=_entry_sort_key)

    if not any(segments == root_segments for segments, _ in parsed):
        promoted = _single_top_level(parsed)
        if promoted is not None:
            root_segments = promoted[0]
            root.identifier = promoted[1].identifier
            root.segments = root_segments

    by_segments: Dict[Segments, int] = {}
    stack: List[int] = []
    for segments, entry in parsed:
        if root_segments and segments == root_segments:
            root.title = root.title or entry.title
            if root.order is None:
                root.order = sort_order(entry.order)
            continue
        if segments in by_segments:
            message = f"Ignoring duplicate TOC entry {entry.identifier!r} ({entry.title!r})"
            LOGGER.warning(message)
            warnings.append(message)
            continue

        while stack and not is_proper_prefix(nodes[stack[-1]].segments, segments):
            stack.pop()
        parent = stack[-1] if stack else ROOT_INDEX

        node = TocNode(
            index=len(nodes),
            identifier=entry.identifier,
            segments=segments,
            title=entry.title or "",
            declared_depth=_declared_depth(entry.depth),
            order=sort_order(entry.order),
            parent=parent,
        )
        nodes.append(node)
        nodes[parent].children.append(node.index)
        by_segments[segments] = node.index
        stack.append(node.index)

    for node in nodes:
        node.children.sort(key=lambda child: _child_sort_key(nodes[child]))

    if nest_by_depth:
        # Pre-order, so a node's child list is final (adoptions included) when it is visited.
        pending = [ROOT_INDEX]
        while pending:
            index = pending.pop()
            _nest_siblings_by_depth(nodes, index)
            pending.extend(nodes[index].children)

    tree = TocTree(nodes=nodes, warnings=warnings)
    tree.validate()
    LOGGER.debug("Built TOC tree with %d node(s), %d warning(s)", len(nodes) - 1, len(warnings))
    return tree


def _nest_siblings_by_depth(nodes: List[TocNode], parent_index: int) -> None:
    """Re-parent deeper siblings under the preceding shallower sibling."""
    parent = nodes[parent_index]
    kept: List[int] = []
    adopted: Dict[int, List[int]] = {}
    open_levels: List[int] = []

    for child_index in parent.children:
        child = nodes[child_index]
        depth = child.declared_depth
        if depth is None:
            open_levels = []
            kept.append(child_index)
            continue

        while open_levels and nodes[open_levels[-1]].declared_depth >= depth:
            open_levels.pop()
        if open_levels:
            adopter = open_levels[-1]
            child.parent = adopter
            adopted.setdefault(adopter, []).append(child_index)
        else:
            kept.append(child_index)
        open_levels.append(child_index)

    if not adopted:
        return
    parent.children = kept
    for adopter, children in adopted.items():
        nodes[adopter].children.extend(children)
        nodes[adopter].children.sort(key=lambda child: _child_sort_key(nodes[child]))
