"""Turn a matched TOC tree into the ordered sections of one book."""

from __future__ import annotations

from typing import Dict

from kobonotes.models import Book, BookDocument, Section
from kobonotes.toc.matcher import MatchResult
from kobonotes.toc.tree import ROOT_INDEX, TocTree

DEFAULT_MAX_DEPTH = 5
UNTITLED = "Untitled"
UNCATEGORIZED = "Uncategorized"


def _subtree_counts(tree: TocTree, matches: MatchResult) -> Dict[int, int]:
    counts = {index: len(matches.highlights_for(index)) for index in range(len(tree))}
    # Reversed pre-order visits every child before its parent.
    for index, _ in reversed(list(tree.walk())):
        parent = tree.nodes[index].parent
        if parent is not None:
            counts[parent] += counts[index]
    return counts


def assemble_document(
    book: Book,
    tree: TocTree,
    matches: MatchResult,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
    uncategorized_title: str = UNCATEGORIZED,
    untitled: str = UNTITLED,
) -> BookDocument:
    """Walk the tree depth-first, keeping only branches that hold highlights."""
    if max_depth < 1:
        raise ValueError("max_depth must be at least 1")

    counts = _subtree_counts(tree, matches)
    sections = []
    for index, depth in tree.walk():
        if index == ROOT_INDEX or not counts[index]:
            continue
        node = tree.nodes[index]
        sections.append(
            Section(
                title=" ".join((node.title or "").split()) or untitled,
                depth=min(depth, max_depth),
                highlights=list(matches.highlights_for(index)),
            )
        )

    return BookDocument(
        title=book.title,
        author=book.author,
        sections=sections,
        uncategorized=list(matches.unmatched),
        uncategorized_title=uncategorized_title,
        warnings=len(tree.warnings) + matches.malformed,
    )

