"""Tests for document assembly."""

from __future__ import annotations

import pytest

from kobonotes.export.assembler import assemble_document
from kobonotes.models import Book, ContentEntry, Highlight
from kobonotes.toc.builder import build_toc_tree
from kobonotes.toc.matcher import attach_highlights

BOOK = Book(content_id="b1", title="The Book", author="Someone")


def assemble(entries, highlights, **kwargs):
    tree = build_toc_tree(entries, root_id=BOOK.content_id, root_title=BOOK.title)
    return assemble_document(BOOK, tree, attach_highlights(tree, highlights), **kwargs)


def outline(document) -> list[tuple[str, int, list[str]]]:
    return [(s.title, s.depth, [h.text for h in s.highlights]) for s in document.sections]


class TestAssembleDocument:
    """Test assemble_document function."""

    def test_scenario_with_root_row(self) -> None:
        """Chapter highlights go under the chapter, root-only ones are uncategorized."""
        document = assemble(
            [
                ContentEntry(identifier="b1", title="Book Root", order=0),
                ContentEntry(identifier="b1/c1", title="Chapter 1", order=1),
                ContentEntry(identifier="b1/c2", title="Chapter 2", order=2),
            ],
            [
                Highlight(text="H1", location="b1/c1/frag3"),
                Highlight(text="H2", location="b1/zzz"),
            ],
        )

        assert outline(document) == [("Chapter 1", 1, ["H1"])]
        assert [h.text for h in document.uncategorized] == ["H2"]
        assert document.title == "The Book"
        assert document.author == "Someone"

    def test_scenario_with_foreign_book_id(self) -> None:
        """The book row is the root even when the book's id is not a TOC id."""
        book = Book(content_id="vol-1", title="The Book")
        tree = build_toc_tree(
            [
                ContentEntry(identifier="b1", title="Book Root", order=0),
                ContentEntry(identifier="b1/c1", title="Chapter 1", order=1),
                ContentEntry(identifier="b1/c2", title="Chapter 2", order=2),
            ],
            root_id=book.content_id,
            root_title=book.title,
        )
        highlights = [
            Highlight(text="H1", location="b1/c1/frag3"),
            Highlight(text="H2", location="b1/zzz"),
        ]

        document = assemble_document(book, tree, attach_highlights(tree, highlights))

        assert outline(document) == [("Chapter 1", 1, ["H1"])]
        assert [h.text for h in document.uncategorized] == ["H2"]

    def test_prunes_branches_without_highlights(self) -> None:
        document = assemble(
            [
                ContentEntry(identifier="b1/p1", title="Part 1", order=0),
                ContentEntry(identifier="b1/p1/c1", title="Chapter 1", order=1),
                ContentEntry(identifier="b1/p1/c1/s1", title="Section 1", order=2),
                ContentEntry(identifier="b1/p1/c2", title="Chapter 2", order=3),
                ContentEntry(identifier="b1/p2", title="Part 2", order=4),
                ContentEntry(identifier="b1/p2/c3", title="Chapter 3", order=5),
            ],
            [Highlight(text="deep", location="b1/p1/c1/s1/x")],
        )

        assert outline(document) == [
            ("Part 1", 1, []),
            ("Chapter 1", 2, []),
            ("Section 1", 3, ["deep"]),
        ]
        assert document.uncategorized == []

    def test_parent_and_child_highlights_in_document_order(self) -> None:
        document = assemble(
            [
                ContentEntry(identifier="b1/c1", title="Chapter 1", order=1),
                ContentEntry(identifier="b1/c1/s1", title="Section 1", order=2),
                ContentEntry(identifier="b1/c2", title="Chapter 2", order=3),
            ],
            [
                Highlight(text="two", location="b1/c2"),
                Highlight(text="sec", location="b1/c1/s1"),
                Highlight(text="one", location="b1/c1"),
            ],
        )

        assert outline(document) == [
            ("Chapter 1", 1, ["one"]),
            ("Section 1", 2, ["sec"]),
            ("Chapter 2", 1, ["two"]),
        ]

    def test_depth_is_clamped(self) -> None:
        entries = [
            ContentEntry(identifier="b1/" + "/".join(f"l{i}" for i in range(1, n + 1)), title=f"L{n}", order=n)
            for n in range(1, 5)
        ]
        entries.append(ContentEntry(identifier="b1/l9", title="Other", order=9))
        document = assemble(entries, [Highlight(text="x", location="b1/l1/l2/l3/l4/z")], max_depth=2)

        assert [(s.title, s.depth) for s in document.sections] == [
            ("L1", 1),
            ("L2", 2),
            ("L3", 2),
            ("L4", 2),
        ]

    def test_invalid_max_depth(self) -> None:
        with pytest.raises(ValueError):
            assemble([], [], max_depth=0)

    def test_untitled_nodes_get_a_heading(self) -> None:
        document = assemble(
            [ContentEntry(identifier="b1/c1", title="  ", order=1)],
            [Highlight(text="x", location="b1/c1")],
        )
        assert outline(document) == [("Untitled", 1, ["x"])]

    def test_whitespace_in_titles_is_collapsed(self) -> None:
        document = assemble(
            [ContentEntry(identifier="b1/c1", title="Chapter\n  1\t", order=1)],
            [Highlight(text="x", location="b1/c1")],
        )
        assert outline(document) == [("Chapter 1", 1, ["x"])]

    def test_no_highlights_produces_empty_document(self) -> None:
        document = assemble([ContentEntry(identifier="b1/c1", title="C", order=1)], [])

        assert document.sections == []
        assert document.uncategorized == []
        assert not document.has_highlights

    def test_only_unmatched(self) -> None:
        document = assemble([], [Highlight(text="x", location="elsewhere")], uncategorized_title="Misc")

        assert document.sections == []
        assert document.uncategorized_title == "Misc"
        assert document.highlight_count == 1

    def test_warnings_count_anomalies(self) -> None:
        document = assemble(
            [
                ContentEntry(identifier="b1/c1", title="C", order=1),
                ContentEntry(identifier="b1/c1", title="dup", order=2),
            ],
            [Highlight(text="x", location=None)],
        )
        assert document.warnings == 2

    def test_depth_nested_kobo_rows(self) -> None:
        document = assemble(
            [
                ContentEntry(identifier="b1!part1.xhtml", title="Part One", depth=1, order=0),
                ContentEntry(identifier="b1!ch1.xhtml", title="Chapter 1", depth=2, order=1),
                ContentEntry(identifier="b1!ch2.xhtml", title="Chapter 2", depth=2, order=2),
            ],
            [Highlight(text="x", location="b1!ch2.xhtml")],
        )
        assert outline(document) == [("Part One", 1, []), ("Chapter 2", 2, ["x"])]
