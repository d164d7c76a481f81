"""Shared fixtures: small databases with the Kobo schema."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Iterable, Sequence

import pytest

BOOK_A = "file:///mnt/onboard/alpha.epub"
BOOK_B = "file:///mnt/onboard/beta.epub"


def create_kobo_db(
    path: Path,
    *,
    content: Iterable[Sequence] = (),
    bookmarks: Iterable[Sequence] = (),
) -> Path:
    """Create a database with the Kobo ``content`` and ``Bookmark`` tables.

    ``content`` rows are ``(ContentID, ContentType, BookID, Title, Attribution,
    VolumeIndex)``; ``bookmarks`` rows are ``(BookmarkID, VolumeID, ContentID,
    Text, Annotation, ChapterProgress, DateCreated)``.
    """
    conn = sqlite3.connect(path)
    try:
        conn.execute(
            """
            CREATE TABLE content (
                ContentID TEXT NOT NULL,
                ContentType INTEGER,
                BookID TEXT,
                Title TEXT,
                Attribution TEXT,
                VolumeIndex INTEGER
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE Bookmark (
                BookmarkID TEXT NOT NULL,
                VolumeID TEXT,
                ContentID TEXT,
                Text TEXT,
                Annotation TEXT,
                ChapterProgress REAL,
                DateCreated TEXT
            )
            """
        )
        conn.executemany("INSERT INTO content VALUES (?, ?, ?, ?, ?, ?)", list(content))
        conn.executemany("INSERT INTO Bookmark VALUES (?, ?, ?, ?, ?, ?, ?)", list(bookmarks))
        conn.commit()
    finally:
        conn.close()
    return path


LIBRARY_CONTENT = [
    (BOOK_A, 6, None, "Alpha Book", "Ann Author", -1),
    (BOOK_B, 6, None, "Beta Book", None, -1),
    (f"{BOOK_A}!OPS!part1.xhtml-1", 899, BOOK_A, "Part One", None, 0),
    (f"{BOOK_A}!OPS!ch1.xhtml-2", 899, BOOK_A, "Chapter 1", None, 1),
    (f"{BOOK_A}!OPS!ch1.xhtml#s1-3", 899, BOOK_A, "Section 1.1", None, 2),
    (f"{BOOK_A}!OPS!ch2.xhtml-2", 899, BOOK_A, "Chapter 2", None, 3),
    (f"{BOOK_A}!OPS!ch3.xhtml-1", 899, BOOK_A, "Chapter 3", None, 4),
    # Chapter file rows are not part of the TOC.
    (f"{BOOK_A}!OPS!ch1.xhtml", 9, BOOK_A, "ch1", None, 1),
    (f"{BOOK_B}!OPS!intro.xhtml-1", 899, BOOK_B, "Intro", None, 0),
]

LIBRARY_BOOKMARKS = [
    ("bm1", BOOK_A, f"{BOOK_A}!OPS!ch1.xhtml#s1", "Deep thought", None, 0.5, "2024-01-02T00:00:00"),
    ("bm2", BOOK_A, f"{BOOK_A}!OPS!ch1.xhtml", "Chapter one text", "nice", 0.1, "2024-01-01T00:00:00"),
    ("bm3", BOOK_A, f"{BOOK_A}!OPS!appendix.xhtml", "Lost line", None, 0.9, "2024-01-03T00:00:00"),
    ("bm4", BOOK_A, f"{BOOK_A}!OPS!ch2.xhtml", "", None, 0.2, "2024-01-04T00:00:00"),
    ("bm5", BOOK_A, f"{BOOK_A}!OPS!ch2.xhtml", None, None, 0.3, "2024-01-05T00:00:00"),
]


@pytest.fixture
def kobo_db(tmp_path: Path) -> Path:
    """A library with one annotated book and one book without highlights."""
    return create_kobo_db(
        tmp_path / "KoboReader.sqlite",
        content=LIBRARY_CONTENT,
        bookmarks=LIBRARY_BOOKMARKS,
    )
