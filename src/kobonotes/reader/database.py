"""Read-only access to a Kobo ``KoboReader.sqlite`` database."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from kobonotes.models import Book, ContentEntry, Highlight
from kobonotes.utils.identifiers import extract_depth, strip_depth_suffix

LOGGER = logging.getLogger(__name__)

CONTENT_TYPE_BOOK = 6
CONTENT_TYPE_TOC = 899

REQUIRED_COLUMNS: Mapping[str, frozenset[str]] = {
    "content": frozenset(
        {"ContentID", "ContentType", "BookID", "Title", "Attribution", "VolumeIndex"}
    ),
    "Bookmark": frozenset(
        {"VolumeID", "ContentID", "Text", "Annotation", "ChapterProgress", "DateCreated"}
    ),
}


class KoboDatabaseError(Exception):
    """Base class for failures reading a Kobo database."""


class SourceAccessError(KoboDatabaseError):
    """The database file is missing, unreadable or cannot be opened."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Cannot open database {path}: {reason}")
        self.path = path
        self.reason = reason


class SchemaMismatchError(KoboDatabaseError):
    """The file is not a database with the Kobo schema."""


def _connect_read_only(path: Path) -> sqlite3.Connection:
    # immutable=1 keeps SQLite from creating -wal/-shm/-journal files or taking locks.
    uri = f"{path.resolve().as_uri()}?mode=ro&immutable=1"
    return sqlite3.connect(uri, uri=True)


class KoboDatabase:
    """Read-only view over the rows kobonotes needs from a Kobo database."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        if not self.db_path.exists():
            raise SourceAccessError(self.db_path, "file not found")
        if not self.db_path.is_file():
            raise SourceAccessError(self.db_path, "not a regular file")

        try:
            self._conn = _connect_read_only(self.db_path)
        except sqlite3.Error as exc:
            raise SourceAccessError(self.db_path, str(exc)) from exc
        self._conn.row_factory = sqlite3.Row

        try:
            self._check_schema()
        except BaseException:
            self._conn.close()
            raise

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "KoboDatabase":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _check_schema(self) -> None:
        self._columns: Dict[str, set[str]] = {}
        for table, required in REQUIRED_COLUMNS.items():
            try:
                columns = {row["name"] for row in self._conn.execute(f"PRAGMA table_info({table})")}
            except sqlite3.DatabaseError as exc:
                raise SchemaMismatchError(f"{self.db_path} is not a Kobo database: {exc}") from exc
            if not columns:
                raise SchemaMismatchError(f"{self.db_path} has no '{table}' table")
            missing = sorted(required - columns)
            if missing:
                raise SchemaMismatchError(
                    f"{self.db_path}: table '{table}' lacks columns {', '.join(missing)}"
                )
            self._columns[table] = columns

    def _query(self, sql: str, params: tuple = ()) -> List[sqlite3.Row]:
        try:
            return self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise KoboDatabaseError(f"Query failed on {self.db_path}: {exc}") from exc

    def list_books(self) -> List[Book]:
        rows = self._query(
            """
            SELECT ContentID, Title, Attribution
            FROM content
            WHERE BookID IS NULL AND ContentType = ?
            ORDER BY Title, ContentID
            """,
            (CONTENT_TYPE_BOOK,),
        )
        return [
            Book(
                content_id=row["ContentID"],
                title=row["Title"] or row["ContentID"],
                author=row["Attribution"] or None,
            )
            for row in rows
        ]

    def list_content_entries(self, book_id: str) -> List[ContentEntry]:
        """TOC rows of a book in ``VolumeIndex`` order."""
        rows = self._query(
            """
            SELECT ContentID, Title, VolumeIndex
            FROM content
            WHERE BookID = ? AND ContentType = ?
            ORDER BY VolumeIndex, ContentID
            """,
            (book_id, CONTENT_TYPE_TOC),
        )
        entries: List[ContentEntry] = []
        for row in rows:
            content_id = row["ContentID"]
            if not isinstance(content_id, str):
                LOGGER.debug("Skipping TOC row with non-text ContentID %r", content_id)
                continue
            entries.append(
                ContentEntry(
                    identifier=strip_depth_suffix(content_id),
                    title=row["Title"] or "",
                    depth=extract_depth(content_id),
                    order=row["VolumeIndex"],
                    content_id=content_id,
                )
            )
        return entries

    def list_highlights(self, book_id: str) -> List[Highlight]:
        """Highlights of a book in document order."""
        bookmark_id = "BookmarkID" if "BookmarkID" in self._columns["Bookmark"] else "NULL"
        rows = self._query(
            f"""
            SELECT {bookmark_id} AS BookmarkID, Text, Annotation, ContentID,
                   ChapterProgress, DateCreated
            FROM Bookmark
            WHERE VolumeID = ?
              AND Text IS NOT NULL
              AND Text != ''
            ORDER BY ContentID, ChapterProgress
            """,
            (book_id,),
        )
        return [
            Highlight(
                text=row["Text"],
                location=row["ContentID"],
                annotation=row["Annotation"],
                created=row["DateCreated"],
                position=row["ChapterProgress"],
                bookmark_id=row["BookmarkID"],
            )
            for row in rows
        ]

    def count_highlights(self) -> Dict[str, int]:
        """Number of non-empty highlights per volume id."""
        rows = self._query(
            """
            SELECT VolumeID, COUNT(*) AS total
            FROM Bookmark
            WHERE Text IS NOT NULL AND Text != ''
            GROUP BY VolumeID
            """
        )
        return {row["VolumeID"]: row["total"] for row in rows}

    def find_books(self, title_filter: Optional[str]) -> List[Book]:
        """Books whose title contains ``title_filter`` (case-insensitive)."""
        books = self.list_books()
        if not title_filter:
            return books
        needle = title_filter.casefold()
        return [book for book in books if needle in book.title.casefold()]
