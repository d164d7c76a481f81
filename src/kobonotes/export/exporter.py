"""Per-book export pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence, Set

from kobonotes.config import AppConfig
from kobonotes.export.assembler import assemble_document
from kobonotes.export.markdown import render_markdown
from kobonotes.models import Book, BookDocument
from kobonotes.reader.database import KoboDatabase, KoboDatabaseError
from kobonotes.toc.builder import build_toc_tree
from kobonotes.toc.matcher import attach_highlights
from kobonotes.utils.files import sanitize_filename, unique_output_path

LOGGER = logging.getLogger(__name__)


def build_book_document(
    db: KoboDatabase, book: Book, config: Optional[AppConfig] = None
) -> BookDocument:
    """Read one book's rows and reconcile its highlights with its TOC."""
    config = config or AppConfig()
    highlights = db.list_highlights(book.content_id)
    entries = db.list_content_entries(book.content_id) if highlights else []

    tree = build_toc_tree(
        entries,
        root_id=book.content_id,
        root_title=book.title,
        nest_by_depth=config.nest_by_depth,
    )
    matches = attach_highlights(tree, highlights)
    return assemble_document(
        book,
        tree,
        matches,
        max_depth=config.max_depth,
        uncategorized_title=config.uncategorized_title,
    )


@dataclass(slots=True)
class ExportStats:
    exported: int = 0
    skipped: int = 0
    failed: int = 0
    highlights: int = 0
    unmatched: int = 0
    warnings: int = 0
    written_files: list[Path] = field(default_factory=list)


class Exporter:
    """Writes one Markdown file per book that has highlights."""

    def __init__(self, db: KoboDatabase, output_dir: Path, config: Optional[AppConfig] = None) -> None:
        self.db = db
        self.output_dir = Path(output_dir)
        self.config = config or AppConfig()

    def export(self, books: Optional[Sequence[Book]] = None) -> ExportStats:
        """Export ``books`` (default: every book matching the configured filter)."""
        if books is None:
            books = self.db.find_books(self.config.book_filter)

        stats = ExportStats()
        taken: Set[Path] = set()
        self.output_dir.mkdir(parents=True, exist_ok=True)

        for book in books:
            try:
                document = build_book_document(self.db, book, self.config)
                if not document.has_highlights:
                    LOGGER.debug("No highlights for %s", book.title)
                    stats.skipped += 1
                    continue

                path = unique_output_path(self.output_dir, sanitize_filename(book.title), taken)
                path.write_text(render_markdown(document), encoding="utf-8")
            except KoboDatabaseError:
                raise
            except Exception as e:
                LOGGER.error(f"Failed to export {book.title}: {e}")
                stats.failed += 1
                continue

            LOGGER.info(
                "Exported: %s (%d highlights, %d uncategorized)",
                book.title,
                document.highlight_count,
                len(document.uncategorized),
            )
            if document.warnings:
                LOGGER.warning("%s: %d data anomalies recovered", book.title, document.warnings)

            stats.exported += 1
            stats.highlights += document.highlight_count
            stats.unmatched += len(document.uncategorized)
            stats.warnings += document.warnings
            stats.written_files.append(path)

        return stats
