"""Application configuration defaults."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from kobonotes.export.assembler import DEFAULT_MAX_DEPTH, UNCATEGORIZED
from kobonotes.utils.files import iter_candidate_db_paths


def _get_default_db_path() -> Path | None:
    """Find a Kobo database on a mounted reader or in Kobo Desktop's data directory."""
    for candidate in iter_candidate_db_paths():
        if candidate.is_file():
            return candidate
    return None


@dataclass(slots=True)
class AppConfig:
    db_path: Path | None = None
    output_dir: Path = Path("highlights")
    max_depth: int = DEFAULT_MAX_DEPTH
    nest_by_depth: bool = True
    uncategorized_title: str = UNCATEGORIZED
    book_filter: str | None = None

    def resolve_db_path(self, base_dir: Path | None = None) -> Path | None:
        if self.db_path is None:
            self.db_path = _get_default_db_path()
        if self.db_path is None:
            return None
        if Path(self.db_path).is_absolute() or base_dir is None:
            return Path(self.db_path)
        return base_dir / self.db_path

    def resolve_output_dir(self, base_dir: Path | None = None) -> Path:
        if Path(self.output_dir).is_absolute() or base_dir is None:
            return Path(self.output_dir)
        return base_dir / self.output_dir
