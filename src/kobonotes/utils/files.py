"""Utility helpers for working with files."""

from __future__ import annotations

import getpass
import sys
from pathlib import Path
from typing import Iterator, Set

KOBO_DB_NAMES = ("KoboReader.sqlite", "Kobo.sqlite", "Book.sqlite")


def sanitize_filename(name: str) -> str:
    """Keep alphanumerics, spaces and dashes; fall back to ``untitled``."""
    cleaned = "".join(ch for ch in name if ch.isalnum() or ch in " -").strip()
    return cleaned or "untitled"


def unique_output_path(directory: Path, stem: str, taken: Set[Path], *, suffix: str = ".md") -> Path:
    """Return ``directory/stem.md``, numbering it if already used in this run."""
    candidate = directory / f"{stem}{suffix}"
    counter = 2
    while candidate in taken:
        candidate = directory / f"{stem} ({counter}){suffix}"
        counter += 1
    taken.add(candidate)
    return candidate


def iter_candidate_db_paths() -> Iterator[Path]:
    """Yield the places a Kobo database usually lives, most specific first."""
    mounts = [Path("/Volumes/KOBOeReader")]
    try:
        user = getpass.getuser()
    except (KeyError, OSError):
        user = None
    if user:
        mounts.append(Path("/media") / user / "KOBOeReader")
        mounts.append(Path("/run/media") / user / "KOBOeReader")
    for mount in mounts:
        yield mount / ".kobo" / "KoboReader.sqlite"

    if sys.platform == "darwin":
        desktop = Path.home() / "Library" / "Application Support" / "Kobo" / "Kobo Desktop Edition"
    elif sys.platform.startswith("win"):
        desktop = Path.home() / "AppData" / "Local" / "Kobo" / "Kobo Desktop Edition"
    else:
        # Kobo Desktop only exists for macOS and Windows.
        return
    for name in KOBO_DB_NAMES:
        yield desktop / name
