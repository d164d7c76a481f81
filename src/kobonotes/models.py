"""Core kobonotes data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(slots=True, frozen=True)
class Book:
    """One volume of the library."""

    content_id: str
    title: str
    author: Optional[str] = None


@dataclass(slots=True, frozen=True)
class ContentEntry:
    """A TOC row of a book: the book itself, a chapter or a sub-section.

    ``identifier`` is the hierarchical id used for parentage and matching (the
    depth suffix of Kobo TOC rows already stripped); ``content_id`` keeps the
    raw row id.
    """

    identifier: str
    title: str = ""
    depth: Optional[int] = None
    order: Optional[float] = None
    content_id: Optional[str] = None


@dataclass(slots=True, frozen=True)
class Highlight:
    """A highlighted passage with its optional note."""

    text: str
    location: Optional[str]
    annotation: Optional[str] = None
    created: Optional[str] = None
    position: Optional[float] = None
    bookmark_id: Optional[str] = None

    @property
    def note(self) -> Optional[str]:
        if self.annotation and self.annotation.strip():
            return self.annotation.strip()
        return None


@dataclass(slots=True)
class Section:
    """A heading of the exported document and the highlights directly under it."""

    title: str
    depth: int
    highlights: List[Highlight] = field(default_factory=list)


@dataclass(slots=True)
class BookDocument:
    """Everything needed to write one book's notes."""

    title: str
    author: Optional[str]
    sections: List[Section] = field(default_factory=list)
    uncategorized: List[Highlight] = field(default_factory=list)
    uncategorized_title: str = "Uncategorized"
    warnings: int = 0

    @property
    def highlight_count(self) -> int:
        return sum(len(section.highlights) for section in self.sections) + len(self.uncategorized)

    @property
    def has_highlights(self) -> bool:
        return self.highlight_count > 0
