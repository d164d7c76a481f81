"""Markdown rendering of assembled book documents."""

from __future__ import annotations

from typing import List

from kobonotes.models import BookDocument, Highlight


def format_highlight(highlight: Highlight) -> str:
    lines: List[str] = [f"> {line}" for line in highlight.text.splitlines()] or [">"]
    out = "\n".join(lines) + "\n"

    if highlight.note:
        out += f"\n**Note:** {highlight.note}\n"
    if highlight.created:
        out += f"\n*{highlight.created}*\n"
    return out


def render_markdown(document: BookDocument) -> str:
    """Render a book as Markdown; ``#`` is the title, sections start at ``##``."""
    parts: List[str] = [f"# {' '.join(document.title.split())}\n\n"]
    if document.author and document.author.strip():
        parts.append(f"**Author:** {document.author.strip()}\n\n")
    parts.append("---\n\n")

    for section in document.sections:
        title = " ".join(section.title.split())
        parts.append(f"{'#' * (section.depth + 1)} {title}\n\n")
        for highlight in section.highlights:
            parts.append(format_highlight(highlight))
            parts.append("\n")

    if document.uncategorized:
        parts.append(f"## {document.uncategorized_title}\n\n")
        for highlight in document.uncategorized:
            parts.append(format_highlight(highlight))
            parts.append("\n")

    return "".join(parts)
