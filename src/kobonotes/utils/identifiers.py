"""Helpers for Kobo content identifiers.

Kobo identifies every chapter, TOC entry and highlight anchor with a
path-like ``ContentID`` such as ``book.epub!OPS!xhtml/Chapter01.xhtml#ch01_4``.
TOC rows additionally carry a trailing ``-N`` suffix holding their depth in
the table of contents.
"""

from __future__ import annotations

import re
from typing import Optional, Sequence, Tuple

_SEPARATORS = re.compile(r"[/!#]")
_DEPTH_SUFFIX = re.compile(r"-(\d+)$")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")

Segments = Tuple[str, ...]


class MalformedIdentifierError(ValueError):
    """Raised when an identifier cannot be split into path segments."""


def strip_depth_suffix(content_id: str) -> str:
    """Remove the trailing ``-N`` depth suffix from a TOC ContentID.

    ``"...xhtml#chapter01_4-2"`` becomes ``"...xhtml#chapter01_4"``. Ids without
    an all-digit suffix are returned unchanged.
    """
    return _DEPTH_SUFFIX.sub("", content_id, count=1)


def extract_depth(content_id: str) -> Optional[int]:
    """Return the TOC depth encoded in the ``-N`` suffix, or ``None``."""
    match = _DEPTH_SUFFIX.search(content_id)
    if match is None:
        return None
    return int(match.group(1))


def split_identifier(identifier: object) -> Segments:
    """Split an identifier into its non-empty path segments."""
    if not isinstance(identifier, str):
        raise MalformedIdentifierError(f"Identifier is not a string: {identifier!r}")
    if not identifier.strip():
        raise MalformedIdentifierError("Identifier is blank")
    if _CONTROL_CHARS.search(identifier):
        raise MalformedIdentifierError(f"Identifier contains control characters: {identifier!r}")

    segments = tuple(part for part in _SEPARATORS.split(identifier) if part)
    if not segments:
        raise MalformedIdentifierError(f"Identifier has no path segments: {identifier!r}")
    return segments


def is_prefix(prefix: Sequence[str], segments: Sequence[str]) -> bool:
    """Whether ``prefix`` is a (not necessarily proper) segment prefix of ``segments``."""
    return len(prefix) <= len(segments) and tuple(segments[: len(prefix)]) == tuple(prefix)


def is_proper_prefix(prefix: Sequence[str], segments: Sequence[str]) -> bool:
    return len(prefix) < len(segments) and is_prefix(prefix, segments)
