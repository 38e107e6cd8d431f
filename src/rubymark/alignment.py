from __future__ import annotations

import re

__all__ = ["align", "split_segments"]

_WHITESPACE_RE = re.compile(r"\s")


def split_segments(annotation: str) -> list[str]:
    return annotation.split()


def align(base: str, annotation: str) -> list[tuple[str, str]] | None:
    """
    Pair each base character with one whitespace-separated annotation segment.

    Both arguments are already unescaped. A segment equal to its character is
    hidden (empty string) so the character keeps its slot without repeating
    itself. Returns None when the annotation has no whitespace, when the
    segment count differs from the character count, or when the base carries
    embedded tags.
    """
    if not _WHITESPACE_RE.search(annotation):
        return None
    if "<" in base:
        return None
    chars = list(base)
    segments = split_segments(annotation)
    if not chars or len(segments) != len(chars):
        return None
    return [(char, "" if char == segment else segment) for char, segment in zip(chars, segments)]
