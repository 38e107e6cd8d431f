from __future__ import annotations

import re

__all__ = [
    "is_escaped",
    "unescape",
    "escape_annotation",
    "escape_base",
    "split_unescaped_pipe",
    "find_close_paren",
    "find_open_bracket",
]

_ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)
_ANNOTATION_SPECIALS = ("\\", "|", ")")
_BASE_SPECIALS = ("\\", "[", "]")
LINE_BREAKS = ("\n", "\r")


def is_escaped(text: str, index: int) -> bool:
    """Return True when the character at ``index`` follows an odd run of backslashes."""
    backslashes = 0
    pos = index - 1
    while pos >= 0 and text[pos] == "\\":
        backslashes += 1
        pos -= 1
    return backslashes % 2 == 1


def unescape(text: str) -> str:
    return _ESCAPE_RE.sub(r"\1", text)


def _escape(text: str, specials: tuple[str, ...]) -> str:
    out: list[str] = []
    for ch in text:
        if ch in specials:
            out.append("\\")
        out.append(ch)
    return "".join(out)


def escape_annotation(text: str) -> str:
    """Escape characters that would end or split annotation content."""
    return _escape(text, _ANNOTATION_SPECIALS)


def escape_base(text: str) -> str:
    """Escape characters that would end a bracketed base or open a nested one."""
    return _escape(text, _BASE_SPECIALS)


def split_unescaped_pipe(text: str) -> list[str]:
    parts: list[str] = []
    start = 0
    for idx, ch in enumerate(text):
        if ch == "|" and not is_escaped(text, idx):
            parts.append(text[start:idx])
            start = idx + 1
    parts.append(text[start:])
    return parts


def find_close_paren(text: str, start: int) -> int:
    """Index of the next unescaped ``)`` at or after ``start`` on the same line, or -1."""
    for idx in range(start, len(text)):
        ch = text[idx]
        if ch in LINE_BREAKS:
            return -1
        if ch == ")" and not is_escaped(text, idx):
            return idx
    return -1


def find_open_bracket(text: str, close_index: int) -> int:
    """Index of the nearest unescaped ``[`` before ``close_index`` on the same line, or -1."""
    for idx in range(close_index - 1, -1, -1):
        ch = text[idx]
        if ch in LINE_BREAKS:
            return -1
        if ch == "[" and not is_escaped(text, idx):
            return idx
    return -1
