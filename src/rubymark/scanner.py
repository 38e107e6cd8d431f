from __future__ import annotations

import re

from .escapes import LINE_BREAKS, find_close_paren, find_open_bracket, is_escaped
from .model import Slot

__all__ = [
    "find_operator",
    "operator_at",
    "locate_base",
    "find_close_paren",
    "OPERATOR_LENGTH",
]

OPERATOR_LENGTH = 3  # "^^(" / "^_("
_OPERATOR_RE = re.compile(r"\^[\^_]\(")
_CLOSING_TAG_RE = re.compile(r"</([A-Za-z][A-Za-z0-9-]*)\s*>$")
_BARE_STOP_CHARS = "<>"
_MACRO_TAIL_RE = re.compile(r"\{\{renderer\s+:ruby,[^{}]*\}\}$")


def find_operator(text: str, start: int) -> int:
    """Return the index of the next unescaped operator token at or after ``start``, or -1."""
    pos = start
    while True:
        match = _OPERATOR_RE.search(text, pos)
        if match is None:
            return -1
        if not is_escaped(text, match.start()):
            return match.start()
        pos = match.start() + 1


def operator_at(text: str, index: int) -> Slot | None:
    if text.startswith("^^(", index):
        return Slot.OVER
    if text.startswith("^_(", index):
        return Slot.UNDER
    return None


def _line_start(text: str, end: int) -> int:
    return max(text.rfind(brk, 0, end) for brk in LINE_BREAKS) + 1


def _element_start(text: str, end: int) -> int | None:
    """
    Locate the opening tag of the element whose closing tag ends at ``end``.

    Only the current line is searched; nested elements of the same name are
    balanced so ``<ruby><ruby>…</ruby>…</ruby>`` resolves to the outer one.
    """
    line_start = _line_start(text, end)
    segment = text[line_start:end]
    closing = _CLOSING_TAG_RE.search(segment)
    if closing is None:
        return None
    name = re.escape(closing.group(1))
    tag_re = re.compile(rf"<(/?){name}\b[^>]*>", re.IGNORECASE)
    depth = 0
    for tag in reversed(list(tag_re.finditer(segment))):
        if tag.group(1):
            depth += 1
        else:
            depth -= 1
        if depth == 0:
            return line_start + tag.start()
    return None


def locate_base(text: str, op_start: int) -> tuple[int, str] | None:
    """
    Find the base span that precedes the operator at ``op_start``.

    Returns ``(base_start, base)`` where ``base_start`` is the index where the
    replaced region begins (the ``[`` of a bracketed base). ``None`` means the
    bracket or element could not be matched on the same line.
    """
    if op_start <= 0:
        return None
    prev = op_start - 1
    ch = text[prev]
    if ch == "]" and not is_escaped(text, prev):
        open_idx = find_open_bracket(text, prev)
        if open_idx < 0:
            return None
        return open_idx, text[open_idx + 1 : prev]
    if ch == ">":
        start = _element_start(text, op_start)
        if start is None:
            return None
        return start, text[start:op_start]

    k = prev
    while k >= 0:
        ch = text[k]
        if ch.isspace() or ch in _BARE_STOP_CHARS:
            break
        if ch == "}" and _MACRO_TAIL_RE.search(text, 0, k + 1):
            # A macro call emitted by an earlier pass ends here.
            break
        if ch in "[]" and not is_escaped(text, k):
            break
        k -= 1
    return k + 1, text[k + 1 : op_start]
