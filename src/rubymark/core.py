from __future__ import annotations

import re
from functools import partial
from typing import Sequence

from .logging_utils import debug_log
from .model import Slot
from .protect import protect_code
from .render import RenderOptions, render_node
from .resolver import resolve_levels, resolve_occurrence
from .reverse import (
    MACRO_NAME,
    Emitter,
    looks_rendered,
    node_to_macro,
    rendered_to_macro,
    rendered_to_markup,
)
from .scanner import OPERATOR_LENGTH, find_close_paren, find_operator, locate_base, operator_at

__all__ = [
    "MAX_PASSES",
    "MACRO_RE",
    "detect_markup",
    "detect_any_annotation",
    "markup_to_rendered",
    "markup_to_macro",
    "macro_to_markup",
    "macro_to_rendered",
    "render_macro_call",
    "any_to_markup",
    "any_to_macro",
    "any_to_rendered",
]

MAX_PASSES = 5
MACRO_RE = re.compile(r"\{\{renderer\s+:ruby,\s*([^,}]+),\s*([^,}]+)(?:,\s*([^}]+))?\}\}")


def detect_markup(text: str) -> bool:
    return find_operator(text, 0) >= 0


def detect_any_annotation(text: str) -> bool:
    return detect_markup(text) or looks_rendered(text) or MACRO_RE.search(text) is not None


def _scan_pass(text: str, emit: Emitter) -> str:
    """
    One left-to-right pass replacing every resolvable operator occurrence.

    ``cursor`` marks the end of the text already copied or claimed; a base
    reaching back before it belongs to an earlier match and is passed
    through untouched.
    """
    out: list[str] = []
    cursor = 0
    length = len(text)
    while cursor < length:
        op_start = find_operator(text, cursor)
        if op_start < 0:
            out.append(text[cursor:])
            break
        side = operator_at(text, op_start)
        located = locate_base(text, op_start)
        if side is None or located is None or located[0] < cursor or not located[1]:
            out.append(text[cursor : op_start + 1])
            cursor = op_start + 1
            continue
        base_start, base = located

        content_start = op_start + OPERATOR_LENGTH
        close = find_close_paren(text, content_start)
        if close < 0:
            out.append(text[cursor:content_start])
            cursor = content_start
            continue
        content = text[content_start:close]
        if not content:
            out.append(text[cursor : close + 1])
            cursor = close + 1
            continue

        node, end = resolve_occurrence(text, base, side, content, close + 1)
        replacement = None if node.is_empty else emit(node)
        if replacement is None:
            out.append(text[cursor:end])
        else:
            out.append(text[cursor:base_start])
            out.append(replacement)
        cursor = end
    return "".join(out)


def _fixpoint(text: str, emit: Emitter) -> str:
    """Repeat scan passes so bracketed bases holding inner annotations resolve inner-first."""
    result = text
    for pass_index in range(MAX_PASSES):
        if not detect_markup(result):
            break
        following = _scan_pass(result, emit)
        if following == result:
            break
        result = following
        debug_log(f"pass {pass_index + 1} rewrote markup")
    else:
        if detect_markup(result):
            debug_log(f"stopped after {MAX_PASSES} passes with operators left in place")
    return result


def _render_emitter(options: RenderOptions | None) -> Emitter:
    return partial(render_node, options=options)


def markup_to_rendered(text: str, options: RenderOptions | None = None) -> str:
    """Render every markup annotation in ``text``; code spans are left alone."""
    if not detect_markup(text):
        return text
    protected = protect_code(text)
    return protected.restore(_fixpoint(protected.text, _render_emitter(options)))


def _markup_to_macro(text: str) -> str:
    if not detect_markup(text):
        return text
    return _fixpoint(text, node_to_macro)


def markup_to_macro(text: str) -> str:
    protected = protect_code(text)
    return protected.restore(_markup_to_macro(protected.text))


def _macro_side(flag: str | None) -> Slot:
    return Slot.UNDER if (flag or "").strip().lower() == "under" else Slot.OVER


def _macro_to_markup(text: str) -> str:
    def _replace(match: re.Match[str]) -> str:
        base = match.group(1).strip()
        annotation = match.group(2).strip()
        if not base or not annotation:
            return match.group(0)
        return f"[{base}]{_macro_side(match.group(3)).operator}({annotation})"

    return MACRO_RE.sub(_replace, text)


def macro_to_markup(text: str) -> str:
    protected = protect_code(text)
    return protected.restore(_macro_to_markup(protected.text))


def render_macro_call(args: Sequence[str], options: RenderOptions | None = None) -> str | None:
    """
    Render one macro call from its argument list.

    ``args`` may start with the ``:ruby`` name token. Returns None when the
    base or the annotation argument is missing or blank.
    """
    values = [str(arg) for arg in args]
    if values and values[0].strip() == MACRO_NAME:
        values = values[1:]
    if len(values) < 2:
        return None
    base = values[0].strip()
    annotation = values[1].strip()
    if not base or not annotation:
        return None
    side = _macro_side(values[2] if len(values) > 2 else None)
    node = resolve_levels(base, side, annotation)
    if node.is_empty:
        return None
    return render_node(node, options)


def _macro_to_rendered(text: str, options: RenderOptions | None) -> str:
    def _replace(match: re.Match[str]) -> str:
        rendered = render_macro_call([match.group(1), match.group(2), match.group(3) or ""], options)
        return match.group(0) if rendered is None else rendered

    return MACRO_RE.sub(_replace, text)


def macro_to_rendered(text: str, options: RenderOptions | None = None) -> str:
    protected = protect_code(text)
    return protected.restore(_macro_to_rendered(protected.text, options))


def any_to_markup(text: str) -> str:
    """Convert macro calls and rendered annotations to markup."""
    protected = protect_code(text)
    result = _macro_to_markup(protected.text)
    result = rendered_to_markup(result)
    return protected.restore(result)


def any_to_macro(text: str) -> str:
    """Convert markup and rendered annotations to macro calls."""
    protected = protect_code(text)
    result = _markup_to_macro(protected.text)
    result = rendered_to_macro(result)
    return protected.restore(result)


def any_to_rendered(text: str, options: RenderOptions | None = None) -> str:
    """Convert macro calls and markup to rendered annotations."""
    protected = protect_code(text)
    result = _macro_to_rendered(protected.text, options)
    if detect_markup(result):
        result = _fixpoint(result, _render_emitter(options))
    return protected.restore(result)
