from __future__ import annotations

from typing import Callable

from bs4 import BeautifulSoup, NavigableString, Tag  # type: ignore
from bs4.element import PreformattedString  # type: ignore

from .escapes import escape_annotation, escape_base, unescape
from .logging_utils import debug_log
from .model import (
    BOUTEN_MARKER,
    UNDERLINE_MARKERS,
    AnnotationNode,
    Bouten,
    RubyText,
    Slot,
    SlotContent,
    Underline,
    UnderlineStyle,
)
from .render import (
    BOUTEN_CLASS,
    BOUTEN_OVER_CLASS,
    BOUTEN_UNDER_CLASS,
    RUBY_DOUBLE_CLASS,
    RUBY_MIXED_CLASS,
    RUBY_OVER_CLASS,
    RUBY_UNDER_CLASS,
    UNDERLINE_CLASS,
    UNDERLINE_DOUBLE_CLASS,
    UNDERLINE_WAVY_CLASS,
)

__all__ = [
    "Emitter",
    "looks_rendered",
    "parse_fragment",
    "reduce_tree",
    "node_to_markup",
    "node_to_macro",
    "rendered_to_markup",
    "rendered_to_macro",
    "MACRO_NAME",
]

MACRO_NAME = ":ruby"
Emitter = Callable[[AnnotationNode], "str | None"]

_ANNOTATION_TEXT_TAGS = ["rt", "rp", "rtc"]


class _ReducedText(NavigableString):
    """Markup or macro text that replaced an annotation element; it is kept verbatim."""


def looks_rendered(text: str) -> bool:
    return "<ruby" in text or "ls-ruby" in text


def parse_fragment(html: str) -> Tag:
    soup = BeautifulSoup(f"<div>{html}</div>", "html.parser")
    return soup.div


def _classes(tag: Tag) -> set[str]:
    value = tag.get("class") or []
    if isinstance(value, str):
        value = value.split()
    return set(value)


def _has(tag: Tag, marker: str) -> bool:
    return marker in _classes(tag)


def _side(tag: Tag) -> Slot:
    return Slot.UNDER if _has(tag, RUBY_UNDER_CLASS) else Slot.OVER


def _in_annotation_text(node: NavigableString, tag: Tag) -> bool:
    parent = node.parent
    while parent is not None and parent is not tag:
        if parent.name in _ANNOTATION_TEXT_TAGS:
            return True
        parent = parent.parent
    return False


def _base_text(tag: Tag) -> str:
    """
    Base of ``tag`` as markup source, without any annotation text.

    Plain text is escaped so it reads back as the same characters; text left
    by an already reduced descendant is markup and stays as is.
    """
    parts: list[str] = []
    for node in tag.descendants:
        if not isinstance(node, NavigableString) or isinstance(node, PreformattedString):
            continue
        if _in_annotation_text(node, tag):
            continue
        parts.append(str(node) if isinstance(node, _ReducedText) else escape_base(str(node)))
    return "".join(parts).strip()


def _direct_texts(tag: Tag, name: str) -> list[str]:
    texts = (child.get_text().strip() for child in tag.find_all(name, recursive=False))
    return [text for text in texts if text]


def _underline_style(tag: Tag) -> UnderlineStyle | None:
    classes = _classes(tag)
    if UNDERLINE_WAVY_CLASS in classes:
        return UnderlineStyle.WAVY
    if UNDERLINE_DOUBLE_CLASS in classes:
        return UnderlineStyle.DOUBLE
    if UNDERLINE_CLASS in classes:
        return UnderlineStyle.SOLID
    return None


def _literal(text: str, slot: Slot) -> RubyText:
    raw = escape_annotation(text)
    if raw == BOUTEN_MARKER or (slot is Slot.UNDER and raw in UNDERLINE_MARKERS):
        # Keep literal ruby text from turning into a decoration on re-render.
        raw = "\\" + raw
    return RubyText(raw)


def _is_annotation(tag: Tag) -> bool:
    if tag.name == "ruby":
        return True
    if tag.name == "span":
        classes = _classes(tag)
        return BOUTEN_CLASS in classes or UNDERLINE_CLASS in classes
    return False


def _is_double(tag: Tag) -> bool:
    return tag.name == "ruby" and _has(tag, RUBY_DOUBLE_CLASS)


def _is_double_member(tag: Tag) -> bool:
    parent = tag.parent
    return tag.name == "ruby" and isinstance(parent, Tag) and _is_double(parent)


def _node_from_levels(base: str, side: Slot, levels: list[str]) -> AnnotationNode:
    values: dict[Slot, SlotContent] = {side: _literal(levels[0], side)}
    if len(levels) > 1:
        values[side.opposite] = _literal(levels[1], side.opposite)
    return AnnotationNode(base=base, over=values.get(Slot.OVER), under=values.get(Slot.UNDER))


def _reduce_simple(tag: Tag) -> AnnotationNode | str | None:
    base = _base_text(tag)
    if not base:
        return None
    levels = _direct_texts(tag, "rt") + _direct_texts(tag, "rtc")
    if not levels:
        # Auto-hidden character: nothing but the base survives.
        return base
    return _node_from_levels(base, _side(tag), levels)


def _reduce_mixed(tag: Tag) -> AnnotationNode | None:
    base = _base_text(tag)
    rts = _direct_texts(tag, "rt")
    if not base or not rts:
        return None
    ruby_side = Slot.OVER if _has(tag, RUBY_OVER_CLASS) else Slot.UNDER
    style = _underline_style(tag)
    decoration: tuple[Slot, SlotContent] | None = None
    if style is not None:
        decoration = (Slot.UNDER, Underline(style))
    elif _has(tag, BOUTEN_OVER_CLASS):
        decoration = (Slot.OVER, Bouten())
    elif _has(tag, BOUTEN_UNDER_CLASS):
        decoration = (Slot.UNDER, Bouten())
    values: dict[Slot, SlotContent] = {ruby_side: _literal(rts[0], ruby_side)}
    if decoration is not None:
        if decoration[0] is ruby_side:
            return None
        values[decoration[0]] = decoration[1]
    return AnnotationNode(base=base, over=values.get(Slot.OVER), under=values.get(Slot.UNDER))


def _reduce_double(tag: Tag) -> AnnotationNode | None:
    """
    Reduce a two-level wrapper together with its direct child rubies.

    The wrapper holds one level as a group annotation; the children hold the
    other level, either as one ruby or one ruby per base character (empty
    annotations fall back to the character itself).
    """
    children = tag.find_all("ruby", recursive=False)
    if not children:
        return None
    wrapper_side = _side(tag)
    child_side = _side(children[0])
    if wrapper_side is child_side:
        return None
    wrapper_levels = _direct_texts(tag, "rt")
    base = _base_text(tag)
    if not base or not wrapper_levels:
        return None
    if len(children) == 1:
        child_levels = _direct_texts(children[0], "rt")
        child_text = child_levels[0] if child_levels else ""
    else:
        segments = []
        for child in children:
            texts = _direct_texts(child, "rt")
            segments.append(texts[0] if texts else unescape(_base_text(child)))
        child_text = " ".join(segments)
    values: dict[Slot, SlotContent] = {wrapper_side: _literal(wrapper_levels[0], wrapper_side)}
    if child_text:
        values[child_side] = _literal(child_text, child_side)
    return AnnotationNode(base=base, over=values.get(Slot.OVER), under=values.get(Slot.UNDER))


def _reduce_span(tag: Tag) -> AnnotationNode | None:
    base = _base_text(tag)
    if not base:
        return None
    over: SlotContent | None = Bouten() if _has(tag, BOUTEN_OVER_CLASS) else None
    under: SlotContent | None = None
    style = _underline_style(tag)
    if style is not None:
        under = Underline(style)
    elif _has(tag, BOUTEN_UNDER_CLASS):
        under = Bouten()
    if over is None and under is None:
        return None
    return AnnotationNode(base=base, over=over, under=under)


def _replace(tag: Tag, result: AnnotationNode | str | None, emit: Emitter) -> bool:
    if result is None:
        debug_log(f"left <{tag.name} class={sorted(_classes(tag))}> unreduced: missing base or annotation")
        return False
    text = result if isinstance(result, str) else emit(result)
    if text is None:
        debug_log(f"left <{tag.name}> unreduced: target form cannot carry {result!r}")
        return False
    tag.replace_with(_ReducedText(text))
    return True


def _reduce_one(tag: Tag, emit: Emitter) -> bool:
    if tag.name == "span":
        return _replace(tag, _reduce_span(tag), emit)
    if _has(tag, RUBY_MIXED_CLASS):
        return _replace(tag, _reduce_mixed(tag), emit)
    if _is_double(tag):
        node = _reduce_double(tag)
        if node is not None:
            return _replace(tag, node, emit)
        for child in tag.find_all("ruby", recursive=False):
            _reduce_one(child, emit)
    return _replace(tag, _reduce_simple(tag), emit)


def reduce_tree(root: Tag, emit: Emitter) -> int:
    """
    Replace annotation elements under ``root`` with emitted text, bottom-up.

    Elements are visited in reverse document order, so every descendant is
    reduced before its ancestors; an outer ruby whose base held an inner
    annotation sees that annotation as flat text. Direct child rubies of a
    two-level wrapper are left for the wrapper. Returns the number of
    elements replaced.
    """
    reduced = 0
    for tag in reversed(root.find_all(_is_annotation)):
        if tag.parent is None or _is_double_member(tag):
            continue
        if _reduce_one(tag, emit):
            reduced += 1
    return reduced


def _slot_markup(content: SlotContent) -> str:
    return content.marker


def node_to_markup(node: AnnotationNode) -> str:
    filled = node.filled
    if len(filled) == 1:
        slot, content = filled[0]
        return f"[{node.base}]{slot.operator}({_slot_markup(content)})"
    over, under = node.over, node.under
    if isinstance(over, RubyText) and isinstance(under, RubyText):
        return f"[{node.base}]^^({over.raw}|{under.raw})"
    first, second = filled
    if isinstance(second[1], RubyText):
        first, second = second, first
    return (
        f"[{node.base}]{first[0].operator}({_slot_markup(first[1])})"
        f"{second[0].operator}({_slot_markup(second[1])})"
    )


def node_to_macro(node: AnnotationNode) -> str | None:
    """Macro call for ``node``, or None when an argument cannot be expressed."""
    filled = node.filled
    base = node.base.strip()
    if not filled or not base:
        return None
    flag = ""
    if len(filled) == 1:
        slot, content = filled[0]
        annotation = _slot_markup(content)
        if slot is Slot.UNDER:
            flag = ", under"
    else:
        annotation = f"{_slot_markup(node.over)}|{_slot_markup(node.under)}"
    if any(ch in base or ch in annotation for ch in ",{}"):
        return None
    return f"{{{{renderer {MACRO_NAME}, {base}, {annotation}{flag}}}}}"


def _convert(html: str, emit: Emitter) -> str:
    if not looks_rendered(html):
        return html
    root = parse_fragment(html)
    reduced = reduce_tree(root, emit)
    debug_log(f"reduced {reduced} annotation element(s)")
    return root.decode_contents()


def rendered_to_markup(html: str) -> str:
    return _convert(html, node_to_markup)


def rendered_to_macro(html: str) -> str:
    return _convert(html, node_to_macro)
