from __future__ import annotations

from dataclasses import dataclass

from .alignment import align
from .escapes import unescape
from .model import AnnotationNode, Bouten, RubyText, Slot, SlotContent, Underline, UnderlineStyle

__all__ = [
    "RenderOptions",
    "render_node",
    "emit_text",
    "position_class",
    "RUBY_CLASS",
    "RUBY_OVER_CLASS",
    "RUBY_UNDER_CLASS",
    "RUBY_DOUBLE_CLASS",
    "RUBY_MIXED_CLASS",
    "BOUTEN_CLASS",
    "BOUTEN_OVER_CLASS",
    "BOUTEN_UNDER_CLASS",
    "UNDERLINE_CLASS",
    "UNDERLINE_WAVY_CLASS",
    "UNDERLINE_DOUBLE_CLASS",
]

RUBY_CLASS = "ls-ruby"
RUBY_OVER_CLASS = "ls-ruby-over"
RUBY_UNDER_CLASS = "ls-ruby-under"
RUBY_DOUBLE_CLASS = "ls-ruby-double"
RUBY_MIXED_CLASS = "ls-ruby-mixed"
BOUTEN_CLASS = "ls-ruby-bouten"
BOUTEN_OVER_CLASS = "ls-ruby-bouten-over"
BOUTEN_UNDER_CLASS = "ls-ruby-bouten-under"
UNDERLINE_CLASS = "ls-ruby-underline"
UNDERLINE_WAVY_CLASS = "ls-ruby-underline-wavy"
UNDERLINE_DOUBLE_CLASS = "ls-ruby-underline-double"

# Inline styles mirror the plugin stylesheet for HTML viewed outside the editor.
STYLE_BOUTEN_OVER = (
    "text-emphasis:filled dot;-webkit-text-emphasis:filled dot;"
    "text-emphasis-position:over right;-webkit-text-emphasis-position:over right"
)
# Dotted underline: text-emphasis under the text gets clipped in the editor.
STYLE_BOUTEN_UNDER = "text-decoration:underline dotted;text-underline-offset:0.15em"
STYLE_RUBY_UNDER = "ruby-position:under"
STYLE_UNDERLINE = "text-decoration-line:underline;text-underline-offset:0.15em"

_ENTITY_MAP = {"\\": "&#92;", "^": "&#94;"}


@dataclass(frozen=True, slots=True)
class RenderOptions:
    inline_styles: bool = False


_DEFAULT_OPTIONS = RenderOptions()


def _encode(text: str) -> str:
    # Rendered text must not be unescaped again, nor look like an operator, on a later pass.
    if "\\" not in text and "^" not in text:
        return text
    return "".join(_ENTITY_MAP.get(ch, ch) for ch in text)


def emit_text(raw: str) -> str:
    """Unescape raw markup text exactly once and make it safe for later passes."""
    return _encode(unescape(raw))


def position_class(slot: Slot) -> str:
    return RUBY_OVER_CLASS if slot is Slot.OVER else RUBY_UNDER_CLASS


def _bouten_class(slot: Slot) -> str:
    return BOUTEN_OVER_CLASS if slot is Slot.OVER else BOUTEN_UNDER_CLASS


def _bouten_style(slot: Slot) -> str:
    return STYLE_BOUTEN_OVER if slot is Slot.OVER else STYLE_BOUTEN_UNDER


def _underline_classes(style: UnderlineStyle) -> list[str]:
    if style is UnderlineStyle.SOLID:
        return [UNDERLINE_CLASS]
    return [UNDERLINE_CLASS, f"{UNDERLINE_CLASS}-{style.value}"]


def _underline_style(style: UnderlineStyle) -> str:
    if style is UnderlineStyle.SOLID:
        return STYLE_UNDERLINE
    return f"{STYLE_UNDERLINE};text-decoration-style:{style.value}"


def _open_tag(tag: str, classes: list[str], styles: list[str], options: RenderOptions) -> str:
    attrs = f' class="{" ".join(classes)}"'
    if options.inline_styles:
        style = ";".join(s for s in styles if s)
        if style:
            attrs += f' style="{style}"'
    return f"<{tag}{attrs}>"


def _ruby(
    base_html: str,
    rt_html: str,
    slot: Slot,
    options: RenderOptions,
    *,
    double: bool = False,
) -> str:
    classes = [RUBY_CLASS, position_class(slot)]
    if double:
        classes.append(RUBY_DOUBLE_CLASS)
    styles = [STYLE_RUBY_UNDER] if slot is Slot.UNDER else []
    return (
        _open_tag("ruby", classes, styles, options)
        + base_html
        + f"<rp>(</rp><rt>{rt_html}</rt><rp>)</rp></ruby>"
    )


def _render_single(base: str, slot: Slot, ruby: RubyText, options: RenderOptions) -> str:
    pairs = align(unescape(base), ruby.text)
    if pairs is None:
        return _ruby(emit_text(base), emit_text(ruby.raw), slot, options)
    return "".join(_ruby(_encode(char), _encode(ann), slot, options) for char, ann in pairs)


def _render_double(base: str, over: RubyText, under: RubyText, options: RenderOptions) -> str:
    """
    Two ordinary levels: the OVER ruby is nested inside an UNDER wrapper.

    The nesting does not follow the order the operators were written in, so
    ``[a]^^(x)^_(y)``, ``[a]^_(y)^^(x)`` and ``[a]^^(x|y)`` all render to the
    same HTML, and so does ``[a]^_(y|x)``, whose first level is UNDER.

    Each level is aligned per character independently; a level that fails to
    align becomes one group annotation on the wrapper around the other
    level's per-character rubies.
    """
    plain_base = unescape(base)
    over_pairs = align(plain_base, over.text)
    under_pairs = align(plain_base, under.text)

    if over_pairs is not None and under_pairs is not None:
        pieces: list[str] = []
        for (char, over_ann), (_, under_ann) in zip(over_pairs, under_pairs):
            char_html = _encode(char)
            if not over_ann and not under_ann:
                pieces.append(_ruby(char_html, "", Slot.OVER, options))
            elif not over_ann:
                pieces.append(_ruby(char_html, _encode(under_ann), Slot.UNDER, options))
            elif not under_ann:
                pieces.append(_ruby(char_html, _encode(over_ann), Slot.OVER, options))
            else:
                inner = _ruby(char_html, _encode(over_ann), Slot.OVER, options)
                pieces.append(_ruby(inner, _encode(under_ann), Slot.UNDER, options, double=True))
        return "".join(pieces)

    if over_pairs is not None:
        inner = "".join(
            _ruby(_encode(char), _encode(ann), Slot.OVER, options) for char, ann in over_pairs
        )
        return _ruby(inner, emit_text(under.raw), Slot.UNDER, options, double=True)

    if under_pairs is not None:
        inner = "".join(
            _ruby(_encode(char), _encode(ann), Slot.UNDER, options) for char, ann in under_pairs
        )
        return _ruby(inner, emit_text(over.raw), Slot.OVER, options, double=True)

    inner = _ruby(emit_text(base), emit_text(over.raw), Slot.OVER, options)
    return _ruby(inner, emit_text(under.raw), Slot.UNDER, options, double=True)


def _decoration_markers(slot: Slot, decoration: SlotContent) -> tuple[list[str], str]:
    if isinstance(decoration, Underline):
        return _underline_classes(decoration.style), _underline_style(decoration.style)
    return [_bouten_class(slot)], _bouten_style(slot)


def _render_decorations(node: AnnotationNode, options: RenderOptions) -> str:
    classes: list[str] = []
    styles: list[str] = []
    if any(isinstance(content, Bouten) for _, content in node.decoration_slots):
        classes.append(BOUTEN_CLASS)
    for slot, decoration in node.decoration_slots:
        marker_classes, style = _decoration_markers(slot, decoration)
        classes.extend(marker_classes)
        styles.append(style)
    return _open_tag("span", classes, styles, options) + emit_text(node.base) + "</span>"


def _render_mixed(
    node: AnnotationNode,
    ruby_slot: Slot,
    ruby: RubyText,
    decoration_slot: Slot,
    decoration: Bouten | Underline,
    options: RenderOptions,
) -> str:
    marker_classes, decoration_style = _decoration_markers(decoration_slot, decoration)
    classes = [RUBY_CLASS, RUBY_MIXED_CLASS, position_class(ruby_slot), *marker_classes]
    styles = [STYLE_RUBY_UNDER if ruby_slot is Slot.UNDER else "", decoration_style]
    return (
        _open_tag("ruby", classes, styles, options)
        + emit_text(node.base)
        + f"<rp>(</rp><rt>{emit_text(ruby.raw)}</rt><rp>)</rp></ruby>"
    )


def render_node(node: AnnotationNode, options: RenderOptions | None = None) -> str:
    """Render a resolved annotation node as tag-based markup."""
    options = options or _DEFAULT_OPTIONS
    rubies = node.ruby_slots
    decorations = node.decoration_slots
    if not rubies and not decorations:
        return emit_text(node.base)
    if not rubies:
        return _render_decorations(node, options)
    if decorations:
        ruby_slot, ruby = rubies[0]
        decoration_slot, decoration = decorations[0]
        return _render_mixed(node, ruby_slot, ruby, decoration_slot, decoration, options)
    if len(rubies) == 1:
        slot, ruby = rubies[0]
        return _render_single(node.base, slot, ruby, options)
    return _render_double(node.base, rubies[0][1], rubies[1][1], options)
