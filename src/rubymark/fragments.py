from __future__ import annotations

import re

from bs4 import BeautifulSoup, NavigableString, Tag  # type: ignore
from bs4.element import PreformattedString  # type: ignore

from .core import detect_markup, markup_to_rendered
from .logging_utils import debug_log
from .protect import protect_pattern
from .render import RenderOptions
from .reverse import parse_fragment

__all__ = ["render_html_fragment", "SKIP_TAGS"]

SKIP_TAGS = frozenset({"code", "pre", "a", "ruby", "script", "style"})
_SKIPPED_ELEMENT_RE = re.compile(
    r"<(code|pre|a|ruby|script|style)\b[^>]*>[\s\S]*?</\1\s*>",
    re.IGNORECASE,
)


def _inside_skipped(node: NavigableString) -> bool:
    return any(isinstance(parent, Tag) and parent.name in SKIP_TAGS for parent in node.parents)


def _render_text_nodes(root: Tag, options: RenderOptions | None) -> int:
    replaced = 0
    for node in list(root.find_all(string=True)):
        if isinstance(node, PreformattedString) or _inside_skipped(node):
            continue
        text = str(node)
        if not detect_markup(text):
            continue
        rendered = markup_to_rendered(text, options)
        if rendered == text:
            continue
        fragment = BeautifulSoup(rendered, "html.parser")
        node.replace_with(*list(fragment.contents))
        replaced += 1
    return replaced


def render_html_fragment(html: str, options: RenderOptions | None = None) -> str:
    """
    Render markup that appears in the text of an HTML fragment.

    Text inside code, pre, links, existing rubies, scripts and styles is left
    alone. Markup whose bracketed base spans inline tags (``[<b>漢</b>字]^^(…)``)
    is not visible in any single text node; it is handled by a second pass
    over the serialized fragment with the skipped elements hidden.
    """
    if not detect_markup(html):
        return html
    root = parse_fragment(html)
    replaced = _render_text_nodes(root, options)
    debug_log(f"rendered markup in {replaced} text node(s)")
    result = root.decode_contents()
    if not detect_markup(result):
        return result
    protected = protect_pattern(result, _SKIPPED_ELEMENT_RE, "TAG")
    return protected.restore(markup_to_rendered(protected.text, options))
