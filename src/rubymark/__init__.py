from .core import (
    any_to_macro,
    any_to_markup,
    any_to_rendered,
    detect_any_annotation,
    detect_markup,
    macro_to_markup,
    macro_to_rendered,
    markup_to_macro,
    markup_to_rendered,
    render_macro_call,
)
from .errors import CodeSpanRestoreError, ConfigError, RubyMarkError
from .fragments import render_html_fragment
from .model import AnnotationNode, Bouten, RubyText, Slot, Underline, UnderlineStyle
from .render import RenderOptions
from .reverse import rendered_to_macro, rendered_to_markup

__all__ = [
    "detect_markup",
    "detect_any_annotation",
    "markup_to_rendered",
    "markup_to_macro",
    "macro_to_markup",
    "macro_to_rendered",
    "rendered_to_markup",
    "rendered_to_macro",
    "any_to_markup",
    "any_to_macro",
    "any_to_rendered",
    "render_macro_call",
    "render_html_fragment",
    "RenderOptions",
    "AnnotationNode",
    "Slot",
    "RubyText",
    "Bouten",
    "Underline",
    "UnderlineStyle",
    "RubyMarkError",
    "CodeSpanRestoreError",
    "ConfigError",
]
