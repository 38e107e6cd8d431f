from __future__ import annotations

from rubymark.model import AnnotationNode, Bouten, RubyText, Slot, Underline, UnderlineStyle
from rubymark.resolver import classify, resolve_levels, resolve_occurrence


def test_classify_markers() -> None:
    assert classify("..", Slot.OVER) == Bouten()
    assert classify("..", Slot.UNDER) == Bouten()
    assert classify(".~", Slot.UNDER) == Underline(UnderlineStyle.WAVY)
    assert classify(".=", Slot.UNDER) == Underline(UnderlineStyle.DOUBLE)
    assert classify(".-", Slot.UNDER) == Underline(UnderlineStyle.SOLID)
    assert classify(".", Slot.UNDER) == RubyText(".")
    assert classify("", Slot.OVER) is None


def test_underline_marker_in_over_slot_is_literal() -> None:
    content = classify(".-", Slot.OVER)
    assert content == RubyText(".-")
    assert content.text == ".-"


def test_pipe_assigns_opposite_slot() -> None:
    node = resolve_levels("b", Slot.UNDER, "y|x")
    assert node == AnnotationNode("b", over=RubyText("x"), under=RubyText("y"))


def test_pipe_capacity_is_two_levels() -> None:
    node = resolve_levels("b", Slot.OVER, "a|b|c")
    assert node == AnnotationNode("b", over=RubyText("a"), under=RubyText("b"))


def test_pipe_index_one_reaches_under_classification() -> None:
    node = resolve_levels("重要語句", Slot.OVER, "じゅうようごく|.-")
    assert node.over == RubyText("じゅうようごく")
    assert node.under == Underline(UnderlineStyle.SOLID)


def test_chain_of_opposite_operator_fills_other_slot() -> None:
    text = "[b]^^(x)^_(y) rest"
    node, end = resolve_occurrence(text, "b", Slot.OVER, "x", 8)
    assert node == AnnotationNode("b", over=RubyText("x"), under=RubyText("y"))
    assert end == 13
    assert text[end:] == " rest"


def test_same_operator_never_chains() -> None:
    node, end = resolve_occurrence("[b]^^(x)^^(y)", "b", Slot.OVER, "x", 8)
    assert node == AnnotationNode("b", over=RubyText("x"))
    assert end == 8


def test_pipe_saturation_swallows_chain() -> None:
    node, end = resolve_occurrence("[b]^^(x|y)^_(z)", "b", Slot.OVER, "x|y", 10)
    assert node == AnnotationNode("b", over=RubyText("x"), under=RubyText("y"))
    assert end == 15


def test_chain_uses_first_pipe_part_only() -> None:
    node, end = resolve_occurrence("[b]^^(x)^_(y|z)", "b", Slot.OVER, "x", 8)
    assert node == AnnotationNode("b", over=RubyText("x"), under=RubyText("y"))
    assert end == 15


def test_empty_chain_is_not_consumed() -> None:
    node, end = resolve_occurrence("[b]^^(x)^_()", "b", Slot.OVER, "x", 8)
    assert node.under is None
    assert end == 8


def test_under_first_chain_with_decoration() -> None:
    node, end = resolve_occurrence("b^_(.-)^^(r)", "b", Slot.UNDER, ".-", 7)
    assert node == AnnotationNode("b", over=RubyText("r"), under=Underline(UnderlineStyle.SOLID))
    assert end == 12
