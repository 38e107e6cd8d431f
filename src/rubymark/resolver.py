from __future__ import annotations

from .escapes import find_close_paren, split_unescaped_pipe
from .model import (
    BOUTEN_MARKER,
    UNDERLINE_MARKERS,
    AnnotationNode,
    Bouten,
    RubyText,
    Slot,
    SlotContent,
    Underline,
)
from .scanner import OPERATOR_LENGTH, operator_at

__all__ = ["classify", "resolve_levels", "resolve_occurrence", "MAX_LEVELS"]

MAX_LEVELS = 2


def classify(raw: str | None, slot: Slot) -> SlotContent | None:
    """
    Decide what a raw slot value means.

    ``..`` is emphasis dots in either slot; the underline markers are only
    decorations in the UNDER slot and stay literal ruby text in OVER.
    """
    if not raw:
        return None
    if raw == BOUTEN_MARKER:
        return Bouten()
    if slot is Slot.UNDER:
        style = UNDERLINE_MARKERS.get(raw)
        if style is not None:
            return Underline(style)
    return RubyText(raw)


def _build_node(base: str, values: dict[Slot, str]) -> AnnotationNode:
    return AnnotationNode(
        base=base,
        over=classify(values.get(Slot.OVER), Slot.OVER),
        under=classify(values.get(Slot.UNDER), Slot.UNDER),
    )


def resolve_levels(base: str, side: Slot, content: str) -> AnnotationNode:
    """Resolve one content run, applying the pipe rule only."""
    levels = split_unescaped_pipe(content)[:MAX_LEVELS]
    values = {side: levels[0]}
    if len(levels) > 1:
        values[side.opposite] = levels[1]
    return _build_node(base, values)


def resolve_occurrence(
    text: str,
    base: str,
    side: Slot,
    content: str,
    after: int,
) -> tuple[AnnotationNode, int]:
    """
    Resolve a matched operator occurrence into a node.

    ``after`` is the index just past the closing ``)``. Returns the node and
    the index where the consumed region ends, which moves past a chained
    operator of the opposite kind when one follows immediately.
    """
    end = after
    chained: str | None = None
    next_side = operator_at(text, after)
    if next_side is not None and next_side is not side:
        chain_start = after + OPERATOR_LENGTH
        chain_close = find_close_paren(text, chain_start)
        if chain_close > chain_start:
            chained = text[chain_start:chain_close]
            end = chain_close + 1

    if len(split_unescaped_pipe(content)) > 1:
        # Both slots already claimed by the pipe; a chained run is swallowed.
        return resolve_levels(base, side, content), end

    values = {side: content}
    if chained is not None:
        values[side.opposite] = split_unescaped_pipe(chained)[0]
    return _build_node(base, values), end
