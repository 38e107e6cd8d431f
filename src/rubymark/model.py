from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from .escapes import unescape

__all__ = [
    "Slot",
    "UnderlineStyle",
    "RubyText",
    "Bouten",
    "Underline",
    "SlotContent",
    "AnnotationNode",
    "BOUTEN_MARKER",
    "UNDERLINE_MARKERS",
    "OPERATOR_TOKENS",
]


class Slot(str, Enum):
    OVER = "over"
    UNDER = "under"

    @property
    def opposite(self) -> "Slot":
        return Slot.UNDER if self is Slot.OVER else Slot.OVER

    @property
    def operator(self) -> str:
        return OPERATOR_TOKENS[self]


class UnderlineStyle(str, Enum):
    SOLID = "solid"
    WAVY = "wavy"
    DOUBLE = "double"


OPERATOR_TOKENS = {Slot.OVER: "^^", Slot.UNDER: "^_"}
BOUTEN_MARKER = ".."
UNDERLINE_MARKERS = {
    ".-": UnderlineStyle.SOLID,
    ".~": UnderlineStyle.WAVY,
    ".=": UnderlineStyle.DOUBLE,
}


@dataclass(frozen=True, slots=True)
class RubyText:
    """Ordinary annotation text, kept in its raw (still escaped) form."""

    raw: str

    @property
    def text(self) -> str:
        return unescape(self.raw)

    @property
    def marker(self) -> str:
        return self.raw


@dataclass(frozen=True, slots=True)
class Bouten:
    @property
    def marker(self) -> str:
        return BOUTEN_MARKER


@dataclass(frozen=True, slots=True)
class Underline:
    style: UnderlineStyle = UnderlineStyle.SOLID

    @property
    def marker(self) -> str:
        for marker, style in UNDERLINE_MARKERS.items():
            if style is self.style:
                return marker
        return ".-"


SlotContent = Union[RubyText, Bouten, Underline]


@dataclass(frozen=True, slots=True)
class AnnotationNode:
    """
    One resolved annotation: a base span plus at most one value per slot.

    ``base`` is raw source text (escapes intact, embedded tags allowed). The
    node does not remember which operator came first; two-level output always
    nests the OVER slot inside the UNDER slot.
    """

    base: str
    over: SlotContent | None = None
    under: SlotContent | None = None

    def get(self, slot: Slot) -> SlotContent | None:
        return self.over if slot is Slot.OVER else self.under

    @property
    def is_empty(self) -> bool:
        return self.over is None and self.under is None

    @property
    def filled(self) -> list[tuple[Slot, SlotContent]]:
        pairs: list[tuple[Slot, SlotContent]] = []
        if self.over is not None:
            pairs.append((Slot.OVER, self.over))
        if self.under is not None:
            pairs.append((Slot.UNDER, self.under))
        return pairs

    @property
    def ruby_slots(self) -> list[tuple[Slot, RubyText]]:
        return [(slot, content) for slot, content in self.filled if isinstance(content, RubyText)]

    @property
    def decoration_slots(self) -> list[tuple[Slot, Bouten | Underline]]:
        return [
            (slot, content) for slot, content in self.filled if not isinstance(content, RubyText)
        ]
