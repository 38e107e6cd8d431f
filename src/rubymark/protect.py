from __future__ import annotations

import re
from dataclasses import dataclass, field

from .errors import CodeSpanRestoreError

__all__ = ["ProtectedText", "protect_code", "protect_pattern", "CODE_SPAN_RE"]

CODE_SPAN_RE = re.compile(r"```[\s\S]*?```|`[^`]+`")
# Private-use sentinel: survives HTML parsing, unlike NUL.
_SENTINEL = "\ue000"


@dataclass
class ProtectedText:
    """Text with protected spans swapped for placeholders, in source order."""

    text: str
    spans: list[tuple[str, str]] = field(default_factory=list)

    def restore(self, text: str) -> str:
        result = text
        for placeholder, original in self.spans:
            if placeholder not in result:
                raise CodeSpanRestoreError(f"Protected span placeholder lost during conversion: {original!r}")
            result = result.replace(placeholder, original)
        return result


def _placeholder_prefix(text: str, label: str) -> str:
    nonce = 0
    while True:
        prefix = f"{_SENTINEL}{label}{nonce}-"
        if prefix not in text:
            return prefix
        nonce += 1


def protect_pattern(text: str, pattern: re.Pattern[str], label: str = "KEEP") -> ProtectedText:
    prefix = _placeholder_prefix(text, label)
    spans: list[tuple[str, str]] = []

    def _swap(match: re.Match[str]) -> str:
        placeholder = f"{prefix}{len(spans)}{_SENTINEL}"
        spans.append((placeholder, match.group(0)))
        return placeholder

    return ProtectedText(pattern.sub(_swap, text), spans)


def protect_code(text: str) -> ProtectedText:
    """Hide fenced code blocks and inline code spans from every conversion."""
    return protect_pattern(text, CODE_SPAN_RE, "CODE")
