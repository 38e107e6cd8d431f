from __future__ import annotations

from dataclasses import dataclass

from .core import any_to_rendered
from .render import RenderOptions

__all__ = ["Example", "EXAMPLES", "format_examples", "format_examples_markdown"]


@dataclass(frozen=True, slots=True)
class Example:
    syntax: str
    section: str


EXAMPLES: tuple[Example, ...] = (
    Example("[base]^^(ruby)", "Basic Ruby - Above"),
    Example("[base]^_(ruby)", "Basic Ruby - Below"),
    Example("[北京]^^(ペキン|Beijing)", "Basic Ruby - Two-level"),
    Example("[春夏秋冬]^^(はる なつ あき ふゆ)", "Per-Character - Auto-align"),
    Example("[振り仮名]^^(ふ り が な)", "Per-Character - Auto-hide"),
    Example("[base]^^(over)^_(under)", "Chained annotations"),
    Example("[[護]^^(まも)れ]^_(プロテゴ)", "Partially overlapping"),
    Example("base^^(..)", "Bouten - Above"),
    Example("base^_(..)", "Bouten - Below dotted"),
    Example("base^_(.-)", "Underline - Solid"),
    Example("base^_(.=)", "Underline - Double"),
    Example("base^_(.~)", "Underline - Wavy"),
    Example("base^^(..)^_(..)", "Bouten - Both levels"),
    Example("[取り返す]^^(と り かえ す)", "Japanese furigana"),
    Example("[李太白]^^(Lǐ Tài Bái|ㄌㄧˇ ㄊㄞˋ ㄅㄞˊ)", "Chinese pinyin + bopomofo"),
    Example("cat^^(chat|猫)", "Multi-language translation"),
    Example("貓^^(猫)", "Traditional to Simplified"),
    Example("猫^^(ねこ|neko)", "Japanese transcription"),
    Example("貓^^(māo|cat)", "Chinese to English"),
    Example("Москва^^(Moskva)", "Cyrillic transliteration"),
    Example("cat^^(/kæt/)", "IPA transcription"),
    Example("重要^^(..)", "Emphasis with bouten"),
    Example("重要語句^^(じゅうようごく|.-)", "Study aid - ruby + underline"),
    Example("[初音ミク^^(偉大なる|世界一姫様)]^_(Vocaloid)", "Complex nested titles"),
)


def format_examples(options: RenderOptions | None = None) -> str:
    rule = "=" * 80
    lines = [
        "# Annotation examples",
        "",
        "Format: `syntax` → HTML output",
        "",
        rule,
        "",
    ]
    for index, example in enumerate(EXAMPLES, start=1):
        lines.append(f"## {index}. {example.section}")
        lines.append(f"`{example.syntax}`")
        lines.append(f"    > {any_to_rendered(example.syntax, options)}")
        lines.append("")
    lines.append(rule)
    lines.append(f"Total examples: {len(EXAMPLES)}")
    return "\n".join(lines)


def format_examples_markdown(options: RenderOptions | None = None) -> str:
    lines: list[str] = []
    for example in EXAMPLES:
        lines.append(f"- `{example.syntax}` ({example.section})")
        lines.append(f"    > {any_to_rendered(example.syntax, options)}")
    return "\n".join(lines)
