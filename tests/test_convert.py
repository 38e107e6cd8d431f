from __future__ import annotations

import pytest

from rubymark import (
    any_to_macro,
    any_to_markup,
    any_to_rendered,
    detect_any_annotation,
    detect_markup,
    macro_to_markup,
    markup_to_macro,
    markup_to_rendered,
    render_macro_call,
)
from rubymark.examples import EXAMPLES, Example

KANJI_HTML = '<ruby class="ls-ruby ls-ruby-over">漢字<rp>(</rp><rt>かんじ</rt><rp>)</rp></ruby>'


def test_detection() -> None:
    assert detect_markup("[a]^^(b)")
    assert detect_markup("a^_(b)")
    assert not detect_markup(r"a\^^(b)")
    assert not detect_markup("plain text")
    assert detect_any_annotation("{{renderer :ruby, a, b}}")
    assert detect_any_annotation("<ruby>a<rt>b</rt></ruby>")
    assert detect_any_annotation('<span class="ls-ruby-underline">a</span>')
    assert not detect_any_annotation("nothing here ^ at all")


def test_literal_single_over_ruby() -> None:
    assert markup_to_rendered("[漢字]^^(かんじ)") == KANJI_HTML
    assert markup_to_rendered("漢字^^(かんじ)") == KANJI_HTML


def test_commutativity_of_chain_and_pipe() -> None:
    chained = markup_to_rendered("[a]^^(x)^_(y)")
    reversed_chain = markup_to_rendered("[a]^_(y)^^(x)")
    piped = markup_to_rendered("[a]^^(x|y)")
    under_first_pipe = markup_to_rendered("[a]^_(y|x)")
    assert chained == reversed_chain == piped == under_first_pipe
    assert piped.startswith('<ruby class="ls-ruby ls-ruby-under ls-ruby-double"><ruby class="ls-ruby ls-ruby-over">a')
    assert "ls-ruby-double" in piped


def test_same_operator_twice_stays_single_level() -> None:
    html = markup_to_rendered("[a]^^(x)^^(y)")
    assert "ls-ruby-double" not in html
    assert html.count("<ruby") == 2
    assert "^^(" not in html
    assert html == (
        '<ruby class="ls-ruby ls-ruby-over">'
        '<ruby class="ls-ruby ls-ruby-over">a<rp>(</rp><rt>x</rt><rp>)</rp></ruby>'
        "<rp>(</rp><rt>y</rt><rp>)</rp></ruby>"
    )


def test_pipe_saturation_discards_chain() -> None:
    saturated = markup_to_rendered("[a]^^(x|y)^_(zzz)")
    assert saturated == markup_to_rendered("[a]^^(x|y)")
    assert "zzz" not in saturated


def test_capacity_cap_drops_third_level() -> None:
    html = markup_to_rendered("[a]^^(x|y|zzz)")
    assert "zzz" not in html
    assert html == markup_to_rendered("[a]^^(x|y)")


def test_alignment_unit_counts() -> None:
    aligned = markup_to_rendered("[春夏秋冬]^^(はる なつ あき ふゆ)")
    assert aligned.count("<ruby") == 4
    mismatch = markup_to_rendered("[春夏]^^(はる なつ あき)")
    assert mismatch.count("<ruby") == 1
    assert "<rt>はる なつ あき</rt>" in mismatch


def test_nested_bracket_resolves_inner_first() -> None:
    html = markup_to_rendered("[[護]^^(まも)れ]^_(プロテゴ)")
    assert html == (
        '<ruby class="ls-ruby ls-ruby-under">'
        '<ruby class="ls-ruby ls-ruby-over">護<rp>(</rp><rt>まも</rt><rp>)</rp></ruby>れ'
        "<rp>(</rp><rt>プロテゴ</rt><rp>)</rp></ruby>"
    )


def test_bare_inner_annotation_inside_bracketed_base() -> None:
    html = markup_to_rendered("[初音ミク^^(偉大なる|世界一姫様)]^_(Vocaloid)")
    assert html.startswith('<ruby class="ls-ruby ls-ruby-under"><ruby class="ls-ruby ls-ruby-under ls-ruby-double">')
    assert html.endswith("<rp>(</rp><rt>Vocaloid</rt><rp>)</rp></ruby>")
    assert "^" not in html


def test_pass_cap_leaves_outermost_operator() -> None:
    text = "[[[[[[a]^^(1)]^^(2)]^^(3)]^^(4)]^^(5)]^^(6)"
    html = markup_to_rendered(text)
    assert "<rt>5</rt>" in html
    assert html.startswith("[<ruby")
    assert html.endswith("]^^(6)")


@pytest.mark.parametrize(
    "text",
    [
        "[a]^^(b",
        "[a]^^(b\nc)",
        "[a]^^()",
        "x ^^(y)",
        "a]^^(b)",
        "",
    ],
)
def test_malformed_markup_passes_through(text: str) -> None:
    assert markup_to_rendered(text) == text
    assert any_to_macro(text) == text


def test_unterminated_operator_does_not_block_later_markup() -> None:
    assert markup_to_rendered("a^^(b\n[漢字]^^(かんじ)") == "a^^(b\n" + KANJI_HTML


def test_code_spans_are_protected() -> None:
    text = "text `[a]^^(b)` more"
    assert any_to_macro(text) == text
    assert "{{renderer" not in any_to_macro(text)
    assert markup_to_rendered(text) == text
    fenced = "```\n[a]^^(b)\n```\n[漢字]^^(かんじ)"
    assert markup_to_rendered(fenced) == "```\n[a]^^(b)\n```\n" + KANJI_HTML


def test_markup_to_macro_forms() -> None:
    assert any_to_macro("[base]^_(ann)") == "{{renderer :ruby, base, ann, under}}"
    assert any_to_macro("[base]^^(ann)") == "{{renderer :ruby, base, ann}}"
    assert any_to_macro("[base]^^(over)^_(under)") == "{{renderer :ruby, base, over|under}}"
    assert any_to_macro("[base]^_(under)^^(over)") == "{{renderer :ruby, base, over|under}}"
    assert any_to_macro("重要^^(..)") == "{{renderer :ruby, 重要, ..}}"


def test_markup_to_macro_leaves_unrepresentable_base() -> None:
    assert markup_to_macro("[a, b]^^(x)") == "[a, b]^^(x)"
    assert markup_to_macro("[[護]^^(まも)れ]^_(プロテゴ)") == "[{{renderer :ruby, 護, まも}}れ]^_(プロテゴ)"


def test_consecutive_bare_markup_becomes_consecutive_macros() -> None:
    assert markup_to_macro("a^^(b)c^^(d)") == "{{renderer :ruby, a, b}}{{renderer :ruby, c, d}}"


def test_macro_to_markup() -> None:
    assert any_to_markup("{{renderer :ruby, base, ann, under}}") == "[base]^_(ann)"
    assert any_to_markup("{{renderer :ruby, 漢字, かんじ}}") == "[漢字]^^(かんじ)"
    assert macro_to_markup("{{renderer  :ruby,漢字,かんじ, UNDER}}") == "[漢字]^_(かんじ)"


def test_render_macro_call() -> None:
    assert render_macro_call([":ruby"]) is None
    assert render_macro_call([":ruby", "漢字"]) is None
    assert render_macro_call([":ruby", " ", "x"]) is None
    assert render_macro_call([":ruby", "漢字", "かんじ"]) == KANJI_HTML
    assert render_macro_call(["漢字", "かんじ"]) == KANJI_HTML
    assert render_macro_call([":ruby", "a", "b", "under"]) == (
        '<ruby class="ls-ruby ls-ruby-under">a<rp>(</rp><rt>b</rt><rp>)</rp></ruby>'
    )
    assert render_macro_call([":ruby", "重要", ".."]) == '<span class="ls-ruby-bouten ls-ruby-bouten-over">重要</span>'
    assert render_macro_call([":ruby", "a", ".-", "under"]) == '<span class="ls-ruby-underline">a</span>'


def test_any_to_rendered_handles_macros_and_markup() -> None:
    text = "{{renderer :ruby, 漢字, かんじ}} and 漢字^^(かんじ)"
    assert any_to_rendered(text) == f"{KANJI_HTML} and {KANJI_HTML}"


def test_escaped_pipe_survives_macro_round_trip() -> None:
    macro = any_to_macro(r"[a]^^(x\|y)")
    assert macro == r"{{renderer :ruby, a, x\|y}}"
    assert any_to_rendered(macro) == '<ruby class="ls-ruby ls-ruby-over">a<rp>(</rp><rt>x|y</rt><rp>)</rp></ruby>'


@pytest.mark.parametrize(
    "markup",
    [
        "[漢字]^^(かんじ)",
        "[base]^_(ruby)",
        "[北京]^^(ペキン|Beijing)",
        "[北京]^^(ペイ チン|Beijing)",
        "[北京]^^(Beijing|ペイ チン)",
        "[[護]^^(まも)れ]^_(プロテゴ)",
        "[漢字]^^(..)",
        "[base]^_(.~)",
        "[base]^^(..)^_(..)",
        "[漢字]^^(a)^_(..)",
        "[x]^_(r)^^(..)",
        "[重要語句]^^(じゅうようごく)^_(.-)",
        r"[a]^^(x\|y)",
        r"[a]^^(\..)",
        r"[a\\b]^^(c)",
        r"[a\[b]^^(c)",
        "[a]^^(.-)",
        r"[a]^_(\.-)",
        "see [漢字]^^(かんじ) here",
    ],
)
def test_round_trip_through_rendered(markup: str) -> None:
    assert any_to_markup(markup_to_rendered(markup)) == markup


def test_round_trip_normalizes_bare_tokens_and_alignment() -> None:
    assert any_to_markup(markup_to_rendered("漢字^^(かんじ)")) == "[漢字]^^(かんじ)"
    per_char = any_to_markup(markup_to_rendered("[春夏]^^(はる なつ)"))
    assert per_char == "[春]^^(はる)[夏]^^(なつ)"
    assert markup_to_rendered(per_char) == markup_to_rendered("[春夏]^^(はる なつ)")


@pytest.mark.parametrize("example", EXAMPLES, ids=lambda example: example.section)
def test_gallery_examples_render_completely(example: Example) -> None:
    html = any_to_rendered(example.syntax)
    assert "^^(" not in html
    assert "^_(" not in html
    assert html.startswith(("<ruby", "<span"))


def test_braces_belong_to_bare_tokens() -> None:
    assert markup_to_rendered("f{x}^^(y)") == (
        '<ruby class="ls-ruby ls-ruby-over">f{x}<rp>(</rp><rt>y</rt><rp>)</rp></ruby>'
    )
    assert markup_to_macro("f{x}^^(y)") == "f{x}^^(y)"


def test_escaped_base_survives_macro_path() -> None:
    rendered = markup_to_rendered(r"[a\\b]^^(c)")
    assert rendered == '<ruby class="ls-ruby ls-ruby-over">a&#92;b<rp>(</rp><rt>c</rt><rp>)</rp></ruby>'
    macro = any_to_macro(rendered)
    assert macro == r"{{renderer :ruby, a\\b, c}}"
    assert any_to_rendered(macro) == rendered
