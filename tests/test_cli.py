from __future__ import annotations

from pathlib import Path

import pytest

import rubymark.cli as cli
import rubymark.logging_utils as logging_utils

KANJI_HTML = '<ruby class="ls-ruby ls-ruby-over">漢字<rp>(</rp><rt>かんじ</rt><rp>)</rp></ruby>'


@pytest.fixture(autouse=True)
def _isolated(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("RUBYMARK_CONFIG", raising=False)
    monkeypatch.delenv("RUBYMARK_INLINE_STYLES", raising=False)
    monkeypatch.setattr(logging_utils, "_DEBUG_LOG", False)


def test_convert_writes_default_output(tmp_path: Path, capsys) -> None:
    source = tmp_path / "notes.md"
    source.write_text("[漢字]^^(かんじ)\n", encoding="utf-8")

    exit_code = cli.main([str(source)])

    output = tmp_path / "notes.converted.html"
    assert exit_code == 0
    assert output.read_text(encoding="utf-8") == KANJI_HTML + "\n"
    assert "notes.converted.html" in capsys.readouterr().out


def test_convert_to_markup_with_explicit_output(tmp_path: Path) -> None:
    source = tmp_path / "page.html"
    source.write_text(f"<p>{KANJI_HTML}</p>", encoding="utf-8")
    target = tmp_path / "page.md"

    assert cli.main([str(source), "-f", "markup", "-o", str(target)]) == 0
    assert target.read_text(encoding="utf-8") == "<p>[漢字]^^(かんじ)</p>"


def test_convert_html_input_uses_fragment_renderer(tmp_path: Path, capsys) -> None:
    source = tmp_path / "page.html"
    source.write_text("<p><code>[a]^^(b)</code> [漢字]^^(かんじ)</p>", encoding="utf-8")

    assert cli.main([str(source), "--stdout"]) == 0
    out = capsys.readouterr().out
    assert out == f"<p><code>[a]^^(b)</code> {KANJI_HTML}</p>"


def test_convert_to_macro_on_stdout(tmp_path: Path, capsys) -> None:
    source = tmp_path / "notes.txt"
    source.write_text("[base]^_(ann)", encoding="utf-8")

    assert cli.main([str(source), "--format", "macro", "--stdout"]) == 0
    assert capsys.readouterr().out == "{{renderer :ruby, base, ann, under}}"
    assert not (tmp_path / "notes.converted.txt").exists()


def test_directory_inputs_follow_configured_extensions(tmp_path: Path) -> None:
    docs = tmp_path / "docs"
    docs.mkdir()
    (docs / "a.md").write_text("a^^(x)", encoding="utf-8")
    (docs / "b.md").write_text("b^_(y)", encoding="utf-8")
    (docs / "skip.rst").write_text("c^^(z)", encoding="utf-8")
    (tmp_path / "rubymark.toml").write_text('extensions = ["md"]\noutput_suffix = ".out"\n', encoding="utf-8")

    assert cli.main([str(docs)]) == 0
    assert (docs / "a.out.html").exists()
    assert (docs / "b.out.html").exists()
    assert not (docs / "skip.out.html").exists()


def test_inline_styles_flag(tmp_path: Path, capsys) -> None:
    source = tmp_path / "n.md"
    source.write_text("a^_(b)", encoding="utf-8")
    assert cli.main([str(source), "--inline-styles", "--stdout"]) == 0
    assert 'style="ruby-position:under"' in capsys.readouterr().out


def test_missing_input_exits(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main([str(tmp_path / "nope.md")])
    assert "not found" in str(excinfo.value)


def test_output_requires_single_input(tmp_path: Path) -> None:
    first = tmp_path / "a.md"
    second = tmp_path / "b.md"
    first.write_text("x", encoding="utf-8")
    second.write_text("y", encoding="utf-8")
    with pytest.raises(SystemExit):
        cli.main([str(first), str(second), "-o", str(tmp_path / "out.html")])


def test_bad_config_exits(tmp_path: Path) -> None:
    source = tmp_path / "a.md"
    source.write_text("x", encoding="utf-8")
    config = tmp_path / "bad.toml"
    config.write_text('format = "pdf"\n', encoding="utf-8")
    with pytest.raises(SystemExit) as excinfo:
        cli.main([str(source), "--config", str(config)])
    assert "format" in str(excinfo.value)


def test_debug_flag_logs_to_stderr(tmp_path: Path, capsys) -> None:
    source = tmp_path / "a.md"
    source.write_text("[a]^^(b)", encoding="utf-8")
    assert cli.main([str(source), "--stdout", "--debug"]) == 0
    assert "[rubymark debug]" in capsys.readouterr().err


def test_detect_reports_and_sets_exit_code(tmp_path: Path, capsys) -> None:
    plain = tmp_path / "plain.md"
    plain.write_text("nothing", encoding="utf-8")
    marked = tmp_path / "marked.md"
    marked.write_text("{{renderer :ruby, a, b}}", encoding="utf-8")

    assert cli.main(["detect", str(plain)]) == 1
    assert cli.main(["detect", str(plain), str(marked)]) == 0
    out = capsys.readouterr().out
    assert "plain.md: no annotations" in out
    assert "marked.md: annotations found" in out


def test_examples_listing(capsys) -> None:
    assert cli.main(["examples"]) == 0
    out = capsys.readouterr().out
    assert "## 1. Basic Ruby - Above" in out
    assert "Total examples: 24" in out
    assert '<span class="ls-ruby-underline ls-ruby-underline-wavy">base</span>' in out

    assert cli.main(["examples", "--markdown"]) == 0
    markdown = capsys.readouterr().out
    assert markdown.startswith("- `[base]^^(ruby)` (Basic Ruby - Above)")


def test_no_arguments_prints_help(capsys) -> None:
    assert cli.main([]) == 0
    assert "rubymark" in capsys.readouterr().out
