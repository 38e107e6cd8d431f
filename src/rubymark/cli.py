from __future__ import annotations

import argparse
import sys
from importlib import metadata
from pathlib import Path
from typing import Iterable

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)

import tomllib

from .config import FORMATS, ConverterConfig, load_config
from .core import any_to_macro, any_to_markup, any_to_rendered, detect_any_annotation, macro_to_rendered
from .errors import RubyMarkError
from .examples import format_examples, format_examples_markdown
from .fragments import render_html_fragment
from .logging_utils import debug_log, set_debug_logging
from .render import RenderOptions

_HTML_SUFFIXES = {".html", ".htm"}


def _read_local_version() -> str | None:
    try:
        pyproject_path = Path(__file__).resolve().parents[2] / "pyproject.toml"
    except IndexError:  # pragma: no cover
        return None
    try:
        with pyproject_path.open("rb") as fh:
            data = tomllib.load(fh)
    except (FileNotFoundError, tomllib.TOMLDecodeError):
        return None
    return data.get("project", {}).get("version")


try:
    __version__ = metadata.version("rubymark")
except metadata.PackageNotFoundError:
    __version__ = _read_local_version() or "0.0.0+unknown"


def _add_version_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"rubymark {__version__}",
    )


def _add_debug_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Print conversion diagnostics to stderr.",
    )


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="rubymark",
        description=(
            "Convert ruby annotations between markup ([漢字]^^(かんじ)), macro "
            "({{renderer :ruby, 漢字, かんじ}}) and rendered HTML. "
            "Use `rubymark detect` to scan files and `rubymark examples` for the syntax gallery."
        ),
    )
    _add_version_flag(ap)
    ap.add_argument(
        "inputs",
        nargs="+",
        help="Input files, or directories whose files match the configured extensions.",
    )
    ap.add_argument(
        "-f",
        "--format",
        choices=FORMATS,
        default=None,
        help="Output format (default: html, or the configured format).",
    )
    ap.add_argument(
        "-o",
        "--output",
        help="Output file. Only valid with a single input file.",
    )
    ap.add_argument(
        "--stdout",
        action="store_true",
        help="Write converted text to stdout instead of files.",
    )
    ap.add_argument(
        "--inline-styles",
        action="store_true",
        help="Add inline style attributes to rendered HTML.",
    )
    ap.add_argument(
        "--config",
        help="Path to a rubymark.toml (or pyproject.toml with [tool.rubymark]).",
    )
    _add_debug_flag(ap)
    return ap


def build_detect_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="rubymark detect",
        description="Report which files contain ruby annotation content in any form.",
    )
    _add_version_flag(ap)
    ap.add_argument("inputs", nargs="+", help="Files or directories to scan.")
    ap.add_argument("--config", help="Path to a configuration file.")
    _add_debug_flag(ap)
    return ap


def build_examples_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="rubymark examples",
        description="Print the annotation syntax gallery with rendered HTML.",
    )
    _add_version_flag(ap)
    ap.add_argument(
        "--markdown",
        action="store_true",
        help="Emit a compact Markdown list instead of the numbered listing.",
    )
    ap.add_argument(
        "--inline-styles",
        action="store_true",
        help="Add inline style attributes to rendered HTML.",
    )
    return ap


def _load_config(path: str | None) -> ConverterConfig:
    try:
        return load_config(path)
    except RubyMarkError as exc:
        raise SystemExit(str(exc)) from exc


def _collect_inputs(raw_paths: Iterable[str], extensions: Iterable[str]) -> list[Path]:
    allowed = {ext.lower() for ext in extensions}
    files: list[Path] = []
    for raw in raw_paths:
        path = Path(raw)
        if not path.exists():
            raise SystemExit(f"Input path not found: {path}")
        if path.is_dir():
            found = sorted(p for p in path.iterdir() if p.is_file() and p.suffix.lower() in allowed)
            if not found:
                debug_log(f"no files with {sorted(allowed)} in {path}")
            files.extend(found)
        else:
            files.append(path)
    return files


def convert_text(text: str, fmt: str, options: RenderOptions | None = None, *, html_input: bool = False) -> str:
    if fmt == "markup":
        return any_to_markup(text)
    if fmt == "macro":
        return any_to_macro(text)
    if fmt == "html":
        if html_input:
            return render_html_fragment(macro_to_rendered(text, options), options)
        return any_to_rendered(text, options)
    raise ValueError(f"Unknown format: {fmt}")


def default_output_path(input_path: Path, config: ConverterConfig) -> Path:
    name = f"{input_path.stem}{config.output_suffix}{config.output_extension}"
    return input_path.with_name(name)


class _RichProgress:
    def __init__(self, total: int) -> None:
        self.console = Console(stderr=True)
        self.enabled = total > 1 and self.console.is_terminal
        self.progress: Progress | None = None
        self.task = None
        if not self.enabled:
            return
        self.progress = Progress(
            TextColumn("{task.description}", justify="left"),
            BarColumn(bar_width=None),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            TextColumn("{task.fields[detail]}", justify="left"),
            console=self.console,
            transient=False,
        )
        self.progress.start()
        self.task = self.progress.add_task("Converting", total=total, detail="")

    def advance(self, path: Path) -> None:
        if self.progress is not None and self.task is not None:
            self.progress.update(self.task, advance=1, detail=path.name)

    def close(self) -> None:
        if self.progress is not None:
            self.progress.stop()


def _run_convert(args: argparse.Namespace) -> int:
    config = _load_config(args.config)
    if args.format is not None:
        config.format = args.format
    if args.inline_styles:
        config.inline_styles = True
    options = config.render_options()

    files = _collect_inputs(args.inputs, config.extensions)
    if not files:
        raise SystemExit("No input files found.")
    if args.output and (len(files) != 1 or args.stdout):
        raise SystemExit("--output can only be used with a single input file and without --stdout.")

    progress = _RichProgress(0 if args.stdout else len(files))
    try:
        for path in files:
            try:
                content = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                raise SystemExit(f"Failed to read {path}: {exc}") from exc
            if not detect_any_annotation(content):
                debug_log(f"{path}: no annotation content found")
            try:
                result = convert_text(
                    content,
                    config.format,
                    options,
                    html_input=path.suffix.lower() in _HTML_SUFFIXES,
                )
            except RubyMarkError as exc:
                raise SystemExit(f"{path}: {exc}") from exc
            if args.stdout:
                sys.stdout.write(result)
                continue
            output_path = Path(args.output) if args.output else default_output_path(path, config)
            output_path.write_text(result, encoding="utf-8")
            debug_log(f"{path} -> {output_path} ({len(content)} -> {len(result)} chars)")
            progress.advance(path)
            if not progress.enabled:
                print(f"Converted {path} -> {output_path}")
    finally:
        progress.close()
    return 0


def _run_detect(args: argparse.Namespace) -> int:
    config = _load_config(args.config)
    files = _collect_inputs(args.inputs, config.extensions)
    if not files:
        raise SystemExit("No input files found.")
    found_any = False
    for path in files:
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise SystemExit(f"Failed to read {path}: {exc}") from exc
        found = detect_any_annotation(content)
        found_any = found_any or found
        print(f"{path}: {'annotations found' if found else 'no annotations'}")
    return 0 if found_any else 1


def _run_examples(args: argparse.Namespace) -> int:
    options = RenderOptions(inline_styles=args.inline_styles)
    if args.markdown:
        print(format_examples_markdown(options))
    else:
        print(format_examples(options))
    return 0


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    if argv and argv[0] == "detect":
        detect_args = build_detect_parser().parse_args(argv[1:])
        set_debug_logging(detect_args.debug)
        return _run_detect(detect_args)
    if argv and argv[0] == "examples":
        examples_args = build_examples_parser().parse_args(argv[1:])
        return _run_examples(examples_args)

    parser = build_parser()
    if not argv:
        parser.print_help()
        return 0

    args = parser.parse_args(argv)
    set_debug_logging(args.debug)
    return _run_convert(args)


if __name__ == "__main__":
    raise SystemExit(main())
