from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping

import tomllib

from .errors import ConfigError
from .render import RenderOptions

__all__ = [
    "ConverterConfig",
    "FORMATS",
    "OUTPUT_EXTENSIONS",
    "CONFIG_ENV",
    "INLINE_STYLES_ENV",
    "CONFIG_FILENAME",
    "load_config",
    "find_config_path",
]

FORMATS = ("html", "markup", "macro")
OUTPUT_EXTENSIONS = {"html": ".html", "markup": ".md", "macro": ".txt"}
CONFIG_ENV = "RUBYMARK_CONFIG"
INLINE_STYLES_ENV = "RUBYMARK_INLINE_STYLES"
CONFIG_FILENAME = "rubymark.toml"
_DEFAULT_EXTENSIONS = (".md", ".markdown", ".txt", ".html", ".htm")
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass
class ConverterConfig:
    format: str = "html"
    inline_styles: bool = False
    extensions: tuple[str, ...] = _DEFAULT_EXTENSIONS
    output_suffix: str = ".converted"
    source: Path | None = None

    def render_options(self) -> RenderOptions:
        return RenderOptions(inline_styles=self.inline_styles)

    @property
    def output_extension(self) -> str:
        return OUTPUT_EXTENSIONS[self.format]


def _parse_bool(value: str, origin: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(f"{origin} must be a boolean, got {value!r}.")


def _normalize_extension(value: str) -> str:
    value = value.strip().lower()
    return value if value.startswith(".") else f".{value}"


def _from_mapping(raw: Mapping[str, Any], origin: str) -> ConverterConfig:
    config = ConverterConfig()
    fmt = raw.get("format", config.format)
    if fmt not in FORMATS:
        raise ConfigError(f"{origin}: 'format' must be one of {', '.join(FORMATS)}; got {fmt!r}.")
    inline_styles = raw.get("inline_styles", config.inline_styles)
    if not isinstance(inline_styles, bool):
        raise ConfigError(f"{origin}: 'inline_styles' must be true or false.")
    extensions = raw.get("extensions", list(config.extensions))
    if not isinstance(extensions, list) or not all(isinstance(ext, str) and ext.strip() for ext in extensions):
        raise ConfigError(f"{origin}: 'extensions' must be an array of non-empty strings.")
    suffix = raw.get("output_suffix", config.output_suffix)
    if not isinstance(suffix, str):
        raise ConfigError(f"{origin}: 'output_suffix' must be a string.")
    return ConverterConfig(
        format=fmt,
        inline_styles=inline_styles,
        extensions=tuple(_normalize_extension(ext) for ext in extensions),
        output_suffix=suffix,
    )


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as fh:
            return tomllib.load(fh)
    except OSError as exc:
        raise ConfigError(f"Failed to read config file: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Failed to parse config file: {path} ({exc})") from exc


def find_config_path(cwd: Path | None = None) -> tuple[Path, bool] | None:
    """
    Locate the configuration file to use.

    Returns ``(path, in_pyproject)`` or None. ``$RUBYMARK_CONFIG`` wins over
    ``rubymark.toml`` in the working directory, which wins over a
    ``[tool.rubymark]`` table in ``pyproject.toml``.
    """
    env_path = os.environ.get(CONFIG_ENV)
    if env_path:
        return Path(env_path).expanduser(), False
    base = cwd or Path.cwd()
    local = base / CONFIG_FILENAME
    if local.is_file():
        return local, False
    pyproject = base / "pyproject.toml"
    if pyproject.is_file():
        return pyproject, True
    return None


def load_config(path: Path | str | None = None, *, cwd: Path | None = None) -> ConverterConfig:
    if path is not None:
        located: tuple[Path, bool] | None = (Path(path).expanduser(), Path(path).name == "pyproject.toml")
    else:
        located = find_config_path(cwd)

    config = ConverterConfig()
    if located is not None:
        config_path, in_pyproject = located
        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")
        raw = _read_toml(config_path)
        if in_pyproject:
            raw = raw.get("tool", {}).get("rubymark", {})
        if not isinstance(raw, dict):
            raise ConfigError(f"{config_path.name}: [tool.rubymark] must be a table.")
        config = _from_mapping(raw, config_path.name)
        config.source = config_path

    env_inline = os.environ.get(INLINE_STYLES_ENV)
    if env_inline is not None:
        config = replace(config, inline_styles=_parse_bool(env_inline, INLINE_STYLES_ENV))
    return config
