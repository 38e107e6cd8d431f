from __future__ import annotations


class RubyMarkError(Exception):
    """Base class for rubymark errors."""


class CodeSpanRestoreError(RubyMarkError, RuntimeError):
    """Raised when a protected code span placeholder vanished during conversion."""


class ConfigError(RubyMarkError, ValueError):
    """Raised when a configuration file or value cannot be used."""


__all__ = ["RubyMarkError", "CodeSpanRestoreError", "ConfigError"]
