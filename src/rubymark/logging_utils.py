from __future__ import annotations

import sys

__all__ = ["set_debug_logging", "debug_enabled", "debug_log"]

_DEBUG_LOG = False


def set_debug_logging(enabled: bool) -> None:
    global _DEBUG_LOG
    _DEBUG_LOG = enabled


def debug_enabled() -> bool:
    return _DEBUG_LOG


def debug_log(message: str) -> None:
    if _DEBUG_LOG:
        print(f"[rubymark debug] {message}", file=sys.stderr)
