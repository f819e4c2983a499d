"""
ANSI styling helpers for console output.

All functions are pure: they take the text and whether styling is enabled
and return the decorated string.
"""
from __future__ import annotations

import os
from typing import IO, Optional

RESET = "\033[0m"
BOLD = "\033[1m"
RED = "\033[31m"
GREEN = "\033[32m"
BLUE = "\033[34m"
GRAY = "\033[90m"


def supports_color(stream: Optional[IO] = None) -> bool:
    """Return True if ANSI colors should be written to ``stream``."""
    if os.environ.get("NO_COLOR"):
        return False
    if stream is None:
        return False
    isatty = getattr(stream, "isatty", None)
    try:
        return bool(isatty and isatty())
    except ValueError:
        # Closed stream
        return False


def style(text: str, *codes: str, enabled: bool = True) -> str:
    """Wrap ``text`` in the given escape codes followed by a reset."""
    if not enabled or not codes:
        return text
    return f"{''.join(codes)}{text}{RESET}"


def bold(text: str, enabled: bool = True) -> str:
    return style(text, BOLD, enabled=enabled)


def red(text: str, enabled: bool = True) -> str:
    return style(text, RED, enabled=enabled)


def green(text: str, enabled: bool = True) -> str:
    return style(text, GREEN, enabled=enabled)


def blue(text: str, enabled: bool = True) -> str:
    return style(text, BLUE, enabled=enabled)


def gray(text: str, enabled: bool = True) -> str:
    return style(text, GRAY, enabled=enabled)
