"""Utility helpers for pyopus.

Progress from the build pipeline goes through :func:`echo`, which writes plain
lines to stderr. The hatch build hook swaps in hatch's own display functions.
"""

from __future__ import annotations

import sys
from typing import Callable

__all__ = ["Echo", "echo"]

Echo = Callable[[str], None]


def echo(message: str) -> None:
    """Print a progress line to stderr."""
    print(f"[opus] {message}", file=sys.stderr)
