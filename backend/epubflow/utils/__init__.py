"""Utility modules for the epubflow backend."""

from .text import one_line, safe_truncate

__all__ = ["one_line", "safe_truncate"]
