"""EPUB processing package."""

from .reader import (
    EPUBReader,
    ParsedBook,
    ParsedUnit,
    BookMetadata,
    OPF_NS,
    DC_NS,
)
from .writer import EPUBWriter
from .styles import get_stylesheet, language_code, is_cjk_language

__all__ = [
    "EPUBReader",
    "EPUBWriter",
    "ParsedBook",
    "ParsedUnit",
    "BookMetadata",
    "OPF_NS",
    "DC_NS",
    "get_stylesheet",
    "language_code",
    "is_cjk_language",
]
