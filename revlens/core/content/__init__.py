"""
Content classification for uploaded files.

Exports:
- classify, is_text, ContentKind: text/binary gate
- detect_language: file name → language tag
- sanitize_filename, format_size: upload helpers
"""

from .classifier import BINARY_SIGNATURES, ContentKind, classify, is_text
from .files import format_size, sanitize_filename
from .language import UNKNOWN_LANGUAGE, detect_language

__all__ = [
    "BINARY_SIGNATURES",
    "ContentKind",
    "classify",
    "is_text",
    "detect_language",
    "UNKNOWN_LANGUAGE",
    "sanitize_filename",
    "format_size",
]
