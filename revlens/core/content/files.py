"""Filename and size helpers for uploads."""

import os

from ..constants import MAX_FILENAME_LENGTH

_UNSAFE_CHARS = ("/", "\\", ":", "*", "?", '"', "<", ">", "|")

_SIZE_UNITS = ("KB", "MB", "GB", "TB", "PB")


def sanitize_filename(filename: str) -> str:
    """Make an uploaded file name safe to use as a single path component.

    Traversal sequences are removed, separators and shell-hostile
    characters become underscores, and overlong names are truncated
    while keeping the extension.
    """
    filename = filename.replace("..", "")
    for ch in _UNSAFE_CHARS:
        filename = filename.replace(ch, "_")

    if len(filename) > MAX_FILENAME_LENGTH:
        base, ext = os.path.splitext(filename)
        if len(ext) >= MAX_FILENAME_LENGTH:
            filename = filename[:MAX_FILENAME_LENGTH]
        else:
            filename = base[:max(0, MAX_FILENAME_LENGTH - len(ext))] + ext

    return filename


def format_size(num_bytes: int) -> str:
    """Human readable size, e.g. 512 B, 1.5 KB, 3.0 MB."""
    unit = 1024
    if num_bytes < unit:
        return f"{num_bytes} B"
    div, exp = unit, 0
    n = num_bytes // unit
    while n >= unit and exp < len(_SIZE_UNITS) - 1:
        div *= unit
        exp += 1
        n //= unit
    return f"{num_bytes / div:.1f} {_SIZE_UNITS[exp]}"
