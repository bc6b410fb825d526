"""Text/binary classification for uploaded bytes.

Only content classified as text is stored and fed to analysis.
Ambiguous input classifies as TEXT.
"""

from enum import Enum

from ..constants import BINARY_CONTROL_RATIO, TEXT_SAMPLE_SIZE


class ContentKind(Enum):
    """Classification outcome for a byte payload."""
    TEXT = "text"
    BINARY = "binary"


# Leading-byte signatures of well-known binary formats
BINARY_SIGNATURES = (
    b"\x00",                # NUL byte
    b"\xff\xfe",            # UTF-16 LE BOM
    b"\xfe\xff",            # UTF-16 BE BOM
    b"\x7fELF",             # ELF executable
    b"MZ",                  # Windows PE/COFF
    b"PK",                  # ZIP / JAR
    b"\x89PNG",             # PNG
    b"\xff\xd8\xff",        # JPEG
    b"GIF",                 # GIF
)

# Control bytes that legitimately appear in text
_ALLOWED_CONTROL = frozenset((0x09, 0x0A, 0x0D))


def _is_valid_utf8(data: bytes) -> bool:
    try:
        data.decode("utf-8")
    except UnicodeDecodeError:
        return False
    return True


def classify(data: bytes) -> ContentKind:
    """Classify a payload as TEXT or BINARY.

    Rules are applied in order, first match wins:
    1. empty input is text
    2. invalid UTF-8 is binary
    3. a known binary signature at the start is binary
    4. >= 30% control bytes in the first 512 bytes is binary
    """
    if not data:
        return ContentKind.TEXT

    if not _is_valid_utf8(data):
        return ContentKind.BINARY

    if data.startswith(BINARY_SIGNATURES):
        return ContentKind.BINARY

    sample = data[:TEXT_SAMPLE_SIZE]
    control = sum(1 for b in sample if b < 0x20 and b not in _ALLOWED_CONTROL)
    if control / len(sample) >= BINARY_CONTROL_RATIO:
        return ContentKind.BINARY

    return ContentKind.TEXT


def is_text(data: bytes) -> bool:
    return classify(data) is ContentKind.TEXT
