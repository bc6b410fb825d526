"""Tests for upload content helpers: classification, language, names, sizes."""

import pytest

from revlens.core.content import (
    BINARY_SIGNATURES,
    ContentKind,
    classify,
    detect_language,
    format_size,
    is_text,
    sanitize_filename,
)


# ── Tests: classify ──────────────────────────────────────────────────────


class TestClassify:

    def test_empty_is_text(self):
        assert classify(b"") is ContentKind.TEXT

    def test_plain_source_is_text(self):
        assert classify(b"package main\n\nfunc main() {}\n") is ContentKind.TEXT

    def test_multibyte_utf8_is_text(self):
        assert classify("# コメント\nprint('hé')\n".encode("utf-8")) is ContentKind.TEXT

    def test_invalid_utf8_is_binary(self):
        assert classify(b"abc\xc3\x28def") is ContentKind.BINARY

    @pytest.mark.parametrize("signature", BINARY_SIGNATURES)
    def test_signature_is_binary_whatever_follows(self, signature):
        """A leading magic number wins even over otherwise clean text."""
        assert classify(signature + b"hello world\n") is ContentKind.BINARY

    def test_control_heavy_sample_is_binary(self):
        data = b"\x01\x02\x03\x04" * 40 + b"abcdef" * 10
        assert classify(data) is ContentKind.BINARY

    def test_few_control_bytes_stay_text(self):
        data = b"a" * 100 + b"\x01"
        assert classify(data) is ContentKind.TEXT

    def test_tabs_and_newlines_are_not_control(self):
        assert classify(b"\t\n\r" * 50) is ContentKind.TEXT

    def test_text_implies_valid_utf8(self):
        samples = [b"", b"abc", b"\x01\x02", "é".encode("utf-8"), b"\xe9", b"MZ"]
        for sample in samples:
            if classify(sample) is ContentKind.TEXT:
                sample.decode("utf-8")

    def test_is_text(self):
        assert is_text(b"hello") is True
        assert is_text(b"\x7fELF\x02\x01") is False


# ── Tests: detect_language ───────────────────────────────────────────────


class TestDetectLanguage:

    @pytest.mark.parametrize("filename,expected", [
        ("Main.go", "go"),
        ("app.PY", "python"),
        ("src/component.tsx", "typescript"),
        ("Dockerfile", "dockerfile"),
        ("Dockerfile.dev", "dockerfile"),
        ("Makefile", "makefile"),
        ("script.unknownext", "unknown"),
        ("README", "unknown"),
    ])
    def test_detect(self, filename, expected):
        assert detect_language(filename) == expected

    def test_extension_beats_convention_name(self):
        assert detect_language("makefile.py") == "python"


# ── Tests: sanitize_filename / format_size ───────────────────────────────


class TestSanitizeFilename:

    def test_plain_name_unchanged(self):
        assert sanitize_filename("main.go") == "main.go"

    def test_traversal_removed(self):
        assert sanitize_filename("../etc/passwd") == "_etc_passwd"

    def test_unsafe_characters_replaced(self):
        assert sanitize_filename('a:b*c?"d<e>f|g\\h') == "a_b_c__d_e_f_g_h"

    def test_long_name_keeps_extension(self):
        name = sanitize_filename("x" * 300 + ".py")
        assert len(name) == 255
        assert name.endswith(".py")

    def test_overlong_extension_is_truncated(self):
        name = sanitize_filename("a." + "x" * 300)
        assert len(name) == 255
        assert name.startswith("a.x")


class TestFormatSize:

    @pytest.mark.parametrize("num_bytes,expected", [
        (0, "0 B"),
        (512, "512 B"),
        (1536, "1.5 KB"),
        (3 * 1024 * 1024, "3.0 MB"),
    ])
    def test_format(self, num_bytes, expected):
        assert format_size(num_bytes) == expected
