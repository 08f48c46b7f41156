"""Unit tests for text normalization utilities."""

from __future__ import annotations

import pytest

from plugrag.utils.text_normalizer import (
    clean_pdf_text,
    collapse_whitespace,
    control_char_ratio,
    count_words,
    decode_bytes,
    normalize_text,
    split_paragraphs,
    strip_control_chars,
)


# ======================================================================
# normalize_text
# ======================================================================


class TestNormalizeText:
    """Tests for the normalize_text function."""

    def test_line_endings(self) -> None:
        assert normalize_text("a\r\nb\rc") == "a\nb\nc"

    def test_collapses_spaces_and_tabs(self) -> None:
        assert normalize_text("a \t  b  c") == "a b c"

    def test_keeps_single_blank_line(self) -> None:
        assert normalize_text("one\n\n\n\n two \n\nthree") == "one\n\ntwo\n\nthree"

    def test_strips_ends(self) -> None:
        assert normalize_text("\n\n  text  \n") == "text"


class TestCollapseWhitespace:
    def test_newlines_become_spaces(self) -> None:
        assert collapse_whitespace(" a\n\n b\tc ") == "a b c"


# ======================================================================
# PDF cleanup
# ======================================================================


class TestCleanPdfText:
    def test_joins_hyphenated_words(self) -> None:
        assert clean_pdf_text("infor-\nmation") == "information"

    def test_removes_page_footers(self) -> None:
        assert clean_pdf_text("Body text\nPage 3 of 10\nMore") == "Body text\n\nMore"

    def test_keeps_real_hyphens(self) -> None:
        assert clean_pdf_text("state-of-the-art") == "state-of-the-art"


# ======================================================================
# Paragraphs and counts
# ======================================================================


class TestSplitParagraphs:
    def test_blank_lines_split(self) -> None:
        assert split_paragraphs("a\nb\n\n  \n\nc") == ["a\nb", "c"]

    def test_empty(self) -> None:
        assert split_paragraphs("   ") == []


class TestCountWords:
    def test_counts_non_space_runs(self) -> None:
        assert count_words("one two\nthree  four.") == 4
        assert count_words("") == 0


class TestControlChars:
    def test_ratio(self) -> None:
        assert control_char_ratio("ab\x00\x01") == pytest.approx(0.5)
        assert control_char_ratio("") == 0.0

    def test_replacement_char_counts(self) -> None:
        assert control_char_ratio("a\ufffd") == pytest.approx(0.5)

    def test_tabs_and_newlines_are_not_control(self) -> None:
        assert control_char_ratio("a\tb\nc") == 0.0

    def test_strip(self) -> None:
        assert strip_control_chars("a\x00b\x07c\n") == "abc\n"


# ======================================================================
# decode_bytes
# ======================================================================


class TestDecodeBytes:
    def test_utf8(self) -> None:
        assert decode_bytes("żółw".encode()) == ("żółw", "utf-8")

    def test_cp1252_fallback(self) -> None:
        assert decode_bytes(b"\x93quoted\x94") == ("“quoted”", "cp1252")

    def test_latin1_last_resort(self) -> None:
        # 0x81 is undefined in cp1252.
        text, encoding = decode_bytes(b"a\x81b")
        assert encoding == "latin-1"
        assert text == "a\x81b"

    def test_utf16_bom(self) -> None:
        text, encoding = decode_bytes("hi".encode("utf-16"))
        assert (text, encoding) == ("hi", "utf-16")

    def test_unknown_declared_encoding_ignored(self) -> None:
        assert decode_bytes(b"plain", "no-such-codec") == ("plain", "utf-8")
