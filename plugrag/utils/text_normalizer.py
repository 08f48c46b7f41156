"""Text normalization shared by the format extractors.

Extractors hand raw parser output through these helpers before it becomes
part of an :class:`~plugrag.models.document.ExtractedDocument`, so every
format ends up with the same whitespace conventions:

- line endings are ``\\n`` only,
- runs of spaces/tabs collapse to one space and lines are stripped,
- paragraphs are separated by exactly one blank line.

Byte decoding also lives here because TXT, Markdown and CSV share it.
"""

from __future__ import annotations

import codecs
import re

_MULTI_SPACE = re.compile(r"[ \t\u00a0\u2000-\u200b\u3000]+")
_MULTI_NEWLINE = re.compile(r"\n{3,}")
_PARAGRAPH_SPLIT = re.compile(r"\n[ \t]*\n")
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_HYPHENATED_BREAK = re.compile(r"(\w)-\n(\w)")
_PAGE_FOOTER = re.compile(r"^\s*page\s+\d+(\s+of\s+\d+)?\s*$", re.IGNORECASE | re.MULTILINE)
_WORD = re.compile(r"\S+")

# Decoding order for byte input without an explicit charset.  latin-1 maps
# every byte, so the chain always terminates.
_FALLBACK_ENCODINGS = ("utf-8", "cp1252", "latin-1")


def normalize_text(text: str) -> str:
    """Normalize line endings and whitespace while keeping paragraph breaks."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _MULTI_SPACE.sub(" ", text)
    text = "\n".join(line.strip() for line in text.split("\n"))
    text = _MULTI_NEWLINE.sub("\n\n", text)
    return text.strip()


def collapse_whitespace(text: str) -> str:
    """Collapse every whitespace run (newlines included) into one space."""
    return " ".join(text.split())


def clean_pdf_text(text: str) -> str:
    """Remove PDF layout artifacts: page footers and hyphenated line breaks."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _PAGE_FOOTER.sub("", text)
    text = _HYPHENATED_BREAK.sub(r"\1\2", text)
    return normalize_text(text)


def split_paragraphs(text: str) -> list[str]:
    """Split *text* on blank lines, discarding empty blocks."""
    parts = _PARAGRAPH_SPLIT.split(text)
    return [p.strip() for p in parts if p.strip()]


def count_words(text: str) -> int:
    return len(_WORD.findall(text))


def control_char_ratio(text: str) -> float:
    """Share of characters that are control characters or U+FFFD replacements."""
    if not text:
        return 0.0
    bad = len(_CONTROL_CHARS.findall(text)) + text.count("\ufffd")
    return bad / len(text)


def strip_control_chars(text: str) -> str:
    return _CONTROL_CHARS.sub("", text)


def decode_bytes(data: bytes, encoding: str | None = None) -> tuple[str, str]:
    """Decode *data* to text and report the encoding that was used.

    An explicit *encoding* (e.g. from an HTTP ``Content-Type`` header) wins
    when it is known to Python.  Otherwise BOMs are honoured, then UTF-8,
    cp1252 and finally latin-1 are tried in order.

    Returns
    -------
    tuple[str, str]
        ``(text, encoding_name)``.
    """
    if encoding:
        try:
            codecs.lookup(encoding)
        except LookupError:
            encoding = None
    if encoding:
        return data.decode(encoding, errors="replace"), encoding

    if data.startswith(codecs.BOM_UTF8):
        return data[len(codecs.BOM_UTF8):].decode("utf-8", errors="replace"), "utf-8-sig"
    if data.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
        return data.decode("utf-16", errors="replace"), "utf-16"

    for candidate in _FALLBACK_ENCODINGS:
        try:
            return data.decode(candidate), candidate
        except UnicodeDecodeError:
            continue
    # Unreachable: latin-1 decodes any byte sequence.
    return data.decode("latin-1", errors="replace"), "latin-1"
