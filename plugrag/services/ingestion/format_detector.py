"""Format detection for uploaded bytes and fetched URL content.

Detection order:

1. Declared MIME type (parameters such as ``; charset=`` are ignored).
2. File extension, when the MIME type is absent or generic
   (``application/octet-stream``).
3. Magic bytes (PDF, DOCX, HTML), when neither of the above decides.

Anything still undecided is :attr:`FileType.UNKNOWN`; the detector never
guesses, so the extractor can fail fast instead of running a mismatched
parser.
"""

from __future__ import annotations

import io
import zipfile
from pathlib import PurePosixPath
from urllib.parse import urlparse

from plugrag.models.document import FileType

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

_MIME_MAP: dict[str, FileType] = {
    "application/pdf": FileType.PDF,
    "application/x-pdf": FileType.PDF,
    DOCX_MIME: FileType.DOCX,
    "text/plain": FileType.TXT,
    "text/csv": FileType.CSV,
    "application/csv": FileType.CSV,
    "text/comma-separated-values": FileType.CSV,
    "text/html": FileType.HTML,
    "application/xhtml+xml": FileType.HTML,
    "text/markdown": FileType.MARKDOWN,
    "text/x-markdown": FileType.MARKDOWN,
}

_EXTENSION_MAP: dict[str, FileType] = {
    ".pdf": FileType.PDF,
    ".docx": FileType.DOCX,
    ".txt": FileType.TXT,
    ".text": FileType.TXT,
    ".csv": FileType.CSV,
    ".html": FileType.HTML,
    ".htm": FileType.HTML,
    ".xhtml": FileType.HTML,
    ".md": FileType.MARKDOWN,
    ".markdown": FileType.MARKDOWN,
}

# MIME types that carry no format information.
_GENERIC_MIME = frozenset({"", "application/octet-stream", "binary/octet-stream"})

_MARKDOWN_EXTENSIONS = frozenset({".md", ".markdown"})
_HTML_PREFIXES = (b"<!doctype html", b"<html")


def normalize_mime_type(mime_type: str | None) -> str:
    """Lower-case *mime_type* and drop parameters (``text/html; charset=x`` -> ``text/html``)."""
    if not mime_type:
        return ""
    return mime_type.split(";", 1)[0].strip().lower()


def file_extension(name: str | None) -> str:
    """Return the lower-cased extension of a file name or URL path, dot included."""
    if not name:
        return ""
    path = urlparse(name).path if "://" in name else name
    return PurePosixPath(path.replace("\\", "/")).suffix.lower()


def detect_file_type(
    data: bytes | None,
    filename: str | None,
    mime_type: str | None,
) -> FileType:
    """Classify input into a :class:`FileType`.

    Parameters
    ----------
    data:
        File content; only the leading bytes are inspected, and only when
        MIME type and extension are inconclusive.  May be ``None``.
    filename:
        Declared file name or URL.
    mime_type:
        Declared MIME type, possibly with parameters.
    """
    mime = normalize_mime_type(mime_type)
    extension = file_extension(filename)

    if mime not in _GENERIC_MIME:
        detected = _MIME_MAP.get(mime)
        # Markdown is routinely uploaded as text/plain.
        if detected is FileType.TXT and extension in _MARKDOWN_EXTENSIONS:
            return FileType.MARKDOWN
        return detected or FileType.UNKNOWN

    if extension in _EXTENSION_MAP:
        return _EXTENSION_MAP[extension]

    return sniff_file_type(data)


def sniff_file_type(data: bytes | None) -> FileType:
    """Detect a format from magic bytes; ``UNKNOWN`` when inconclusive."""
    if not data:
        return FileType.UNKNOWN
    head = data[:1024].lstrip()
    if head.startswith(b"%PDF-"):
        return FileType.PDF
    if data.startswith(b"PK\x03\x04") and _is_docx_archive(data):
        return FileType.DOCX
    if head.lower().startswith(_HTML_PREFIXES):
        return FileType.HTML
    return FileType.UNKNOWN


def _is_docx_archive(data: bytes) -> bool:
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            return any(name.startswith("word/") for name in archive.namelist())
    except zipfile.BadZipFile:
        return False
