"""Validation gate applied before any extraction work.

Shared by the file-upload and URL entry points.  The checks are pure
functions of their inputs: malformed-but-present input yields a
:class:`~plugrag.models.results.ValidationResult` listing every problem, and
exceptions are reserved for programmer errors (missing or mistyped
arguments).
"""

from __future__ import annotations

from urllib.parse import urlparse

import structlog

from plugrag.models.document import FileType
from plugrag.models.results import ValidationResult
from plugrag.services.ingestion.format_detector import detect_file_type, file_extension
from plugrag.utils.text_normalizer import control_char_ratio, decode_bytes

logger = structlog.get_logger(logger_name=__name__)

MAX_UPLOAD_BYTES = 50 * 1024 * 1024
LARGE_FILE_WARNING_BYTES = 10 * 1024 * 1024
MAX_FILENAME_LENGTH = 255
# Share of control characters above which "text" is treated as binary data.
MAX_BINARY_RATIO = 0.1

SUPPORTED_TYPES = frozenset(
    {FileType.PDF, FileType.DOCX, FileType.TXT, FileType.CSV, FileType.HTML, FileType.MARKDOWN}
)
_TEXT_TYPES = frozenset({FileType.TXT, FileType.CSV, FileType.MARKDOWN})

_BLOCKED_EXTENSIONS = frozenset({".exe", ".bat", ".sh", ".cmd", ".com", ".scr", ".vbs", ".js"})


def validate_input(
    data: bytes,
    declared_name: str,
    declared_mime_type: str | None = None,
    *,
    max_bytes: int = MAX_UPLOAD_BYTES,
    large_file_warning_bytes: int = LARGE_FILE_WARNING_BYTES,
) -> ValidationResult:
    """Check size and type constraints for an uploaded file.

    Parameters
    ----------
    data:
        The complete file content.
    declared_name:
        File name supplied by the uploader (may be empty; that is reported
        as a validation error, not raised).
    declared_mime_type:
        MIME type supplied by the uploader, if any.
    max_bytes:
        Size ceiling; 50 MB for uploads, ``max_content_length`` for fetched
        URL content.

    Raises
    ------
    TypeError
        If *data* is not bytes-like or *declared_name* is not a string.
    """
    if data is None:
        raise TypeError("data is required")
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise TypeError(f"data must be bytes, not {type(data).__name__}")
    if declared_name is None or not isinstance(declared_name, str):
        raise TypeError("declared_name must be a string")

    data = bytes(data)
    errors: list[str] = []
    warnings: list[str] = []
    size = len(data)

    name = declared_name.strip()
    if not name:
        errors.append("File name is required")
    elif len(name) > MAX_FILENAME_LENGTH:
        errors.append(f"File name is too long (max {MAX_FILENAME_LENGTH} characters)")

    extension = file_extension(name)
    if extension in _BLOCKED_EXTENSIONS:
        errors.append(f"File extension {extension} is not allowed for security reasons")

    if size == 0:
        errors.append("File is empty")
    elif size > max_bytes:
        errors.append(
            f"File size ({size / (1024 * 1024):.2f}MB) exceeds maximum limit of "
            f"{max_bytes / (1024 * 1024):.2f}MB"
        )
    elif size > large_file_warning_bytes:
        warnings.append("Large file detected - processing may take longer")

    detected = detect_file_type(data, name, declared_mime_type)
    if detected not in SUPPORTED_TYPES:
        errors.append(
            f"File type is not supported (declared {declared_mime_type or 'none'}, "
            f"name {name or 'none'}). Supported types: "
            f"{', '.join(sorted(t.value for t in SUPPORTED_TYPES))}"
        )
    elif detected in _TEXT_TYPES and 0 < size <= max_bytes:
        text, _ = decode_bytes(data[:65536])
        if control_char_ratio(text) > MAX_BINARY_RATIO:
            errors.append("Text file appears to contain binary data")

    result = ValidationResult(
        is_valid=not errors,
        detected_type=detected,
        errors=errors,
        warnings=warnings,
        size_bytes=size,
    )
    logger.debug(
        "input_validated",
        name=name,
        detected_type=detected.value,
        size_bytes=size,
        is_valid=result.is_valid,
        errors=len(errors),
    )
    return result


def validate_url(url: str) -> ValidationResult:
    """Check that *url* is an absolute http(s) URL.

    The detected type of a URL is only known after fetching, so the result
    reports :attr:`FileType.HTML` provisionally.
    """
    if url is None or not isinstance(url, str):
        raise TypeError("url must be a string")

    errors: list[str] = []
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https"):
        errors.append("URL must use http or https")
    if not parsed.netloc:
        errors.append("URL must be absolute and include a host")

    return ValidationResult(is_valid=not errors, detected_type=FileType.HTML, errors=errors)
