"""Custom exception hierarchy for the PlugRAG ingestion core.

All ingestion exceptions inherit from :class:`PlugRAGError`, which carries a
read-only ``message`` and an optional ``file_type`` naming the document format
that was being processed when the failure happened.

The hierarchy follows the ingestion stages:

    PlugRAGError  (base -- catch-all for any ingestion error)
    +-- DocumentValidationError  (gate: empty / oversized / unsupported input)
    |   +-- ContentTooLargeError (fetched content over max_content_length)
    +-- ExtractionError          (format parser failed on valid input)
    +-- FetchError               (URL fetch failed: HTTP status, network)
    +-- FetchTimeoutError        (URL fetch exceeded its timeout)
    +-- ChunkingError            (invalid chunking options)
    +-- ConfigurationError       (missing collaborator / bad settings)

Callers map these to user-facing outcomes: validation errors are rejections
(ask for different input), extraction and timeout errors are retryable
failures on the owning file record.
"""

from __future__ import annotations


class PlugRAGError(Exception):
    """Base exception for all PlugRAG ingestion errors.

    ``__str__`` prefixes the file type in brackets for log scanning,
    e.g. ``[pdf] Failed to open document``.
    """

    def __init__(
        self,
        message: str = "An unexpected ingestion error occurred",
        file_type: str | None = None,
    ) -> None:
        self._message = message
        self._file_type = file_type
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def file_type(self) -> str | None:
        return self._file_type

    def __str__(self) -> str:
        if self._file_type:
            return f"[{self._file_type}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Validation gate
# ---------------------------------------------------------------------------

class DocumentValidationError(PlugRAGError):
    """Raised when input is empty, oversized, or of an unsupported type.

    Always detected before any extraction work begins.  ``errors`` holds
    every individual validation failure, not only the first one.
    """

    def __init__(
        self,
        message: str = "Input failed validation",
        errors: list[str] | None = None,
        file_type: str | None = None,
    ) -> None:
        super().__init__(message=message, file_type=file_type)
        self._errors = list(errors or [])

    @property
    def errors(self) -> list[str]:
        return list(self._errors)


class ContentTooLargeError(DocumentValidationError):
    """Raised when fetched URL content exceeds ``max_content_length``."""

    def __init__(
        self,
        message: str = "Fetched content exceeds the maximum content length",
        limit: int = 0,
        file_type: str | None = None,
    ) -> None:
        super().__init__(message=message, errors=[message], file_type=file_type)
        self._limit = limit

    @property
    def limit(self) -> int:
        return self._limit


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

class ExtractionError(PlugRAGError):
    """Raised when a format parser fails on otherwise valid input.

    ``detected_type`` is the format that was attempted and ``cause`` the
    underlying exception (also chained as ``__cause__`` by raisers).
    """

    def __init__(
        self,
        message: str = "Text extraction failed",
        detected_type: str = "unknown",
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message=message, file_type=detected_type)
        self._cause = cause

    @property
    def detected_type(self) -> str:
        return self._file_type or "unknown"

    @property
    def cause(self) -> BaseException | None:
        return self._cause


# ---------------------------------------------------------------------------
# URL fetching
# ---------------------------------------------------------------------------

class FetchError(PlugRAGError):
    """Raised when a URL cannot be fetched (HTTP error status, DNS, refused)."""

    def __init__(
        self,
        message: str = "Failed to fetch URL",
        url: str = "",
        status_code: int | None = None,
    ) -> None:
        super().__init__(message=message, file_type="html")
        self._url = url
        self._status_code = status_code

    @property
    def url(self) -> str:
        return self._url

    @property
    def status_code(self) -> int | None:
        return self._status_code


class FetchTimeoutError(PlugRAGError, TimeoutError):
    """Raised when a URL fetch exceeds the configured timeout.

    Kept distinct from :class:`FetchError` so callers can offer "try again"
    rather than "check the URL".  Also an instance of the builtin
    :class:`TimeoutError`.
    """

    def __init__(
        self,
        message: str = "URL fetch timed out",
        url: str = "",
        timeout: float = 0.0,
    ) -> None:
        super().__init__(message=message, file_type="html")
        self._url = url
        self._timeout = timeout

    @property
    def url(self) -> str:
        return self._url

    @property
    def timeout(self) -> float:
        return self._timeout


# ---------------------------------------------------------------------------
# Chunking / configuration
# ---------------------------------------------------------------------------

class ChunkingError(PlugRAGError):
    """Raised when chunking options are invalid (e.g. overlap >= max size)."""

    def __init__(self, message: str = "Invalid chunking options") -> None:
        super().__init__(message=message)


class ConfigurationError(PlugRAGError):
    """Raised when a required collaborator or setting is missing."""

    def __init__(self, message: str = "Invalid or missing configuration") -> None:
        super().__init__(message=message)
