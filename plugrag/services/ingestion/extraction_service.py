"""Extraction entry points for uploaded bytes and URLs.

:class:`DocumentExtractor` routes bytes to the registered extractor for their
:class:`FileType`, applies the low-confidence threshold, and (for URLs) drives
the injected :class:`IContentFetcher` before doing the same.
"""

from __future__ import annotations

from pathlib import PurePosixPath
from urllib.parse import urlparse

import structlog

from plugrag.interfaces.content_fetcher import IContentFetcher
from plugrag.models.document import ExtractedDocument, FileType
from plugrag.models.options import ProcessingOptions
from plugrag.services.ingestion.registry import ExtractorRegistry, default_registry
from plugrag.services.ingestion.validation import (
    MAX_FILENAME_LENGTH,
    validate_input,
    validate_url,
)
from plugrag.utils.confidence import (
    DEFAULT_MIN_RECOVERY_RATIO,
    confidence_to_level,
    is_low_confidence,
)
from plugrag.utils.errors import ConfigurationError, ExtractionError, PlugRAGError

logger = structlog.get_logger(logger_name=__name__)


class DocumentExtractor:
    """Turns raw bytes or URLs into :class:`ExtractedDocument` objects.

    Parameters
    ----------
    registry:
        Extractor strategies keyed by file type; defaults to a fresh
        :func:`default_registry`.
    fetcher:
        HTTP fetch capability, required only for :meth:`extract_from_url`.
    min_recovery_ratio:
        Documents whose confidence falls below this are flagged
        ``low_confidence``.  They are still returned.
    """

    def __init__(
        self,
        registry: ExtractorRegistry | None = None,
        fetcher: IContentFetcher | None = None,
        min_recovery_ratio: float = DEFAULT_MIN_RECOVERY_RATIO,
    ) -> None:
        if not 0.0 <= min_recovery_ratio <= 1.0:
            raise ValueError("min_recovery_ratio must be between 0 and 1")
        self._registry = registry or default_registry()
        self._fetcher = fetcher
        self._min_recovery_ratio = min_recovery_ratio

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def extract(
        self,
        data: bytes,
        file_type: FileType,
        options: ProcessingOptions | None = None,
        *,
        source_url: str | None = None,
        encoding: str | None = None,
    ) -> ExtractedDocument:
        """Extract *data* as *file_type*.

        Raises
        ------
        ExtractionError
            If the type has no extractor or the content cannot be parsed.
        TypeError
            If *data* is not bytes.
        """
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise TypeError(f"data must be bytes, not {type(data).__name__}")
        options = options or ProcessingOptions()
        extractor = self._registry.get(FileType(file_type))

        try:
            document = extractor.extract(bytes(data), options, source_url=source_url, encoding=encoding)
        except PlugRAGError:
            raise
        except Exception as exc:
            logger.error(
                "extraction_failed",
                file_type=extractor.file_type.value,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            raise ExtractionError(
                f"Failed to extract {extractor.file_type.value} content: {exc}",
                detected_type=extractor.file_type.value,
                cause=exc,
            ) from exc

        document = self._apply_confidence_threshold(document)
        if document.metadata.low_confidence:
            logger.warning(
                "low_confidence_extraction",
                file_type=document.file_type.value,
                confidence=round(document.metadata.confidence, 3),
                min_recovery_ratio=self._min_recovery_ratio,
            )
        return document

    async def extract_from_url(
        self,
        url: str,
        options: ProcessingOptions | None = None,
    ) -> ExtractedDocument:
        """Fetch *url* and extract the response body.

        The body is validated against ``options.max_content_length`` and the
        format is detected from the response ``Content-Type`` with the URL
        path as fallback, so fetched PDFs and plain text reach the matching
        extractor.

        Raises
        ------
        DocumentValidationError
            If the URL is malformed or the fetched content fails validation.
        ContentTooLargeError
            If the body exceeds ``max_content_length`` and
            ``truncate_oversized`` is off.
        FetchTimeoutError
            If the fetch does not finish within ``options.timeout``.
        FetchError
            For HTTP error statuses and network failures.
        ConfigurationError
            If no fetcher was injected.
        """
        options = options or ProcessingOptions()
        validate_url(url).raise_for_errors()
        if self._fetcher is None:
            raise ConfigurationError("URL extraction requires a content fetcher")

        fetched = await self._fetcher.fetch(
            url,
            timeout=options.timeout,
            max_bytes=options.max_content_length,
            allow_truncation=options.truncate_oversized,
        )

        validation = validate_input(
            fetched.content,
            _name_from_url(fetched.url),
            fetched.content_type,
            max_bytes=options.max_content_length,
            large_file_warning_bytes=options.max_content_length,
        )
        validation.raise_for_errors()

        document = self.extract(
            fetched.content,
            validation.detected_type,
            options,
            source_url=fetched.url,
            encoding=fetched.encoding,
        )
        metadata = document.metadata.model_copy(
            update={
                "source_url": fetched.url,
                "status_code": fetched.status_code,
                "content_type": fetched.content_type,
                "truncated": document.metadata.truncated or fetched.truncated,
            }
        )
        logger.info(
            "url_extracted",
            url=fetched.url,
            file_type=document.file_type.value,
            status_code=fetched.status_code,
            size_bytes=len(fetched.content),
            truncated=metadata.truncated,
        )
        return document.model_copy(update={"metadata": metadata})

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _apply_confidence_threshold(self, document: ExtractedDocument) -> ExtractedDocument:
        confidence = document.metadata.confidence
        low = is_low_confidence(confidence, self._min_recovery_ratio)
        level = confidence_to_level(confidence).value
        if low == document.metadata.low_confidence and level == document.metadata.confidence_level:
            return document
        metadata = document.metadata.model_copy(
            update={"low_confidence": low, "confidence_level": level}
        )
        return document.model_copy(update={"metadata": metadata})


def _name_from_url(url: str) -> str:
    """Return the last path segment of *url* for validation and type detection."""
    name = PurePosixPath(urlparse(url).path).name or "index"
    # Keep the tail so the extension survives.
    return name[-MAX_FILENAME_LENGTH:]
