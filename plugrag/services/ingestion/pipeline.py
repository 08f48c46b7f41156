"""End-to-end ingestion: validate, detect, extract, chunk.

:class:`IngestionPipeline` is the entry point callers use for uploaded files
and URLs.  It returns chunks ready for embedding; persistence, embedding and
vector storage stay with the caller.
"""

from __future__ import annotations

import time

import structlog

from plugrag.config.settings import Settings
from plugrag.interfaces.content_fetcher import IContentFetcher
from plugrag.interfaces.tokenizer import ITokenCounter
from plugrag.models.document import ExtractedDocument
from plugrag.models.options import ProcessingOptions
from plugrag.models.results import ProcessingResult
from plugrag.services.ingestion.chunker import TextChunker
from plugrag.services.ingestion.extraction_service import DocumentExtractor
from plugrag.services.ingestion.validation import validate_input

logger = structlog.get_logger(logger_name=__name__)


class IngestionPipeline:
    """Runs the validation gate, extraction and chunking for one source at a time.

    The pipeline holds only its injected collaborators, so one instance can
    serve concurrent calls on different documents.

    Parameters
    ----------
    token_counter:
        Tokenizer matching the embedding model.
    extractor:
        Extraction service; built from *fetcher* and the settings' recovery
        threshold when omitted.
    chunker:
        Chunker; built from *token_counter* when omitted.
    fetcher:
        HTTP fetch capability for :meth:`process_url`.  Ignored when an
        *extractor* is supplied.
    settings:
        Upload limits and default processing options.
    """

    def __init__(
        self,
        token_counter: ITokenCounter,
        extractor: DocumentExtractor | None = None,
        chunker: TextChunker | None = None,
        fetcher: IContentFetcher | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or Settings()
        self._extractor = extractor or DocumentExtractor(
            fetcher=fetcher,
            min_recovery_ratio=self._settings.min_recovery_ratio,
        )
        self._chunker = chunker or TextChunker(token_counter)

    def process_file(
        self,
        data: bytes,
        filename: str,
        mime_type: str | None = None,
        options: ProcessingOptions | None = None,
    ) -> ProcessingResult:
        """Validate, extract and chunk an uploaded file.

        Raises
        ------
        DocumentValidationError
            If the file fails the validation gate.
        ExtractionError
            If the content cannot be parsed.
        ChunkingError
            If the options cannot be chunked with.
        """
        options = options or self._settings.default_processing_options()
        # Fail on bad chunking options before any parsing work.
        options.validate_for_chunking()
        started = time.monotonic()

        validation = validate_input(
            data,
            filename,
            mime_type,
            max_bytes=self._settings.max_upload_bytes,
            large_file_warning_bytes=self._settings.large_file_warning_bytes,
        )
        validation.raise_for_errors()

        document = self._extractor.extract(data, validation.detected_type, options)
        result = self._chunk(document, options, list(validation.warnings))
        logger.info(
            "file_processed",
            file_type=document.file_type.value,
            size_bytes=validation.size_bytes,
            chunks=len(result.chunks),
            total_tokens=result.total_tokens,
            elapsed_ms=int((time.monotonic() - started) * 1000),
        )
        return result

    async def process_url(
        self,
        url: str,
        options: ProcessingOptions | None = None,
    ) -> ProcessingResult:
        """Fetch, extract and chunk the content at *url*.

        Raises the errors of :meth:`DocumentExtractor.extract_from_url`
        plus :class:`ChunkingError`.
        """
        options = options or self._settings.default_processing_options()
        options.validate_for_chunking()
        started = time.monotonic()

        document = await self._extractor.extract_from_url(url, options)
        warnings: list[str] = []
        if document.metadata.truncated:
            warnings.append("Content was truncated at the maximum content length")
        result = self._chunk(document, options, warnings)
        logger.info(
            "url_processed",
            url=document.metadata.source_url,
            file_type=document.file_type.value,
            chunks=len(result.chunks),
            total_tokens=result.total_tokens,
            elapsed_ms=int((time.monotonic() - started) * 1000),
        )
        return result

    def rechunk(
        self,
        document: ExtractedDocument,
        options: ProcessingOptions | None = None,
    ) -> ProcessingResult:
        """Regenerate the full chunk set of an already extracted *document*."""
        options = options or self._settings.default_processing_options()
        return self._chunk(document, options, [])

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _chunk(
        self,
        document: ExtractedDocument,
        options: ProcessingOptions,
        warnings: list[str],
    ) -> ProcessingResult:
        chunks = self._chunker.chunk(document, options)
        if document.metadata.low_confidence:
            warnings.append(
                f"Low extraction confidence ({document.metadata.confidence:.2f}); "
                "content may be incomplete"
            )
        if document.is_empty:
            warnings.append("No text could be extracted")
        return ProcessingResult(document=document, chunks=chunks, warnings=warnings)
