"""Registry mapping each :class:`FileType` to its extractor strategy."""

from __future__ import annotations

import structlog

from plugrag.interfaces.extractor import IDocumentExtractor
from plugrag.models.document import FileType
from plugrag.services.ingestion.extractors import (
    CSVExtractor,
    DOCXExtractor,
    HTMLExtractor,
    MarkdownExtractor,
    PDFExtractor,
    TextExtractor,
)
from plugrag.utils.errors import ExtractionError

logger = structlog.get_logger(logger_name=__name__)


class ExtractorRegistry:
    """Holds one extractor per file type.

    Registries are plain instances; build one with :func:`default_registry`
    or register custom extractors on an empty one.
    """

    def __init__(self, extractors: list[IDocumentExtractor] | None = None) -> None:
        self._extractors: dict[FileType, IDocumentExtractor] = {}
        for extractor in extractors or []:
            self.register(extractor)

    def register(self, extractor: IDocumentExtractor, *, replace: bool = False) -> None:
        """Register *extractor* under its ``file_type``.

        Raises
        ------
        ValueError
            If the type is ``UNKNOWN`` or already registered and *replace*
            is not set.
        """
        file_type = extractor.file_type
        if file_type is FileType.UNKNOWN:
            raise ValueError("Cannot register an extractor for FileType.UNKNOWN")
        if file_type in self._extractors and not replace:
            raise ValueError(f"An extractor for {file_type.value} is already registered")
        self._extractors[file_type] = extractor
        logger.debug("extractor_registered", file_type=file_type.value, extractor=type(extractor).__name__)

    def get(self, file_type: FileType) -> IDocumentExtractor:
        """Return the extractor for *file_type*.

        Raises
        ------
        ExtractionError
            If no extractor handles *file_type*.
        """
        extractor = self._extractors.get(file_type)
        if extractor is None:
            raise ExtractionError(
                f"No extractor available for file type '{file_type.value}'",
                detected_type=file_type.value,
            )
        return extractor

    def supports(self, file_type: FileType) -> bool:
        return file_type in self._extractors

    @property
    def file_types(self) -> list[FileType]:
        return sorted(self._extractors, key=lambda t: t.value)


def default_registry() -> ExtractorRegistry:
    """Return a new registry with the built-in extractors for every supported format."""
    return ExtractorRegistry(
        [
            PDFExtractor(),
            DOCXExtractor(),
            TextExtractor(),
            MarkdownExtractor(),
            CSVExtractor(),
            HTMLExtractor(),
        ]
    )
