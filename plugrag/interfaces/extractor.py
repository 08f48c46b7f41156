"""Abstract base class for per-format document extractors.

Each supported :class:`~plugrag.models.document.FileType` has one extractor
registered in :class:`~plugrag.services.ingestion.registry.ExtractorRegistry`.
Adding a format means registering a new implementation, not branching inside
a monolithic function.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from plugrag.models.document import ExtractedDocument, FileType
from plugrag.models.options import ProcessingOptions


class IDocumentExtractor(ABC):
    """Contract for converting raw bytes of one format into an ExtractedDocument."""

    #: Format handled by this extractor; used as the registry key.
    file_type: FileType

    @abstractmethod
    def extract(
        self,
        data: bytes,
        options: ProcessingOptions,
        *,
        source_url: str | None = None,
        encoding: str | None = None,
    ) -> ExtractedDocument:
        """Extract text, structure and metadata from *data*.

        Parameters
        ----------
        data:
            Complete file content.
        options:
            Processing options (format-specific fields are read as needed).
        source_url:
            URL the bytes were fetched from, used for link resolution and
            ``metadata.source_url``.
        encoding:
            Declared charset (e.g. from HTTP headers) for text formats.

        Raises
        ------
        plugrag.utils.errors.ExtractionError
            If the content cannot be parsed as this format.
        """
