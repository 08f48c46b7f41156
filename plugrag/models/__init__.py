"""Pydantic v2 models for the ingestion core.

All models are frozen: extraction output and chunks are never mutated after
creation, which keeps concurrent processing of different documents free of
shared mutable state.
"""

from plugrag.models.chunk import Chunk, ChunkType
from plugrag.models.document import (
    DocumentMetadata,
    ExtractedDocument,
    FileType,
    Link,
    MarkerKind,
    StructureMarker,
)
from plugrag.models.options import ProcessingOptions
from plugrag.models.results import ProcessingResult, ValidationResult

__all__ = [
    "Chunk",
    "ChunkType",
    "DocumentMetadata",
    "ExtractedDocument",
    "FileType",
    "Link",
    "MarkerKind",
    "ProcessingOptions",
    "ProcessingResult",
    "StructureMarker",
    "ValidationResult",
]
