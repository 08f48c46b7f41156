"""Document ingestion: validation, format detection, extraction and chunking."""

from plugrag.services.ingestion.chunker import TextChunker
from plugrag.services.ingestion.extraction_service import DocumentExtractor
from plugrag.services.ingestion.format_detector import detect_file_type
from plugrag.services.ingestion.pipeline import IngestionPipeline
from plugrag.services.ingestion.registry import ExtractorRegistry, default_registry
from plugrag.services.ingestion.validation import validate_input, validate_url

__all__ = [
    "DocumentExtractor",
    "ExtractorRegistry",
    "IngestionPipeline",
    "TextChunker",
    "default_registry",
    "detect_file_type",
    "validate_input",
    "validate_url",
]
