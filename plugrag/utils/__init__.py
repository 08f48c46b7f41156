"""Utility modules for the PlugRAG ingestion core.

- **errors** -- exception hierarchy rooted at PlugRAGError.
- **logging** -- structlog setup (console in development, JSON in production).
- **text_normalizer** -- whitespace normalization, paragraph splitting and
  byte decoding shared by the extractors.
- **confidence** -- recovery-ratio scoring behind the ``low_confidence`` flag.
- **concurrency** -- bounded ``asyncio.gather`` for multi-document runs.
"""

from plugrag.utils.concurrency import throttled_gather
from plugrag.utils.confidence import ConfidenceLevel, confidence_to_level, recovery_ratio
from plugrag.utils.errors import (
    ChunkingError,
    ConfigurationError,
    ContentTooLargeError,
    DocumentValidationError,
    ExtractionError,
    FetchError,
    FetchTimeoutError,
    PlugRAGError,
)
from plugrag.utils.logging import configure_logging

__all__ = [
    "ChunkingError",
    "ConfidenceLevel",
    "ConfigurationError",
    "ContentTooLargeError",
    "DocumentValidationError",
    "ExtractionError",
    "FetchError",
    "FetchTimeoutError",
    "PlugRAGError",
    "configure_logging",
    "confidence_to_level",
    "recovery_ratio",
    "throttled_gather",
]
