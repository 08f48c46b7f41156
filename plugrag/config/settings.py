"""Ingestion settings loaded from environment variables via pydantic-settings.

Two sources, in priority order:

  1. Environment variables -- e.g. ``MAX_UPLOAD_BYTES=10485760``
  2. ``.env`` file in the working directory

Field names map to upper-cased environment variables.  Defaults apply when
neither source sets a value.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict

from plugrag.models.options import (
    DEFAULT_MAX_CHUNK_SIZE,
    DEFAULT_MAX_CONTENT_LENGTH,
    DEFAULT_OVERLAP,
    DEFAULT_URL_TIMEOUT,
    ProcessingOptions,
)
from plugrag.utils.confidence import DEFAULT_MIN_RECOVERY_RATIO


class Settings(BaseSettings):
    """PlugRAG ingestion settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Validation gate ===
    max_upload_bytes: int = 50 * 1024 * 1024
    large_file_warning_bytes: int = 10 * 1024 * 1024

    # === Chunking defaults ===
    default_max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE
    default_overlap: int = DEFAULT_OVERLAP
    default_respect_structure: bool = True

    # === Tokenizer ===
    # Must match the embedding model so chunk token counts agree with usage
    # reported by the embedding/billing layer.
    embedding_model: str = "text-embedding-3-small"

    # === URL ingestion ===
    url_timeout_seconds: float = DEFAULT_URL_TIMEOUT
    url_max_content_length: int = DEFAULT_MAX_CONTENT_LENGTH
    fetch_user_agent: str = "Mozilla/5.0 (compatible; PlugRAG-Bot/1.0)"

    # === Extraction ===
    min_recovery_ratio: float = DEFAULT_MIN_RECOVERY_RATIO
    csv_max_rows: int = 10_000

    # === App Config ===
    app_env: str = "development"
    log_level: str = "INFO"

    def default_processing_options(self, **overrides: object) -> ProcessingOptions:
        """Build :class:`ProcessingOptions` from these settings plus *overrides*."""
        values: dict[str, object] = {
            "max_chunk_size": self.default_max_chunk_size,
            "overlap": self.default_overlap,
            "respect_structure": self.default_respect_structure,
            "timeout": self.url_timeout_seconds,
            "max_content_length": self.url_max_content_length,
            "csv_max_rows": self.csv_max_rows,
        }
        values.update(overrides)
        return ProcessingOptions(**values)
