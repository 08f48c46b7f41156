"""Processing options threaded through extraction and chunking."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from plugrag.utils.errors import ChunkingError

DEFAULT_MAX_CHUNK_SIZE = 700
DEFAULT_OVERLAP = 100
DEFAULT_URL_TIMEOUT = 30.0
DEFAULT_MAX_CONTENT_LENGTH = 1_000_000


class ProcessingOptions(BaseModel):
    """Options for one extraction + chunking run.

    Field-level bounds are enforced by pydantic.  The cross-field rule
    ``overlap < max_chunk_size`` is checked by :meth:`validate_for_chunking`
    so the chunker can reject it with a :class:`ChunkingError` at entry.
    """

    model_config = ConfigDict(frozen=True)

    # --- Chunking ---
    max_chunk_size: int = Field(default=DEFAULT_MAX_CHUNK_SIZE, ge=1)
    overlap: int = Field(default=DEFAULT_OVERLAP, ge=0)
    respect_structure: bool = True

    # --- HTML / URL ---
    extract_links: bool = False
    timeout: float = Field(default=DEFAULT_URL_TIMEOUT, gt=0)
    max_content_length: int = Field(default=DEFAULT_MAX_CONTENT_LENGTH, ge=1)
    # When True, oversized fetched content is cut and flagged ``truncated``
    # instead of raising ContentTooLargeError.
    truncate_oversized: bool = False

    # --- Format specific ---
    csv_has_header: bool = True
    csv_max_rows: int = Field(default=10_000, ge=1)
    pdf_max_pages: int | None = Field(default=None, ge=1)

    @property
    def effective_overlap(self) -> int:
        """Overlap actually applied: never more than half the chunk budget."""
        return min(self.overlap, self.max_chunk_size // 2)

    def validate_for_chunking(self) -> None:
        """Raise :class:`ChunkingError` for option combinations that cannot chunk."""
        if self.overlap >= self.max_chunk_size:
            raise ChunkingError(
                f"overlap ({self.overlap}) must be smaller than "
                f"max_chunk_size ({self.max_chunk_size})"
            )
