"""Result envelopes returned by the validation gate and the pipeline."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from plugrag.models.chunk import Chunk
from plugrag.models.document import ExtractedDocument, FileType
from plugrag.utils.errors import DocumentValidationError


class ValidationResult(BaseModel):
    """Outcome of the validation gate; never raised, always returned."""

    model_config = ConfigDict(frozen=True)

    is_valid: bool
    detected_type: FileType
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    size_bytes: int = Field(default=0, ge=0)

    def raise_for_errors(self) -> None:
        """Raise :class:`DocumentValidationError` if validation failed."""
        if not self.is_valid:
            raise DocumentValidationError(
                message="; ".join(self.errors) or "Input failed validation",
                errors=self.errors,
                file_type=self.detected_type.value,
            )


class ProcessingResult(BaseModel):
    """A document together with the chunks derived from it."""

    model_config = ConfigDict(frozen=True)

    document: ExtractedDocument
    chunks: list[Chunk] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def total_tokens(self) -> int:
        return sum(c.token_count for c in self.chunks)

    @property
    def average_chunk_tokens(self) -> int:
        if not self.chunks:
            return 0
        return self.total_tokens // len(self.chunks)
