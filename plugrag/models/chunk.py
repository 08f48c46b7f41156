"""Chunk model: the unit produced by the chunker and later embedded.

Chunks are produced in one batch per document and are immutable.  Re-chunking
with different options regenerates the whole list; nothing is patched in
place.  A chunk holds its own copy of its text and never references the
source buffer or the full extracted text.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ChunkType(str, Enum):
    """Which splitting strategy produced the boundary that closed a chunk."""

    PARAGRAPH_BOUNDARY = "paragraph_boundary"
    SENTENCE_BOUNDARY = "sentence_boundary"
    DOCUMENT_STRUCTURE = "document_structure"
    MANUAL = "manual"


class Chunk(BaseModel):
    """A bounded, retrievable slice of a document's text."""

    model_config = ConfigDict(frozen=True)

    content: str = Field(min_length=1)
    index: int = Field(ge=0, description="Zero-based position among the document's chunks.")
    token_count: int = Field(ge=0, description="Tokens in content, per the embedding tokenizer.")
    type: ChunkType
    has_overlap: bool = False
    # Provenance: [start_offset, end_offset) locates content in the document text.
    start_offset: int = Field(ge=0)
    end_offset: int = Field(ge=0)
    # Leading characters of content duplicated from the previous chunk.
    overlap_chars: int = Field(default=0, ge=0)
    heading: str | None = None
    level: int | None = Field(default=None, ge=1)
    page_number: int | None = Field(default=None, ge=1)
    column_headers: list[str] = Field(default_factory=list)

    @property
    def new_content(self) -> str:
        """Content without the leading overlap shared with the previous chunk."""
        return self.content[self.overlap_chars:]
