"""Extraction output models.

An :class:`ExtractedDocument` is what every format extractor produces: the
normalized plain text, an ordered outline of :class:`StructureMarker` objects
pointing into that text by character offset, descriptive
:class:`DocumentMetadata`, and (HTML/URL sources only) outbound links.

Documents are frozen.  They are created once per extraction call, handed to
the chunker and then dropped; only the chunks derived from them are persisted
by callers.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class FileType(str, Enum):
    """Supported document formats, plus ``UNKNOWN`` for anything else."""

    PDF = "pdf"
    DOCX = "docx"
    TXT = "txt"
    CSV = "csv"
    HTML = "html"
    MARKDOWN = "md"
    UNKNOWN = "unknown"


class MarkerKind(str, Enum):
    """Kinds of structural markers an extractor can record."""

    HEADING = "heading"
    PARAGRAPH = "paragraph"
    LIST = "list"
    TABLE = "table"
    CODE = "code"
    PAGE = "page"
    RECORD = "record"


class StructureMarker(BaseModel):
    """A structural element located in the document text.

    ``start``/``end`` are character offsets into ``ExtractedDocument.text``
    (end exclusive).  Page markers of pages without text are zero-width.
    """

    model_config = ConfigDict(frozen=True)

    kind: MarkerKind
    start: int = Field(ge=0)
    end: int = Field(ge=0)
    # Heading nesting level (1 = top level); None for non-heading markers.
    level: int | None = Field(default=None, ge=1)
    # Heading text, list/table caption, or record label.
    label: str | None = None
    page_number: int | None = Field(default=None, ge=1)

    @model_validator(mode="after")
    def _check_span(self) -> StructureMarker:
        if self.end < self.start:
            raise ValueError("marker end must not precede its start")
        return self


class Link(BaseModel):
    """An outbound hyperlink collected from an HTML source."""

    model_config = ConfigDict(frozen=True)

    href: str
    text: str
    title: str = ""
    is_external: bool = False


class DocumentMetadata(BaseModel):
    """Descriptive fields gathered during extraction."""

    model_config = ConfigDict(frozen=True)

    file_type: FileType
    title: str | None = None
    description: str | None = None
    author: str | None = None
    source_url: str | None = None
    language: str | None = Field(default=None, description="Best-effort language tag, e.g. 'en'.")
    published_at: str | None = None
    word_count: int = Field(default=0, ge=0)
    character_count: int = Field(default=0, ge=0)
    page_count: int | None = Field(default=None, ge=0)
    encoding: str | None = None
    # CSV only: header row, attached to every chunk for context.
    columns: list[str] = Field(default_factory=list)
    row_count: int | None = Field(default=None, ge=0)
    # Recovery ratio in [0, 1] and the flag derived from it.
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    confidence_level: str = "very_high"
    low_confidence: bool = False
    # Set when content was cut at a row/byte ceiling the caller allowed.
    truncated: bool = False
    # URL sources: HTTP status and response content type.
    status_code: int | None = None
    content_type: str | None = None


class ExtractedDocument(BaseModel):
    """Normalized text plus structure and metadata for one source."""

    model_config = ConfigDict(frozen=True)

    text: str
    structure: list[StructureMarker] = Field(default_factory=list)
    metadata: DocumentMetadata
    links: list[Link] = Field(default_factory=list)

    @property
    def file_type(self) -> FileType:
        return self.metadata.file_type

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()

    def headings(self) -> list[StructureMarker]:
        return [m for m in self.structure if m.kind is MarkerKind.HEADING]
