"""Incremental builder for :class:`ExtractedDocument` objects.

Extractors append normalized text blocks one at a time; the builder joins
them with a blank line and records a :class:`StructureMarker` for each block
so that marker offsets always point into the final text.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from plugrag.models.document import (
    DocumentMetadata,
    ExtractedDocument,
    FileType,
    Link,
    MarkerKind,
    StructureMarker,
)
from plugrag.utils.confidence import (
    DEFAULT_MIN_RECOVERY_RATIO,
    confidence_to_level,
    is_low_confidence,
)
from plugrag.utils.text_normalizer import count_words

BLOCK_SEPARATOR = "\n\n"


class DocumentBuilder:
    """Accumulates text blocks and their markers for one extraction."""

    def __init__(self, file_type: FileType) -> None:
        self._file_type = file_type
        self._parts: list[str] = []
        self._length = 0
        self._markers: list[StructureMarker] = []
        self._current_page: int | None = None

    @property
    def length(self) -> int:
        """Number of characters accumulated so far."""
        return self._length

    @property
    def block_count(self) -> int:
        return sum(1 for m in self._markers if m.kind is not MarkerKind.PAGE)

    def add_block(
        self,
        text: str,
        kind: MarkerKind = MarkerKind.PARAGRAPH,
        *,
        level: int | None = None,
        label: str | None = None,
    ) -> StructureMarker | None:
        """Append a block and record its marker.

        Blank blocks are ignored and return ``None``.
        """
        text = text.strip()
        if not text:
            return None

        if self._parts:
            self._parts.append(BLOCK_SEPARATOR)
            self._length += len(BLOCK_SEPARATOR)

        start = self._length
        self._parts.append(text)
        self._length += len(text)

        marker = StructureMarker(
            kind=kind,
            start=start,
            end=self._length,
            level=level,
            label=label,
            page_number=self._current_page,
        )
        self._markers.append(marker)
        return marker

    def first_heading_label(self) -> str | None:
        for marker in self._markers:
            if marker.kind is MarkerKind.HEADING:
                return marker.label
        return None

    @contextmanager
    def page(self, number: int) -> Iterator[None]:
        """Group the blocks added inside the ``with`` body under page *number*.

        A page marker spanning those blocks is inserted ahead of them.  A page
        that adds no text still gets a zero-width marker at the current end
        of the text.
        """
        first_marker = len(self._markers)
        self._current_page = number
        try:
            yield
        finally:
            self._current_page = None

        blocks = self._markers[first_marker:]
        if blocks:
            start, end = blocks[0].start, self._length
        else:
            start = end = self._length
        self._markers.insert(
            first_marker,
            StructureMarker(kind=MarkerKind.PAGE, start=start, end=end, page_number=number),
        )

    @property
    def text(self) -> str:
        return "".join(self._parts)

    def build(
        self,
        *,
        confidence: float = 1.0,
        min_recovery_ratio: float = DEFAULT_MIN_RECOVERY_RATIO,
        links: list[Link] | None = None,
        **metadata: Any,
    ) -> ExtractedDocument:
        """Freeze the accumulated blocks into an :class:`ExtractedDocument`.

        Extra keyword arguments become :class:`DocumentMetadata` fields.
        Word and character counts are computed from the final text.
        """
        text = self.text
        document_metadata = DocumentMetadata(
            file_type=self._file_type,
            word_count=count_words(text),
            character_count=len(text),
            confidence=confidence,
            confidence_level=confidence_to_level(confidence).value,
            low_confidence=is_low_confidence(confidence, min_recovery_ratio),
            **metadata,
        )
        return ExtractedDocument(
            text=text,
            structure=list(self._markers),
            metadata=document_metadata,
            links=list(links or []),
        )
