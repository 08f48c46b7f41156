"""Extractors for plain text and Markdown.

Both formats split on blank lines.  Blocks whose lines are all bullets or
numbered items become list markers, and blocks of pipe-delimited lines become
table markers.  Markdown additionally recognizes ATX (``#``) and setext
(``===`` / ``---``) headings and fenced code blocks; fence contents are kept
verbatim and never scanned for headings.
"""

from __future__ import annotations

import re

import structlog

from plugrag.interfaces.extractor import IDocumentExtractor
from plugrag.models.document import ExtractedDocument, FileType, MarkerKind
from plugrag.models.options import ProcessingOptions
from plugrag.services.ingestion.extractors.document_builder import DocumentBuilder
from plugrag.utils.errors import ExtractionError
from plugrag.utils.text_normalizer import (
    collapse_whitespace,
    control_char_ratio,
    decode_bytes,
    normalize_text,
    split_paragraphs,
    strip_control_chars,
)

logger = structlog.get_logger(logger_name=__name__)

_LIST_ITEM = re.compile(r"^\s*(?:[-*+•]|\d{1,3}[.)])\s+\S")
_TABLE_RULE = re.compile(r"^\s*\|?\s*:?-{3,}:?\s*(?:\|\s*:?-{3,}:?\s*)*\|?\s*$")
_ATX_HEADING = re.compile(r"^ {0,3}(#{1,6})\s+(.+?)(?:\s+#+)?\s*$")
_SETEXT_UNDERLINE = re.compile(r"^ {0,3}(=+|-+)\s*$")
_FENCE = re.compile(r"^ {0,3}(`{3,}|~{3,})\s*([\w+-]*)")

# Above this share of control characters the bytes are not text.
_MAX_BINARY_RATIO = 0.1


class TextExtractor(IDocumentExtractor):
    """Extracts blank-line separated blocks from plain text."""

    file_type = FileType.TXT

    def extract(
        self,
        data: bytes,
        options: ProcessingOptions,
        *,
        source_url: str | None = None,
        encoding: str | None = None,
    ) -> ExtractedDocument:
        text, used_encoding = self._decode(data, encoding)
        confidence = self._confidence(data, text)

        builder = DocumentBuilder(self.file_type)
        self._add_blocks(builder, strip_control_chars(text))

        document = builder.build(
            confidence=confidence,
            title=self._title(builder),
            source_url=source_url,
            encoding=used_encoding,
        )
        logger.info(
            "text_extracted",
            file_type=self.file_type.value,
            blocks=builder.block_count,
            characters=document.metadata.character_count,
            encoding=used_encoding,
        )
        return document

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def _add_blocks(self, builder: DocumentBuilder, text: str) -> None:
        for block in split_paragraphs(normalize_text(text)):
            add_text_block(builder, block)

    def _title(self, builder: DocumentBuilder) -> str | None:
        return None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _decode(self, data: bytes, encoding: str | None) -> tuple[str, str]:
        text, used_encoding = decode_bytes(data, encoding)
        if control_char_ratio(text) > _MAX_BINARY_RATIO:
            logger.warning("text_binary_content", file_type=self.file_type.value, size_bytes=len(data))
            raise ExtractionError(
                "Content appears to be binary, not text",
                detected_type=self.file_type.value,
            )
        return text, used_encoding

    @staticmethod
    def _confidence(data: bytes, text: str) -> float:
        if data and not text.strip():
            return 0.0
        return 1.0 - control_char_ratio(text)


class MarkdownExtractor(TextExtractor):
    """Plain-text rules plus Markdown headings and fenced code blocks."""

    file_type = FileType.MARKDOWN

    def _add_blocks(self, builder: DocumentBuilder, text: str) -> None:
        lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
        pending: list[str] = []

        def flush() -> None:
            if pending:
                add_text_block(builder, "\n".join(pending))
                pending.clear()

        i = 0
        while i < len(lines):
            line = lines[i]

            fence = _FENCE.match(line)
            if fence:
                flush()
                marker, language = fence.group(1), fence.group(2)
                body: list[str] = []
                i += 1
                while i < len(lines) and not lines[i].strip().startswith(marker):
                    body.append(lines[i].rstrip())
                    i += 1
                builder.add_block("\n".join(body), MarkerKind.CODE, label=language or None)
                i += 1
                continue

            heading = _ATX_HEADING.match(line)
            if heading:
                flush()
                title = collapse_whitespace(heading.group(2))
                builder.add_block(title, MarkerKind.HEADING, level=len(heading.group(1)), label=title)
            elif not line.strip():
                flush()
            elif pending and _SETEXT_UNDERLINE.match(line) and not _is_list(pending):
                title = collapse_whitespace(" ".join(pending))
                pending.clear()
                level = 1 if line.strip().startswith("=") else 2
                builder.add_block(title, MarkerKind.HEADING, level=level, label=title)
            elif not pending and _SETEXT_UNDERLINE.match(line) and line.strip().startswith("-"):
                # Thematic break.
                pass
            else:
                pending.append(line)
            i += 1
        flush()

    def _title(self, builder: DocumentBuilder) -> str | None:
        return builder.first_heading_label()


def add_text_block(builder: DocumentBuilder, block: str) -> None:
    """Classify a blank-line delimited *block* and append it to *builder*."""
    lines = [collapse_whitespace(line) for line in block.split("\n")]
    lines = [line for line in lines if line]
    if not lines:
        return
    if _is_list(lines):
        builder.add_block("\n".join(lines), MarkerKind.LIST)
    elif len(lines) >= 2 and all("|" in line for line in lines):
        rows = [line for line in lines if not _TABLE_RULE.match(line)]
        builder.add_block("\n".join(rows), MarkerKind.TABLE)
    else:
        builder.add_block(" ".join(lines), MarkerKind.PARAGRAPH)


def _is_list(lines: list[str]) -> bool:
    return all(_LIST_ITEM.match(line) for line in lines)
