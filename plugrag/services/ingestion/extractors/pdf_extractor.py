"""Extractor for PDF documents.

Reads PDF bytes with PyMuPDF (fitz) page by page.  Every page contributes a
page marker, so chunk page numbers survive into citations; pages without a
text layer (scans without OCR) contribute a zero-width marker and lower the
document's confidence score instead of failing the extraction.
"""

from __future__ import annotations

import re

import fitz
import structlog

from plugrag.interfaces.extractor import IDocumentExtractor
from plugrag.models.document import ExtractedDocument, FileType, MarkerKind
from plugrag.models.options import ProcessingOptions
from plugrag.services.ingestion.extractors.document_builder import DocumentBuilder
from plugrag.utils.confidence import recovery_ratio
from plugrag.utils.errors import ExtractionError
from plugrag.utils.text_normalizer import clean_pdf_text, collapse_whitespace

logger = structlog.get_logger(logger_name=__name__)

# Chapter-style headings found in books and reports.
_CHAPTER_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"^Chapter\s+\d+", re.IGNORECASE),
    re.compile(r"^PART\s+[IVXLCDM\d]+\b", re.IGNORECASE),
    re.compile(r"^\d+\.\s+\S"),
    re.compile(r"^[A-Z][A-Z\s]{4,}$"),
]
_MAX_HEADING_LENGTH = 80

# A page "has text" when it yields at least this many characters.
_MIN_PAGE_CHARS = 20

# PyMuPDF block tuple: (x0, y0, x1, y1, text, block_no, block_type)
_TEXT_BLOCK = 0


class PDFExtractor(IDocumentExtractor):
    """Extracts page-delimited text blocks from PDF bytes."""

    file_type = FileType.PDF

    def extract(
        self,
        data: bytes,
        options: ProcessingOptions,
        *,
        source_url: str | None = None,
        encoding: str | None = None,
    ) -> ExtractedDocument:
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as exc:
            logger.warning("pdf_open_failed", size_bytes=len(data), error=str(exc))
            raise ExtractionError(
                "Could not open PDF: file is damaged or not a PDF",
                detected_type=FileType.PDF.value,
                cause=exc,
            ) from exc

        try:
            return self._extract_document(doc, options, source_url)
        except ExtractionError:
            raise
        except Exception as exc:
            logger.warning("pdf_read_failed", error=str(exc))
            raise ExtractionError(
                "Failed to read PDF content",
                detected_type=FileType.PDF.value,
                cause=exc,
            ) from exc
        finally:
            doc.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _extract_document(
        self,
        doc: fitz.Document,
        options: ProcessingOptions,
        source_url: str | None,
    ) -> ExtractedDocument:
        if doc.needs_pass:
            raise ExtractionError("PDF is password protected", detected_type=FileType.PDF.value)

        total_pages = doc.page_count
        if total_pages == 0:
            raise ExtractionError("PDF has no pages", detected_type=FileType.PDF.value)

        page_limit = total_pages
        if options.pdf_max_pages is not None:
            page_limit = min(total_pages, options.pdf_max_pages)

        builder = DocumentBuilder(FileType.PDF)
        pages_with_text = 0
        for page_index in range(page_limit):
            page = doc.load_page(page_index)
            before = builder.length
            with builder.page(page_index + 1):
                for block_text in self._page_blocks(page):
                    if _is_chapter_heading(block_text):
                        builder.add_block(block_text, MarkerKind.HEADING, level=1, label=block_text)
                    else:
                        builder.add_block(block_text, MarkerKind.PARAGRAPH)
            if builder.length - before >= _MIN_PAGE_CHARS:
                pages_with_text += 1

        info = doc.metadata or {}
        confidence = recovery_ratio(pages_with_text, page_limit)
        document = builder.build(
            confidence=confidence,
            title=(info.get("title") or "").strip() or None,
            author=(info.get("author") or "").strip() or None,
            source_url=source_url,
            page_count=total_pages,
            truncated=page_limit < total_pages,
        )

        logger.info(
            "pdf_extracted",
            pages=total_pages,
            pages_read=page_limit,
            pages_with_text=pages_with_text,
            characters=document.metadata.character_count,
            confidence=round(confidence, 3),
        )
        if pages_with_text == 0:
            logger.warning("pdf_no_text_extracted", pages=page_limit)
        return document

    @staticmethod
    def _page_blocks(page: fitz.Page) -> list[str]:
        """Return cleaned text blocks of *page* in reading order."""
        blocks: list[str] = []
        for block in page.get_text("blocks", sort=True):
            if block[6] != _TEXT_BLOCK:
                continue
            text = collapse_whitespace(clean_pdf_text(block[4]))
            if text:
                blocks.append(text)
        return blocks


def _is_chapter_heading(text: str) -> bool:
    if len(text) > _MAX_HEADING_LENGTH or "\n" in text:
        return False
    return any(p.match(text) for p in _CHAPTER_PATTERNS)
