"""Per-format extractors, one :class:`IDocumentExtractor` per :class:`FileType`."""

from plugrag.services.ingestion.extractors.csv_extractor import CSVExtractor
from plugrag.services.ingestion.extractors.document_builder import DocumentBuilder
from plugrag.services.ingestion.extractors.docx_extractor import DOCXExtractor
from plugrag.services.ingestion.extractors.html_extractor import HTMLExtractor
from plugrag.services.ingestion.extractors.pdf_extractor import PDFExtractor
from plugrag.services.ingestion.extractors.text_extractor import MarkdownExtractor, TextExtractor

__all__ = [
    "CSVExtractor",
    "DOCXExtractor",
    "DocumentBuilder",
    "HTMLExtractor",
    "MarkdownExtractor",
    "PDFExtractor",
    "TextExtractor",
]
