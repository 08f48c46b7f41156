"""Unit tests for the per-format extractors and the DocumentBuilder."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from plugrag.models.document import FileType, MarkerKind
from plugrag.models.options import ProcessingOptions
from plugrag.services.ingestion.extractors import (
    CSVExtractor,
    DocumentBuilder,
    DOCXExtractor,
    HTMLExtractor,
    MarkdownExtractor,
    PDFExtractor,
    TextExtractor,
)
from plugrag.utils.errors import ExtractionError

_OPTIONS = ProcessingOptions()


def _kinds(document) -> list[MarkerKind]:
    return [m.kind for m in document.structure]


def _span(document, marker) -> str:
    return document.text[marker.start : marker.end]


# ======================================================================
# DocumentBuilder
# ======================================================================


class TestDocumentBuilder:
    def test_blocks_joined_with_blank_line(self) -> None:
        builder = DocumentBuilder(FileType.TXT)
        builder.add_block("One.")
        builder.add_block("  ")
        builder.add_block("Two.", MarkerKind.LIST)
        document = builder.build()

        assert document.text == "One.\n\nTwo."
        assert [(m.kind, m.start, m.end) for m in document.structure] == [
            (MarkerKind.PARAGRAPH, 0, 4),
            (MarkerKind.LIST, 6, 10),
        ]

    def test_page_markers_wrap_blocks(self) -> None:
        builder = DocumentBuilder(FileType.PDF)
        with builder.page(1):
            builder.add_block("First page.")
        with builder.page(2):
            pass
        with builder.page(3):
            builder.add_block("Third page.")
        document = builder.build()

        pages = [m for m in document.structure if m.kind is MarkerKind.PAGE]
        assert [p.page_number for p in pages] == [1, 2, 3]
        assert _span(document, pages[0]) == "First page."
        assert pages[1].start == pages[1].end
        assert _span(document, pages[2]) == "Third page."
        paragraphs = [m for m in document.structure if m.kind is MarkerKind.PARAGRAPH]
        assert [p.page_number for p in paragraphs] == [1, 3]

    def test_build_counts_and_confidence(self) -> None:
        builder = DocumentBuilder(FileType.TXT)
        builder.add_block("three little words")
        document = builder.build(confidence=0.3, title="T")

        assert document.metadata.word_count == 3
        assert document.metadata.character_count == len("three little words")
        assert document.metadata.low_confidence is True
        assert document.metadata.confidence_level == "low"
        assert document.metadata.title == "T"


# ======================================================================
# Plain text
# ======================================================================


class TestTextExtractor:
    def test_paragraphs(self) -> None:
        data = b"First paragraph line one.\r\nline two.\r\n\r\n\r\nSecond   paragraph."
        document = TextExtractor().extract(data, _OPTIONS)

        assert document.text == "First paragraph line one. line two.\n\nSecond paragraph."
        assert _kinds(document) == [MarkerKind.PARAGRAPH, MarkerKind.PARAGRAPH]
        assert document.metadata.file_type is FileType.TXT
        assert document.metadata.word_count == 8
        assert document.metadata.encoding == "utf-8"
        assert document.metadata.low_confidence is False

    def test_lists_and_tables(self) -> None:
        data = b"Intro.\n\n- one\n- two\n\n1. first\n2) second\n\n| a | b |\n|---|---|\n| 1 | 2 |"
        document = TextExtractor().extract(data, _OPTIONS)

        assert _kinds(document) == [
            MarkerKind.PARAGRAPH,
            MarkerKind.LIST,
            MarkerKind.LIST,
            MarkerKind.TABLE,
        ]
        assert _span(document, document.structure[1]) == "- one\n- two"
        assert _span(document, document.structure[3]) == "| a | b |\n| 1 | 2 |"

    def test_cp1252_fallback(self) -> None:
        document = TextExtractor().extract("café menu".encode("cp1252"), _OPTIONS)
        assert document.text == "café menu"
        assert document.metadata.encoding == "cp1252"

    def test_declared_encoding_wins(self) -> None:
        document = TextExtractor().extract("naïve".encode("latin-1"), _OPTIONS, encoding="latin-1")
        assert document.text == "naïve"
        assert document.metadata.encoding == "latin-1"

    def test_utf8_bom(self) -> None:
        document = TextExtractor().extract(b"\xef\xbb\xbfHello", _OPTIONS)
        assert document.text == "Hello"
        assert document.metadata.encoding == "utf-8-sig"

    def test_binary_content_raises(self) -> None:
        with pytest.raises(ExtractionError) as exc_info:
            TextExtractor().extract(b"\x00\x01\x02\x03" * 50, _OPTIONS)
        assert exc_info.value.detected_type == "txt"

    def test_whitespace_only_is_low_confidence(self) -> None:
        document = TextExtractor().extract(b"   \n\n  \t", _OPTIONS)
        assert document.text == ""
        assert document.is_empty
        assert document.metadata.confidence == 0.0
        assert document.metadata.low_confidence is True

    def test_source_url_recorded(self) -> None:
        document = TextExtractor().extract(b"hi", _OPTIONS, source_url="https://example.com/a.txt")
        assert document.metadata.source_url == "https://example.com/a.txt"


# ======================================================================
# Markdown
# ======================================================================


class TestMarkdownExtractor:
    @pytest.fixture
    def document(self, sample_markdown):
        return MarkdownExtractor().extract(sample_markdown.encode(), _OPTIONS)

    def test_headings_with_levels(self, document) -> None:
        assert [(h.label, h.level) for h in document.headings()] == [
            ("Getting Started", 1),
            ("Supported formats", 2),
            ("Limits", 2),
        ]

    def test_heading_text_has_no_hashes(self, document) -> None:
        first = document.headings()[0]
        assert _span(document, first) == "Getting Started"

    def test_fenced_code_is_not_scanned_for_headings(self, document) -> None:
        code = [m for m in document.structure if m.kind is MarkerKind.CODE]
        assert len(code) == 1
        assert code[0].label == "python"
        assert "# not a heading" in _span(document, code[0])
        assert "not a heading" not in [h.label for h in document.headings()]

    def test_list_and_table_blocks(self, document) -> None:
        kinds = _kinds(document)
        assert MarkerKind.LIST in kinds
        assert MarkerKind.TABLE in kinds
        table = next(m for m in document.structure if m.kind is MarkerKind.TABLE)
        assert "------" not in _span(document, table)

    def test_title_from_first_heading(self, document) -> None:
        assert document.metadata.title == "Getting Started"
        assert document.metadata.file_type is FileType.MARKDOWN

    def test_closing_hashes_stripped(self) -> None:
        document = MarkdownExtractor().extract(b"### Setup ###\n\nBody.", _OPTIONS)
        assert document.headings()[0].label == "Setup"
        assert document.headings()[0].level == 3

    def test_hashtag_is_not_heading(self) -> None:
        document = MarkdownExtractor().extract(b"#hashtag in a sentence", _OPTIONS)
        assert document.headings() == []


# ======================================================================
# CSV
# ======================================================================


class TestCSVExtractor:
    def test_records_and_columns(self, sample_csv) -> None:
        document = CSVExtractor().extract(sample_csv, ProcessingOptions(csv_has_header=True))

        assert document.metadata.columns == ["name", "role", "city"]
        assert document.metadata.row_count == 3
        assert _kinds(document) == [MarkerKind.RECORD] * 3
        assert document.structure[0].label == "Record 1"
        assert document.text.split("\n\n")[0] == "Record 1: name: Alice, role: Engineer, city: Berlin"

    def test_first_row_is_header_by_default(self) -> None:
        data = b"name,age\nAlice,30\nBob,25\nCara,41\n"
        document = CSVExtractor().extract(data, _OPTIONS)
        assert document.metadata.columns == ["name", "age"]
        assert document.metadata.row_count == 3

    def test_all_text_table_keeps_header(self) -> None:
        data = b"name,city,country\nAlice,Paris,France\nBob,Rome,Italy\nCara,Oslo,Norway\n"
        document = CSVExtractor().extract(data, _OPTIONS)

        assert document.metadata.columns == ["name", "city", "country"]
        assert document.metadata.row_count == 3
        assert document.text.split("\n\n")[0] == "Record 1: name: Alice, city: Paris, country: France"

    def test_header_override_off(self, sample_csv) -> None:
        document = CSVExtractor().extract(sample_csv, ProcessingOptions(csv_has_header=False))
        assert document.metadata.columns == []
        assert document.metadata.row_count == 4
        assert document.text.startswith("Record 1: column_1: name, column_2: role")

    def test_semicolon_delimiter(self) -> None:
        data = b"product;price\nlamp;20\nchair;45\n"
        document = CSVExtractor().extract(data, ProcessingOptions(csv_has_header=True))
        assert document.metadata.columns == ["product", "price"]
        assert "Record 2: product: chair, price: 45" in document.text

    def test_row_limit_truncates(self, sample_csv) -> None:
        options = ProcessingOptions(csv_has_header=True, csv_max_rows=2)
        document = CSVExtractor().extract(sample_csv, options)
        assert document.metadata.truncated is True
        assert document.metadata.row_count == 2
        assert "Cara" not in document.text

    def test_oversized_field_raises(self) -> None:
        data = b'a,b\n"' + b"x" * 200_000 + b'",1\n'
        with pytest.raises(ExtractionError) as exc_info:
            CSVExtractor().extract(data, ProcessingOptions(csv_has_header=True))
        assert exc_info.value.detected_type == "csv"


# ======================================================================
# HTML
# ======================================================================


class TestHTMLExtractor:
    @pytest.fixture
    def document(self, sample_html):
        return HTMLExtractor().extract(sample_html, _OPTIONS)

    def test_boilerplate_removed(self, document) -> None:
        for noise in ("tracking", "color: red", "Home", "Buy now", "Copyright"):
            assert noise not in document.text

    def test_headings(self, document) -> None:
        assert [(h.label, h.level) for h in document.headings()] == [
            ("Shipping Policy", 1),
            ("Delivery times", 2),
        ]

    def test_lists_and_tables(self, document) -> None:
        lists = [m for m in document.structure if m.kind is MarkerKind.LIST]
        tables = [m for m in document.structure if m.kind is MarkerKind.TABLE]
        assert _span(document, lists[0]) == "• Standard: 3 to 5 days\n• Express: 1 to 2 days"
        assert tables[0].label == "Rates"
        assert _span(document, tables[0]) == "Method | Price\nStandard | Free"

    def test_metadata(self, document) -> None:
        metadata = document.metadata
        assert metadata.title == "Shipping Policy"
        assert metadata.description == "How and when we ship orders."
        assert metadata.author == "Support Team"
        assert metadata.language == "en"
        assert metadata.published_at == "2024-03-01T09:00:00Z"

    def test_links_only_when_requested(self, document) -> None:
        assert document.links == []

    def test_links_resolved_and_deduplicated(self, sample_html) -> None:
        document = HTMLExtractor().extract(
            sample_html,
            ProcessingOptions(extract_links=True),
            source_url="https://shop.example.com/policies/shipping",
        )
        assert [(link.href, link.is_external) for link in document.links] == [
            ("https://shop.example.com/returns", False),
            ("https://help.example.org/contact", True),
        ]
        assert document.links[0].text == "returns page"
        assert document.links[0].title == "Returns"

    def test_title_tag_fallback_and_body_root(self) -> None:
        html = b"<html><head><title> My  Page </title></head><body><div>Short body.</div></body></html>"
        document = HTMLExtractor().extract(html, _OPTIONS)
        assert document.metadata.title == "My Page"
        assert document.text == "Short body."

    def test_title_tag_preferred_over_og_title(self) -> None:
        html = (
            b'<html><head><title>Page Title</title><meta property="og:title" content="Social Title">'
            b"</head><body><p>Body.</p></body></html>"
        )
        document = HTMLExtractor().extract(html, _OPTIONS)
        assert document.metadata.title == "Page Title"

    def test_og_title_used_without_title_tag(self) -> None:
        html = (
            b'<html><head><meta property="og:title" content="Social Title"></head>'
            b"<body><p>Body.</p></body></html>"
        )
        document = HTMLExtractor().extract(html, _OPTIONS)
        assert document.metadata.title == "Social Title"

    def test_page_wrapped_in_form_keeps_content(self) -> None:
        paragraph = "<p>Real article content about our opening hours and services.</p>" * 5
        html = (
            "<html><body><form id='form1' method='post'>"
            "<input type='hidden' name='__VIEWSTATE' value='dDwtMTA4MTk'>"
            f"<h1>Welcome</h1>{paragraph}"
            "<select name='lang'><option>English</option></select>"
            "<button type='submit'>Search</button>"
            "</form></body></html>"
        ).encode()
        document = HTMLExtractor().extract(html, _OPTIONS)

        assert [(h.label, h.level) for h in document.headings()] == [("Welcome", 1)]
        assert document.text.startswith("Welcome\n\nReal article content")
        assert document.text.count("Real article content") == 5
        for control in ("English", "Search", "dDwtMTA4MTk"):
            assert control not in document.text
        assert document.metadata.low_confidence is False

    def test_header_with_heading_kept(self) -> None:
        html = (
            b"<body><header class='site-header'><a href='/'>Brand</a></header>"
            b"<div class='post'><header class='entry-header'><h1>Post Title</h1></header>"
            b"<p>Post body text.</p></div></body>"
        )
        document = HTMLExtractor().extract(html, _OPTIONS)

        assert [h.label for h in document.headings()] == ["Post Title"]
        assert "Brand" not in document.text
        assert document.text == "Post Title\n\nPost body text."

    def test_inline_text_grouped_into_paragraphs(self) -> None:
        html = b"<body>Loose text <b>bold</b> more<div>Block</div><!-- secret --></body>"
        document = HTMLExtractor().extract(html, _OPTIONS)
        assert document.text == "Loose text bold more\n\nBlock"

    def test_empty_page_is_low_confidence(self) -> None:
        document = HTMLExtractor().extract(b"<html><body></body></html>", _OPTIONS)
        assert document.is_empty
        assert document.metadata.low_confidence is True


# ======================================================================
# PDF
# ======================================================================


def _mock_pdf(pages: list[list[str]], metadata: dict | None = None, needs_pass: bool = False):
    doc = MagicMock()
    doc.needs_pass = needs_pass
    doc.page_count = len(pages)
    doc.metadata = metadata or {}
    page_mocks = []
    for blocks in pages:
        page = MagicMock()
        page.get_text.return_value = [(0, 0, 0, 0, text, i, 0) for i, text in enumerate(blocks)]
        page_mocks.append(page)
    doc.load_page.side_effect = lambda index: page_mocks[index]
    return doc


_FITZ_OPEN = "plugrag.services.ingestion.extractors.pdf_extractor.fitz.open"


class TestPDFExtractor:
    def test_pages_and_metadata(self, pdf_bytes) -> None:
        document = PDFExtractor().extract(pdf_bytes, _OPTIONS)

        pages = [m for m in document.structure if m.kind is MarkerKind.PAGE]
        assert [p.page_number for p in pages] == [1, 2, 3]
        assert pages[1].start == pages[1].end
        assert "Quarterly report" in document.text
        assert "Revenue grew" in document.text
        assert document.metadata.page_count == 3
        assert document.metadata.title == "Q3 Report"
        assert document.metadata.author == "Finance"
        assert document.metadata.confidence == pytest.approx(2 / 3)
        assert document.metadata.low_confidence is False

    def test_page_limit(self, pdf_bytes) -> None:
        document = PDFExtractor().extract(pdf_bytes, ProcessingOptions(pdf_max_pages=1))
        pages = [m for m in document.structure if m.kind is MarkerKind.PAGE]
        assert len(pages) == 1
        assert document.metadata.page_count == 3
        assert document.metadata.truncated is True

    def test_malformed_pdf_raises(self) -> None:
        with pytest.raises(ExtractionError) as exc_info:
            PDFExtractor().extract(b"%PDF-1.4 this is not really a pdf", _OPTIONS)
        assert exc_info.value.detected_type == "pdf"

    def test_open_failure_is_chained(self) -> None:
        with patch(_FITZ_OPEN, side_effect=RuntimeError("broken xref")):
            with pytest.raises(ExtractionError) as exc_info:
                PDFExtractor().extract(b"%PDF-", _OPTIONS)
        assert isinstance(exc_info.value.cause, RuntimeError)
        assert exc_info.value.__cause__ is exc_info.value.cause

    def test_encrypted_pdf_raises(self) -> None:
        with patch(_FITZ_OPEN, return_value=_mock_pdf([["x"]], needs_pass=True)):
            with pytest.raises(ExtractionError, match="password"):
                PDFExtractor().extract(b"%PDF-", _OPTIONS)

    def test_chapter_headings_detected(self) -> None:
        doc = _mock_pdf(
            [
                ["Chapter 1", "The story begins on a quiet morning in the valley."],
                ["PART II", "INTRODUCTION", "Page 2 of 9", "A normal sentence of body text here."],
            ]
        )
        with patch(_FITZ_OPEN, return_value=doc):
            document = PDFExtractor().extract(b"%PDF-", _OPTIONS)

        assert [(h.label, h.level, h.page_number) for h in document.headings()] == [
            ("Chapter 1", 1, 1),
            ("PART II", 1, 2),
            ("INTRODUCTION", 1, 2),
        ]
        assert "Page 2 of 9" not in document.text
        doc.close.assert_called_once()

    def test_dehyphenation(self) -> None:
        doc = _mock_pdf([["Retrieval aug-\nmented generation works well."]])
        with patch(_FITZ_OPEN, return_value=doc):
            document = PDFExtractor().extract(b"%PDF-", _OPTIONS)
        assert document.text == "Retrieval augmented generation works well."

    def test_scanned_pdf_is_low_confidence(self) -> None:
        with patch(_FITZ_OPEN, return_value=_mock_pdf([[], [], ["tiny"]])):
            document = PDFExtractor().extract(b"%PDF-", _OPTIONS)
        assert document.metadata.confidence == 0.0
        assert document.metadata.low_confidence is True


# ======================================================================
# DOCX
# ======================================================================


class TestDOCXExtractor:
    @pytest.fixture
    def document(self, docx_bytes):
        return DOCXExtractor().extract(docx_bytes, _OPTIONS)

    def test_body_order_preserved(self, document) -> None:
        assert _kinds(document) == [
            MarkerKind.HEADING,
            MarkerKind.HEADING,
            MarkerKind.PARAGRAPH,
            MarkerKind.LIST,
            MarkerKind.HEADING,
            MarkerKind.TABLE,
            MarkerKind.PARAGRAPH,
        ]

    def test_heading_levels(self, document) -> None:
        assert [(h.label, h.level) for h in document.headings()] == [
            ("Employee Handbook", 1),
            ("Time off", 1),
            ("Equipment", 2),
        ]

    def test_list_items_grouped(self, document) -> None:
        lists = [m for m in document.structure if m.kind is MarkerKind.LIST]
        assert _span(document, lists[0]) == (
            "• Request leave in the portal\n• Wait for manager approval"
        )

    def test_table_rows(self, document) -> None:
        table = next(m for m in document.structure if m.kind is MarkerKind.TABLE)
        assert _span(document, table) == "Item | Budget\nLaptop | 1500"

    def test_core_properties(self, document) -> None:
        assert document.metadata.title == "Employee Handbook"
        assert document.metadata.author == "HR"
        assert document.metadata.file_type is FileType.DOCX

    def test_malformed_docx_raises(self) -> None:
        with pytest.raises(ExtractionError) as exc_info:
            DOCXExtractor().extract(b"PK\x03\x04 not a real archive", _OPTIONS)
        assert exc_info.value.detected_type == "docx"
        assert exc_info.value.cause is not None
