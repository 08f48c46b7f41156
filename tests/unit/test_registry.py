"""Unit tests for the extractor registry."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from plugrag.models.document import FileType
from plugrag.services.ingestion.extractors import HTMLExtractor, TextExtractor
from plugrag.services.ingestion.registry import ExtractorRegistry, default_registry
from plugrag.utils.errors import ExtractionError


class TestExtractorRegistry:
    def test_default_registry_covers_every_format(self) -> None:
        registry = default_registry()
        assert registry.file_types == sorted(
            [FileType.CSV, FileType.DOCX, FileType.HTML, FileType.MARKDOWN, FileType.PDF, FileType.TXT],
            key=lambda t: t.value,
        )
        assert isinstance(registry.get(FileType.HTML), HTMLExtractor)

    def test_missing_type_raises(self) -> None:
        registry = ExtractorRegistry()
        with pytest.raises(ExtractionError) as exc_info:
            registry.get(FileType.PDF)
        assert exc_info.value.detected_type == "pdf"
        assert not registry.supports(FileType.PDF)

    def test_duplicate_registration_rejected(self) -> None:
        registry = ExtractorRegistry([TextExtractor()])
        with pytest.raises(ValueError, match="already registered"):
            registry.register(TextExtractor())

    def test_replace(self) -> None:
        registry = ExtractorRegistry([TextExtractor()])
        custom = MagicMock(file_type=FileType.TXT)
        registry.register(custom, replace=True)
        assert registry.get(FileType.TXT) is custom

    def test_unknown_type_rejected(self) -> None:
        with pytest.raises(ValueError):
            ExtractorRegistry().register(MagicMock(file_type=FileType.UNKNOWN))
