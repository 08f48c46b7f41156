"""Extractor for CSV files.

Each data row becomes one record block rendered as
``Record N: column: value, column: value`` so the column names travel with
the values into every chunk.  The header row itself is not part of the text;
it is stored in ``metadata.columns`` and copied onto every chunk by the
chunker.
"""

from __future__ import annotations

import csv
import io

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
)

logger = structlog.get_logger(logger_name=__name__)

_SNIFF_SAMPLE_CHARS = 8192
_DELIMITERS = ",;\t|"
_MAX_BINARY_RATIO = 0.1


class CSVExtractor(IDocumentExtractor):
    """Converts CSV rows into labelled record blocks."""

    file_type = FileType.CSV

    def extract(
        self,
        data: bytes,
        options: ProcessingOptions,
        *,
        source_url: str | None = None,
        encoding: str | None = None,
    ) -> ExtractedDocument:
        text, used_encoding = decode_bytes(data, encoding)
        ratio = control_char_ratio(text)
        if ratio > _MAX_BINARY_RATIO:
            raise ExtractionError(
                "Content appears to be binary, not CSV",
                detected_type=FileType.CSV.value,
            )
        text = text.lstrip("\ufeff")

        sample = text[:_SNIFF_SAMPLE_CHARS]
        dialect = _sniff_dialect(sample)
        has_header = options.csv_has_header

        try:
            rows = [
                [collapse_whitespace(cell) for cell in row]
                for row in csv.reader(io.StringIO(text), dialect)
            ]
        except csv.Error as exc:
            logger.warning("csv_parse_failed", error=str(exc))
            raise ExtractionError(
                f"Malformed CSV: {exc}",
                detected_type=FileType.CSV.value,
                cause=exc,
            ) from exc
        rows = [row for row in rows if any(row)]

        columns: list[str] = []
        records = rows
        if rows and has_header:
            columns = [name or f"column_{i + 1}" for i, name in enumerate(rows[0])]
            records = rows[1:]

        truncated = len(records) > options.csv_max_rows
        if truncated:
            logger.warning(
                "csv_rows_truncated",
                rows=len(records),
                max_rows=options.csv_max_rows,
            )
            records = records[: options.csv_max_rows]

        builder = DocumentBuilder(FileType.CSV)
        for number, row in enumerate(records, start=1):
            label = f"Record {number}"
            builder.add_block(f"{label}: {_render_row(row, columns)}", MarkerKind.RECORD, label=label)

        if data and not builder.length:
            confidence = 0.0
        else:
            confidence = 1.0 - ratio
        document = builder.build(
            confidence=confidence,
            source_url=source_url,
            encoding=used_encoding,
            columns=columns,
            row_count=len(records),
            truncated=truncated,
        )
        logger.info(
            "csv_extracted",
            columns=len(columns),
            rows=len(records),
            delimiter=dialect.delimiter,
            has_header=has_header,
            truncated=truncated,
        )
        return document


def _sniff_dialect(sample: str) -> type[csv.Dialect] | csv.Dialect:
    try:
        return csv.Sniffer().sniff(sample, delimiters=_DELIMITERS)
    except csv.Error:
        return csv.excel


def _render_row(row: list[str], columns: list[str]) -> str:
    parts: list[str] = []
    for i, value in enumerate(row):
        if not value:
            continue
        name = columns[i] if i < len(columns) else f"column_{i + 1}"
        parts.append(f"{name}: {value}")
    return ", ".join(parts)
