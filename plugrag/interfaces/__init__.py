"""Interfaces for the collaborators the ingestion core depends on.

The core never reaches for ambient global state: the tokenizer, the URL
fetcher and the per-format extractors are injected through these ABCs.

    Interface            ->  Concrete implementations
    ---------------------------------------------------------------
    ITokenCounter        ->  TiktokenTokenCounter, HeuristicTokenCounter
    IContentFetcher      ->  HttpxContentFetcher
    IDocumentExtractor   ->  PDFExtractor, DOCXExtractor, TextExtractor,
                             MarkdownExtractor, CSVExtractor, HTMLExtractor
"""

from plugrag.interfaces.content_fetcher import FetchedContent, IContentFetcher
from plugrag.interfaces.extractor import IDocumentExtractor
from plugrag.interfaces.tokenizer import ITokenCounter

__all__ = [
    "FetchedContent",
    "IContentFetcher",
    "IDocumentExtractor",
    "ITokenCounter",
]
