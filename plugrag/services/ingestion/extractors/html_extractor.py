"""Extractor for HTML pages, both uploaded files and fetched URLs.

Boilerplate (scripts, styles, navigation, footers, form controls, ads and
popups) is removed before the main content element is located; ``<form>``
itself is walked like any other container.  The remaining tree is walked in
document order: headings, paragraphs, lists, tables and ``pre`` blocks become
structure markers, and loose inline text is gathered into paragraphs.
"""

from __future__ import annotations

import codecs
from urllib.parse import urldefrag, urljoin, urlparse

import structlog
from bs4 import BeautifulSoup, Comment, NavigableString, Tag
from bs4.element import Declaration, Doctype, ProcessingInstruction

from plugrag.interfaces.extractor import IDocumentExtractor
from plugrag.models.document import ExtractedDocument, FileType, Link, MarkerKind
from plugrag.models.options import ProcessingOptions
from plugrag.services.ingestion.extractors.document_builder import DocumentBuilder
from plugrag.utils.errors import ExtractionError
from plugrag.utils.text_normalizer import collapse_whitespace

logger = structlog.get_logger(logger_name=__name__)

_BOILERPLATE_TAGS = [
    "script",
    "style",
    "noscript",
    "nav",
    "footer",
    "aside",
    "iframe",
    "embed",
    "object",
    "svg",
    "template",
    "input",
    "select",
    "button",
    "textarea",
]

_AD_SELECTORS = [
    ".ad",
    ".ads",
    ".advert",
    ".advertisement",
    "[class*=popup]",
    "[id*=popup]",
    "[class*=cookie-banner]",
    ".modal",
]

_MAIN_CONTENT_SELECTORS = [
    "main",
    "article",
    "[role=main]",
    ".content",
    "#content",
    ".main-content",
    ".post-content",
    ".entry-content",
]
_MIN_MAIN_CONTENT_CHARS = 100

_HEADING_TAGS = {"h1", "h2", "h3", "h4", "h5", "h6"}

# Elements whose children are walked as separate blocks.
_CONTAINER_TAGS = {
    "html",
    "body",
    "div",
    "section",
    "article",
    "main",
    "header",
    "blockquote",
    "figure",
    "figcaption",
    "details",
    "summary",
    "dl",
    "dt",
    "dd",
    "address",
    "center",
    "hgroup",
    "form",
    "fieldset",
    "li",
}

_SKIPPED_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)
_NON_LINK_SCHEMES = ("javascript:", "data:", "tel:")


class HTMLExtractor(IDocumentExtractor):
    """Extracts main-content text, structure, metadata and links from HTML."""

    file_type = FileType.HTML

    def extract(
        self,
        data: bytes,
        options: ProcessingOptions,
        *,
        source_url: str | None = None,
        encoding: str | None = None,
    ) -> ExtractedDocument:
        try:
            soup = BeautifulSoup(data, "html.parser", from_encoding=_known_encoding(encoding))
        except Exception as exc:
            logger.warning("html_parse_failed", size_bytes=len(data), error=str(exc))
            raise ExtractionError(
                "Could not parse HTML",
                detected_type=FileType.HTML.value,
                cause=exc,
            ) from exc

        metadata = self._extract_metadata(soup)
        self._strip_boilerplate(soup)
        root = self._find_main_content(soup)

        builder = DocumentBuilder(FileType.HTML)
        self._walk(root, builder)

        links: list[Link] = []
        if options.extract_links:
            links = self._extract_links(root, source_url)

        confidence = 1.0 if builder.length else 0.0
        document = builder.build(
            confidence=confidence,
            links=links,
            source_url=source_url,
            encoding=soup.original_encoding,
            **metadata,
        )
        logger.info(
            "html_extracted",
            blocks=builder.block_count,
            headings=len(document.headings()),
            links=len(links),
            characters=document.metadata.character_count,
        )
        return document

    # ------------------------------------------------------------------
    # Cleanup
    # ------------------------------------------------------------------

    @staticmethod
    def _strip_boilerplate(soup: BeautifulSoup) -> None:
        for element in soup.find_all(_BOILERPLATE_TAGS):
            element.decompose()
        for selector in _AD_SELECTORS:
            for element in soup.select(selector):
                element.decompose()
        # Site banners; headers inside the article body or holding a heading are content.
        for header in soup.find_all("header"):
            if header.find_parent(["article", "main"]) is not None:
                continue
            if header.find(sorted(_HEADING_TAGS)) is None:
                header.decompose()

    @staticmethod
    def _find_main_content(soup: BeautifulSoup) -> Tag:
        for selector in _MAIN_CONTENT_SELECTORS:
            element = soup.select_one(selector)
            if element is not None and len(element.get_text(strip=True)) > _MIN_MAIN_CONTENT_CHARS:
                return element
        return soup.body or soup

    # ------------------------------------------------------------------
    # Tree walk
    # ------------------------------------------------------------------

    def _walk(self, element: Tag, builder: DocumentBuilder) -> None:
        inline: list[str] = []

        def flush() -> None:
            if inline:
                builder.add_block(collapse_whitespace("".join(inline)), MarkerKind.PARAGRAPH)
                inline.clear()

        for child in element.children:
            if isinstance(child, _SKIPPED_STRINGS):
                continue
            if isinstance(child, NavigableString):
                inline.append(str(child))
                continue
            if not isinstance(child, Tag):
                continue

            name = child.name
            if name in _HEADING_TAGS:
                flush()
                text = _text_of(child)
                builder.add_block(text, MarkerKind.HEADING, level=int(name[1]), label=text)
            elif name == "p":
                flush()
                builder.add_block(_text_of(child), MarkerKind.PARAGRAPH)
            elif name in ("ul", "ol"):
                flush()
                builder.add_block(_render_list(child), MarkerKind.LIST)
            elif name == "table":
                flush()
                caption = child.find("caption")
                label = _text_of(caption) if caption is not None else None
                builder.add_block(_render_table(child), MarkerKind.TABLE, label=label or None)
            elif name == "pre":
                flush()
                builder.add_block(child.get_text(), MarkerKind.CODE)
            elif name == "br":
                inline.append(" ")
            elif name in _CONTAINER_TAGS:
                flush()
                self._walk(child, builder)
            else:
                inline.append(child.get_text())
        flush()

    # ------------------------------------------------------------------
    # Metadata and links
    # ------------------------------------------------------------------

    @staticmethod
    def _extract_metadata(soup: BeautifulSoup) -> dict[str, str | None]:
        def meta(*, name: str | None = None, prop: str | None = None) -> str | None:
            attrs = {"name": name} if name else {"property": prop}
            tag = soup.find("meta", attrs=attrs)
            if tag is None:
                return None
            content = tag.get("content")
            if not isinstance(content, str):
                return None
            return collapse_whitespace(content) or None

        title = None
        if soup.title is not None:
            title = collapse_whitespace(soup.title.get_text()) or None
        if not title:
            title = meta(prop="og:title")

        language = None
        html_tag = soup.find("html")
        if isinstance(html_tag, Tag):
            lang = html_tag.get("lang")
            if isinstance(lang, str) and lang.strip():
                language = lang.strip()

        return {
            "title": title,
            "description": meta(name="description") or meta(prop="og:description"),
            "author": meta(name="author") or meta(prop="article:author"),
            "language": language,
            "published_at": meta(prop="article:published_time"),
        }

    @staticmethod
    def _extract_links(root: Tag, source_url: str | None) -> list[Link]:
        base_host = urlparse(source_url).netloc.lower() if source_url else ""
        seen: set[str] = set()
        links: list[Link] = []
        for anchor in root.find_all("a", href=True):
            href = str(anchor["href"]).strip()
            if not href or href.startswith("#") or href.lower().startswith(_NON_LINK_SCHEMES):
                continue
            resolved, _ = urldefrag(urljoin(source_url, href) if source_url else href)
            if not resolved or resolved in seen:
                continue
            seen.add(resolved)

            host = urlparse(resolved).netloc.lower()
            is_external = bool(host) and host != base_host
            title = anchor.get("title")
            links.append(
                Link(
                    href=resolved,
                    text=_text_of(anchor),
                    title=title.strip() if isinstance(title, str) else "",
                    is_external=is_external,
                )
            )
        return links


def _known_encoding(encoding: str | None) -> str | None:
    if not encoding:
        return None
    try:
        codecs.lookup(encoding)
    except LookupError:
        return None
    return encoding


def _text_of(element: Tag) -> str:
    return collapse_whitespace(element.get_text(" "))


def _render_list(element: Tag) -> str:
    ordered = element.name == "ol"
    items: list[str] = []
    for li in element.find_all("li", recursive=False):
        text = _text_of(li)
        if not text:
            continue
        prefix = f"{len(items) + 1}. " if ordered else "• "
        items.append(prefix + text)
    return "\n".join(items)


def _render_table(element: Tag) -> str:
    rows: list[str] = []
    for tr in element.find_all("tr"):
        cells = [_text_of(cell) for cell in tr.find_all(["th", "td"])]
        if any(cells):
            rows.append(" | ".join(cells))
    return "\n".join(rows)
