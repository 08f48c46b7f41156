"""Token-bounded, structure-aware chunking with overlapping windows.

Splits an :class:`~plugrag.models.document.ExtractedDocument` into
:class:`~plugrag.models.chunk.Chunk` objects sized for the embedding model.
The chunker works on character offsets into ``document.text`` and only asks
the injected :class:`~plugrag.interfaces.tokenizer.ITokenCounter` for counts,
so any tokenizer can drive it.

For each chunk:

1. **Token limit** -- find the longest span from the chunk start whose token
   count fits ``max_chunk_size``.  If the rest of the text fits, it becomes
   the final chunk.
2. **Split point** -- look for a boundary in the last half of that span
   (the look-back window), in order of preference:

   - the most recent structural boundary (paragraph end, heading start, end
     of a list/table/code/page/record block) when ``respect_structure`` is on;
   - the most recent sentence end, using an abbreviation-aware matcher so
     "Dr." or "vs." does not end a sentence;
   - a hard split at the last word end anywhere in the span, or exactly at
     the limit when the span holds a single unbroken token run.

3. **Overlap** -- the next chunk starts at the earliest word of the current
   chunk's tail that keeps the tail within the effective overlap budget.

Chunks never end inside a word unless no word ends between the previous
chunk's end and the limit, as when a single "word" exceeds the budget.
The output is a pure function of the document, the options and the
tokenizer; nothing is cached between calls.
"""

from __future__ import annotations

import bisect
import re

import structlog

from plugrag.interfaces.tokenizer import ITokenCounter
from plugrag.models.chunk import Chunk, ChunkType
from plugrag.models.document import ExtractedDocument, MarkerKind, StructureMarker
from plugrag.models.options import ProcessingOptions

logger = structlog.get_logger(logger_name=__name__)

# Common abbreviations that should NOT trigger a sentence split.
# "Dr. Smith" should remain one sentence, not split at the period.
_ABBREVIATIONS = frozenset(
    {
        "Dr",
        "Mr",
        "Mrs",
        "Ms",
        "Prof",
        "Jr",
        "Sr",
        "St",
        "Ave",
        "Blvd",
        "Vol",
        "No",
        "vs",
        "etc",
        "approx",
        "dept",
        "est",
        "govt",
        "inc",
        "ltd",
        "co",
        "ft",
        "e.g",
        "i.e",
    }
)
_ABBREVIATION_RE = re.compile(
    r"(?<!\w)(?:" + "|".join(re.escape(a) for a in sorted(_ABBREVIATIONS)) + r")\.",
    re.IGNORECASE,
)

_SENTENCE_END = re.compile(r"[.!?][\"')\]]*(?=\s)")
_WORD_END = re.compile(r"\S(?=\s)")
_WORD = re.compile(r"\S+")

# Block kinds whose end closes a chunk as "document_structure".
_BLOCK_END_KINDS = frozenset(
    {MarkerKind.LIST, MarkerKind.TABLE, MarkerKind.CODE, MarkerKind.PAGE, MarkerKind.RECORD}
)

# First probe of the token-limit search, in characters per budgeted token.
_CHARS_PER_TOKEN_PROBE = 4


class TextChunker:
    """Splits extracted documents into overlapping, token-bounded chunks.

    Parameters
    ----------
    token_counter:
        Tokenizer consistent with the embedding model; every budget decision
        and every ``Chunk.token_count`` comes from it.
    """

    def __init__(self, token_counter: ITokenCounter) -> None:
        self._token_counter = token_counter

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def chunk(self, document: ExtractedDocument, options: ProcessingOptions) -> list[Chunk]:
        """Split *document* into chunks according to *options*.

        Returns
        -------
        list[Chunk]
            Chunks in document order with contiguous indices starting at 0.
            An empty (or whitespace-only) document returns an empty list.

        Raises
        ------
        ChunkingError
            If ``options.overlap >= options.max_chunk_size``.  Raised before
            any text is examined.
        """
        options.validate_for_chunking()

        text = document.text
        end_of_text = len(text.rstrip())
        start = _skip_whitespace(text, 0)
        if start >= end_of_text:
            logger.debug("chunking_complete", num_chunks=0, file_type=document.file_type.value)
            return []

        budget = options.max_chunk_size
        overlap_budget = options.effective_overlap
        boundaries = self._structural_boundaries(document) if options.respect_structure else {}
        boundary_positions = sorted(boundaries)
        masked = _mask_abbreviations(text)
        final_type = ChunkType.PARAGRAPH_BOUNDARY if options.respect_structure else ChunkType.MANUAL

        spans: list[tuple[int, int, ChunkType, int]] = []
        floor = start
        overlap_chars = 0
        while True:
            limit = self._token_limit(text, start, end_of_text, budget)
            if overlap_chars and limit <= floor:
                # The overlap left no room for new text; restart without it.
                start, overlap_chars = _skip_whitespace(text, floor), 0
                continue

            if limit >= end_of_text:
                end, chunk_type = end_of_text, final_type
            else:
                end, chunk_type = self._split_point(
                    text, masked, boundaries, boundary_positions, start, limit, floor
                )
                if self._count(text[start:end]) > budget:
                    end, chunk_type = _content_end(text, start, limit), ChunkType.MANUAL

            end = _content_end(text, start, end)
            if overlap_chars and end <= floor:
                start, overlap_chars = _skip_whitespace(text, floor), 0
                continue

            spans.append((start, end, chunk_type, overlap_chars))
            if end >= end_of_text:
                break

            floor = end
            next_start = self._overlap_start(text, start, end, overlap_budget)
            if next_start is None:
                start, overlap_chars = _skip_whitespace(text, end), 0
            else:
                start, overlap_chars = next_start, end - next_start

        chunks = self._build_chunks(document, spans)
        logger.debug(
            "chunking_complete",
            num_chunks=len(chunks),
            avg_tokens=_avg_tokens(chunks),
            max_chunk_size=budget,
            overlap=overlap_budget,
            file_type=document.file_type.value,
        )
        return chunks

    # ------------------------------------------------------------------
    # Token counting
    # ------------------------------------------------------------------

    def _count(self, text: str) -> int:
        return self._token_counter.count_tokens(text)

    def _token_limit(self, text: str, start: int, end_of_text: int, budget: int) -> int:
        """Return the largest offset whose span from *start* fits *budget*.

        Returns *end_of_text* when the whole remainder fits.  Uses an
        exponential probe followed by a binary search, so the tokenizer is
        called O(log n) times per chunk.
        """
        lo = start
        step = max(budget * _CHARS_PER_TOKEN_PROBE, 16)
        while True:
            hi = min(start + step, end_of_text)
            if self._count(text[start:hi]) > budget:
                break
            lo = hi
            if hi >= end_of_text:
                return end_of_text
            step *= 2

        # Invariant: span to lo fits, span to hi does not.
        while hi - lo > 1:
            mid = (lo + hi) // 2
            if self._count(text[start:mid]) <= budget:
                lo = mid
            else:
                hi = mid
        return max(lo, start + 1)

    # ------------------------------------------------------------------
    # Split selection
    # ------------------------------------------------------------------

    @staticmethod
    def _structural_boundaries(document: ExtractedDocument) -> dict[int, ChunkType]:
        """Map candidate split offsets to the chunk type they produce.

        Offsets are content ends (the character before is not whitespace).
        A heading closes the chunk *before* it, at the end of the preceding
        block.
        """
        text = document.text
        boundaries: dict[int, ChunkType] = {}
        for marker in document.structure:
            if marker.kind is MarkerKind.HEADING:
                position = len(text[: marker.start].rstrip())
                chunk_type = ChunkType.DOCUMENT_STRUCTURE
            elif marker.kind is MarkerKind.PARAGRAPH:
                position = marker.end
                chunk_type = ChunkType.PARAGRAPH_BOUNDARY
            elif marker.kind in _BLOCK_END_KINDS:
                position = len(text[: marker.end].rstrip())
                chunk_type = ChunkType.DOCUMENT_STRUCTURE
            else:
                continue
            if position <= 0:
                continue
            # Block ends outrank a paragraph end at the same offset.
            if boundaries.get(position) is not ChunkType.DOCUMENT_STRUCTURE:
                boundaries[position] = chunk_type
        return boundaries

    def _split_point(
        self,
        text: str,
        masked: str,
        boundaries: dict[int, ChunkType],
        boundary_positions: list[int],
        start: int,
        limit: int,
        floor: int,
    ) -> tuple[int, ChunkType]:
        """Pick where to close the chunk that starts at *start*."""
        window_lo = max(start + (limit - start) // 2, floor + 1)

        if boundary_positions:
            i = bisect.bisect_right(boundary_positions, limit) - 1
            if i >= 0 and boundary_positions[i] >= window_lo:
                position = boundary_positions[i]
                return position, boundaries[position]

        sentence_end = _last_match_end(_SENTENCE_END, masked, window_lo, limit)
        if sentence_end is not None:
            return sentence_end, ChunkType.SENTENCE_BOUNDARY

        word_end = _last_match_end(_WORD_END, text, floor + 1, limit)
        if word_end is not None:
            return word_end, ChunkType.MANUAL
        return limit, ChunkType.MANUAL

    def _overlap_start(self, text: str, start: int, end: int, overlap_budget: int) -> int | None:
        """Return where the next chunk starts so it re-includes the tail of this one.

        The result is the earliest word start after the chunk's first word
        whose tail ``text[s:end]`` fits *overlap_budget*, or ``None`` when no
        non-empty tail fits.
        """
        if overlap_budget <= 0:
            return None
        candidates = [m.start() for m in _WORD.finditer(text, start, end)][1:]
        lo, hi = 0, len(candidates)
        while lo < hi:
            mid = (lo + hi) // 2
            if self._count(text[candidates[mid] : end]) <= overlap_budget:
                hi = mid
            else:
                lo = mid + 1
        if lo == len(candidates):
            return None
        return candidates[lo]

    # ------------------------------------------------------------------
    # Chunk assembly
    # ------------------------------------------------------------------

    def _build_chunks(
        self,
        document: ExtractedDocument,
        spans: list[tuple[int, int, ChunkType, int]],
    ) -> list[Chunk]:
        text = document.text
        headings = [m for m in document.structure if m.kind is MarkerKind.HEADING]
        heading_starts = [m.start for m in headings]
        pages = [m for m in document.structure if m.kind is MarkerKind.PAGE]
        page_starts = [m.start for m in pages]
        columns = list(document.metadata.columns)

        chunks: list[Chunk] = []
        for index, (start, end, chunk_type, overlap_chars) in enumerate(spans):
            content = text[start:end]
            heading = _heading_for(headings, heading_starts, start, end)
            page = _marker_at(pages, page_starts, start)
            chunks.append(
                Chunk(
                    content=content,
                    index=index,
                    token_count=self._count(content),
                    type=chunk_type,
                    has_overlap=overlap_chars > 0,
                    start_offset=start,
                    end_offset=end,
                    overlap_chars=overlap_chars,
                    heading=heading.label if heading else None,
                    level=heading.level if heading else None,
                    page_number=page.page_number if page else None,
                    column_headers=list(columns),
                )
            )
        return chunks


# ----------------------------------------------------------------------
# Module helpers
# ----------------------------------------------------------------------


def _mask_abbreviations(text: str) -> str:
    """Replace abbreviation periods with NUL, keeping offsets aligned."""
    return _ABBREVIATION_RE.sub(lambda m: m.group(0)[:-1] + "\x00", text)


def _skip_whitespace(text: str, position: int) -> int:
    while position < len(text) and text[position].isspace():
        position += 1
    return position


def _content_end(text: str, start: int, end: int) -> int:
    while end > start and text[end - 1].isspace():
        end -= 1
    return end


def _last_match_end(pattern: re.Pattern[str], text: str, lo: int, hi: int) -> int | None:
    """Return the last match end of *pattern* within ``[lo, hi]``."""
    # Lookaheads need to see the character at hi.
    last = None
    for match in pattern.finditer(text, max(0, lo - 8), min(len(text), hi + 1)):
        if lo <= match.end() <= hi:
            last = match.end()
    return last


def _marker_at(
    markers: list[StructureMarker], starts: list[int], position: int
) -> StructureMarker | None:
    i = bisect.bisect_right(starts, position) - 1
    return markers[i] if i >= 0 else None


def _heading_for(
    headings: list[StructureMarker], starts: list[int], start: int, end: int
) -> StructureMarker | None:
    """Nearest heading at or before *start*, else the first heading inside the chunk."""
    preceding = _marker_at(headings, starts, start)
    if preceding is not None:
        return preceding
    i = bisect.bisect_left(starts, start)
    if i < len(headings) and headings[i].start < end:
        return headings[i]
    return None


def _avg_tokens(chunks: list[Chunk]) -> int:
    if not chunks:
        return 0
    return sum(c.token_count for c in chunks) // len(chunks)
