"""Token counter backed by tiktoken.

Counts tokens with the encoding of the configured embedding model
(``text-embedding-3-small`` -> ``cl100k_base``), so chunk budgets match what
the embedding API bills.
"""

from __future__ import annotations

import structlog
import tiktoken

from plugrag.interfaces.tokenizer import ITokenCounter

logger = structlog.get_logger(logger_name=__name__)

_FALLBACK_ENCODING = "cl100k_base"


class TiktokenTokenCounter(ITokenCounter):
    """Exact token counts for OpenAI embedding models.

    Each instance owns its encoding object; nothing is cached at module
    level, so independent workers never share counter state.
    """

    def __init__(self, model: str = "text-embedding-3-small") -> None:
        self._model = model
        try:
            self._encoding = tiktoken.encoding_for_model(model)
        except KeyError:
            logger.warning("tiktoken_unknown_model", model=model, encoding=_FALLBACK_ENCODING)
            self._encoding = tiktoken.get_encoding(_FALLBACK_ENCODING)

    def count_tokens(self, text: str) -> int:
        if not text:
            return 0
        # Documents may legitimately contain strings like "<|endoftext|>";
        # count them as ordinary text instead of raising.
        return len(self._encoding.encode(text, disallowed_special=()))

    def get_name(self) -> str:
        return f"tiktoken:{self._encoding.name}"
