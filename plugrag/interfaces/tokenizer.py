"""Abstract base class for token counters.

The chunker budgets chunks in tokens, and those counts must match what the
embedding/billing layer later reports, otherwise usage accounting drifts.
The counter is therefore injected rather than chosen inside the chunker:
callers pass the implementation that matches their embedding model.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations (plugrag/providers/tokenizer/):
#   TiktokenTokenCounter   -- exact counts for OpenAI embedding models
#   HeuristicTokenCounter  -- ceil(len / 4) approximation, explicit opt-in only
class ITokenCounter(ABC):
    """Contract for counting tokens the way the embedding model does."""

    @abstractmethod
    def count_tokens(self, text: str) -> int:
        """Return the number of tokens in *text* (0 for the empty string)."""

    @abstractmethod
    def get_name(self) -> str:
        """Return an identifier for the tokenizer, e.g. ``"tiktoken:cl100k_base"``."""
