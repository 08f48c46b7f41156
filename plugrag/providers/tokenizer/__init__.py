"""Token counter implementations."""

from plugrag.providers.tokenizer.heuristic_counter import HeuristicTokenCounter
from plugrag.providers.tokenizer.tiktoken_counter import TiktokenTokenCounter

__all__ = ["HeuristicTokenCounter", "TiktokenTokenCounter"]
