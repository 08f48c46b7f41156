"""Approximate token counter (``ceil(len / 4)``).

Only for offline tooling where the embedding tokenizer is unavailable.  It is
never used as a silent fallback: counts from it do not match billing.
"""

from __future__ import annotations

import math

from plugrag.interfaces.tokenizer import ITokenCounter


class HeuristicTokenCounter(ITokenCounter):
    """Roughly four characters per token."""

    def __init__(self, chars_per_token: float = 4.0) -> None:
        if chars_per_token <= 0:
            raise ValueError("chars_per_token must be positive")
        self._chars_per_token = chars_per_token

    def count_tokens(self, text: str) -> int:
        return math.ceil(len(text) / self._chars_per_token)

    def get_name(self) -> str:
        return f"heuristic:{self._chars_per_token:g}"
