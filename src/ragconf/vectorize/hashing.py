"""Deterministic hashing vectorizer, the default when no embedding model is configured.

This is a weighted bag-of-words hash: similar vectors mean overlapping
vocabulary near the start of the text, not shared meaning.
"""

from __future__ import annotations

import numpy as np

from ragconf.vectorize.base import Vectorizer, l2_normalize

_MAX_TOKENS = 100


def string_hash(token: str) -> int:
    """Signed 32-bit polynomial hash (h * 31 + codepoint)."""
    h = 0
    for char in token:
        h = (h * 31 + ord(char)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


class HashingVectorizer(Vectorizer):
    """Hash the first 100 tokens into buckets weighted by 1/(position+1)."""

    name = "hashing"

    def __init__(self, dimensions: int = 1536, max_tokens: int = _MAX_TOKENS) -> None:
        if dimensions <= 0:
            raise ValueError("dimensions must be positive")
        self._dimensions = dimensions
        self._max_tokens = max_tokens

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def embed(self, text: str) -> list[float]:
        """Synchronous form of vectorize()."""
        vector = np.zeros(self._dimensions, dtype=np.float64)
        tokens = text.lower().split()[: self._max_tokens]
        for position, token in enumerate(tokens):
            bucket = abs(string_hash(token)) % self._dimensions
            vector[bucket] += 1.0 / (position + 1)
        return l2_normalize(vector).tolist()

    async def vectorize(self, text: str) -> list[float]:
        return self.embed(text)
