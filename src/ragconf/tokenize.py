"""Lexical tokenizer shared by chunk indexing and the BM25 scorer."""

from __future__ import annotations

import re

_NON_WORD = re.compile(r"[^\w\s]")

ENGLISH_STOP_WORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "as", "is", "was", "are", "were", "been",
    "be", "have", "has", "had", "do", "does", "did", "will", "would",
    "could", "should", "may", "might", "can", "this", "that", "these",
    "those", "it", "its", "what", "which", "who", "when", "where", "why", "how",
})


def tokenize(text: str, stop_words: frozenset[str] | None = None) -> list[str]:
    """Lowercase, strip punctuation, drop tokens of two characters or fewer."""
    tokens = _NON_WORD.sub(" ", text.lower()).split()
    if stop_words:
        return [t for t in tokens if len(t) > 2 and t not in stop_words]
    return [t for t in tokens if len(t) > 2]
