"""Okapi BM25 over a filtered chunk population."""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Mapping, Sequence

from ragconf.tokenize import ENGLISH_STOP_WORDS, tokenize


class BM25Scorer:
    """Score token lists against a query with classic BM25.

    idf is floored at zero: a term present in more than half of the
    population contributes nothing rather than a negative amount, which
    keeps every score non-decreasing in term frequency.
    """

    def __init__(self, k1: float = 1.5, b: float = 0.75, stop_words: bool = False) -> None:
        self.k1 = k1
        self.b = b
        self._stop_words = ENGLISH_STOP_WORDS if stop_words else None

    def tokenize(self, text: str) -> list[str]:
        return tokenize(text, self._stop_words)

    def idf(self, term: str, population: Sequence[Counter[str]]) -> float:
        n = len(population)
        df = sum(1 for counts in population if term in counts)
        return max(0.0, math.log((n - df + 0.5) / (df + 0.5)))

    def score_texts(self, query: str, texts: Sequence[str]) -> list[float]:
        return self.score_tokens(self.tokenize(query), [self.tokenize(t) for t in texts])

    def term_counts(self, text: str, stored: Mapping[str, int] | None = None) -> Counter[str]:
        """Term frequencies of a text, or of precomputed unfiltered counts.

        Stored counts let a chunk whose text was truncated on disk score as it
        did when it was indexed.
        """
        if not stored:
            return Counter(self.tokenize(text))
        if self._stop_words is None:
            return Counter(stored)
        return Counter({t: c for t, c in stored.items() if t not in self._stop_words})

    def score_tokens(self, query_terms: Sequence[str], documents: Sequence[Sequence[str]]) -> list[float]:
        """BM25 score of every document; zeros when nothing matches."""
        return self.score_counts(query_terms, [Counter(doc) for doc in documents])

    def score_counts(self, query_terms: Sequence[str], counts: Sequence[Counter[str]]) -> list[float]:
        if not counts:
            return []
        terms = list(dict.fromkeys(query_terms))
        lengths = [sum(c.values()) for c in counts]
        avg_len = sum(lengths) / len(lengths)
        idf = {term: self.idf(term, counts) for term in terms}

        scores: list[float] = []
        for doc_counts, length in zip(counts, lengths, strict=True):
            norm = 1 - self.b + self.b * (length / avg_len) if avg_len > 0 else 1.0
            score = 0.0
            for term in terms:
                tf = doc_counts.get(term, 0)
                if tf == 0:
                    continue
                score += idf[term] * (tf * (self.k1 + 1)) / (tf + self.k1 * norm)
            scores.append(score)
        return scores
