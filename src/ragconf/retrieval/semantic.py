"""Cosine-similarity scoring of a query vector against chunk vectors."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from ragconf.types import Chunk
from ragconf.vectorize.base import cosine_similarity


def semantic_scores(
    query_vector: Sequence[float] | np.ndarray,
    chunks: Sequence[Chunk],
    vectors: Sequence[np.ndarray],
    threshold: float = 0.1,
) -> dict[str, float]:
    """Similarity per chunk id, keeping only values above ``threshold``."""
    query = np.asarray(query_vector, dtype=np.float64)
    scores: dict[str, float] = {}
    for chunk, vector in zip(chunks, vectors, strict=True):
        similarity = cosine_similarity(query, vector)
        if similarity > threshold:
            scores[chunk.chunk_id] = similarity
    return scores
