"""Fuse lexical and semantic chunk scores into one ranking."""

from __future__ import annotations

from collections.abc import Mapping


def normalize_lexical(lexical: Mapping[str, float]) -> dict[str, float]:
    """Divide by the batch maximum, never by less than 1."""
    if not lexical:
        return {}
    divisor = max(max(lexical.values()), 1.0)
    return {chunk_id: score / divisor for chunk_id, score in lexical.items()}


def fuse_scores(
    lexical: Mapping[str, float],
    semantic: Mapping[str, float],
    lexical_weight: float = 0.4,
    semantic_weight: float = 0.6,
) -> list[tuple[str, float]]:
    """Rank chunk ids by fused score, ties broken by chunk id.

    With one signal empty the ranking is that signal alone (semantic
    similarity, or normalized BM25). With both present, chunks seen by
    both get the weighted sum and the rest keep their single weighted term.
    """
    normalized = normalize_lexical(lexical)

    if not normalized and not semantic:
        return []
    if not normalized:
        fused = dict(semantic)
    elif not semantic:
        fused = normalized
    else:
        fused = {}
        for chunk_id in normalized.keys() | semantic.keys():
            fused[chunk_id] = (
                lexical_weight * normalized.get(chunk_id, 0.0)
                + semantic_weight * semantic.get(chunk_id, 0.0)
            )

    return sorted(fused.items(), key=lambda item: (-item[1], item[0]))
