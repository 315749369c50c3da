"""Vectorizer interface and vector math shared by the index and retriever."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Sequence

import numpy as np


class Vectorizer(ABC):
    """Turns text into a fixed-length, unit-normalized vector."""

    name: str = "vectorizer"

    @property
    @abstractmethod
    def dimensions(self) -> int: ...

    @abstractmethod
    async def vectorize(self, text: str) -> list[float]:
        """Vectorize a single text."""

    async def vectorize_many(self, texts: Sequence[str]) -> list[list[float]]:
        """Vectorize several texts, preserving order."""
        return list(await asyncio.gather(*(self.vectorize(t) for t in texts)))

    async def close(self) -> None:
        return None


def l2_normalize(vector: np.ndarray) -> np.ndarray:
    """Scale to unit length; the zero vector stays zero."""
    magnitude = float(np.linalg.norm(vector))
    if magnitude == 0.0:
        return vector
    return vector / magnitude


def cosine_similarity(a: Sequence[float] | np.ndarray, b: Sequence[float] | np.ndarray) -> float:
    """Cosine similarity; 0.0 for mismatched dimensions or zero vectors."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape or va.size == 0:
        return 0.0
    magnitude = float(np.linalg.norm(va)) * float(np.linalg.norm(vb))
    if magnitude == 0.0:
        return 0.0
    return float(np.dot(va, vb) / magnitude)
