"""In-memory LRU cache in front of a vectorizer, with content-addressed keys."""

from __future__ import annotations

import hashlib
from collections import OrderedDict
from collections.abc import Sequence

from pydantic import BaseModel

from ragconf.vectorize.base import Vectorizer

_DEFAULT_MAX_ENTRIES = 1024


class VectorCacheStats(BaseModel):
    """Aggregate cache statistics."""

    entries: int = 0
    hits: int = 0
    misses: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0


def vector_cache_key(vectorizer_name: str, text: str) -> str:
    """SHA256 key over the vectorizer identity and the exact text."""
    combined = vectorizer_name + "||" + text
    return hashlib.sha256(combined.encode("utf-8")).hexdigest()


class CachedVectorizer(Vectorizer):
    """Wrap a vectorizer with an entry-bounded LRU."""

    def __init__(self, inner: Vectorizer, max_entries: int = _DEFAULT_MAX_ENTRIES) -> None:
        self._inner = inner
        self._store: OrderedDict[str, list[float]] = OrderedDict()
        self._max_entries = max(1, max_entries)
        self._hits = 0
        self._misses = 0
        self.name = inner.name

    @property
    def dimensions(self) -> int:
        return self._inner.dimensions

    @property
    def inner(self) -> Vectorizer:
        return self._inner

    async def vectorize(self, text: str) -> list[float]:
        key = vector_cache_key(self.name, text)
        cached = self._get(key)
        if cached is not None:
            return cached
        vector = await self._inner.vectorize(text)
        self._set(key, vector)
        return vector

    async def vectorize_many(self, texts: Sequence[str]) -> list[list[float]]:
        keys = [vector_cache_key(self.name, t) for t in texts]
        results: list[list[float] | None] = [self._get(k) for k in keys]
        missing = [i for i, r in enumerate(results) if r is None]
        if missing:
            fresh = await self._inner.vectorize_many([texts[i] for i in missing])
            for i, vector in zip(missing, fresh, strict=True):
                self._set(keys[i], vector)
                results[i] = vector
        return [r for r in results if r is not None]

    def stats(self) -> VectorCacheStats:
        return VectorCacheStats(entries=len(self._store), hits=self._hits, misses=self._misses)

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)

    async def close(self) -> None:
        await self._inner.close()

    def _get(self, key: str) -> list[float] | None:
        vector = self._store.get(key)
        if vector is None:
            self._misses += 1
            return None
        # Move to end (most recently used)
        self._store.move_to_end(key)
        self._hits += 1
        return vector

    def _set(self, key: str, vector: list[float]) -> None:
        self._store[key] = vector
        self._store.move_to_end(key)
        while len(self._store) > self._max_entries:
            self._store.popitem(last=False)
