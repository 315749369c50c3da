"""Embedding-model vectorizer backed by OpenAI's embeddings endpoint."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

import numpy as np
import openai
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ragconf.vectorize.base import Vectorizer, l2_normalize

logger = logging.getLogger(__name__)

# Transient errors that warrant retry
_TRANSIENT_EXCEPTIONS = (
    openai.RateLimitError,
    openai.InternalServerError,
    openai.APIConnectionError,
    openai.APITimeoutError,
)

# The endpoint accepts up to 2048 inputs per request
_BATCH_SIZE = 100


class OpenAIVectorizer(Vectorizer):
    """Vectorize text with an OpenAI-compatible embedding model.

    Every call is bounded by ``timeout`` seconds; on timeout the
    ``asyncio.TimeoutError`` propagates so callers can take their degraded path.
    """

    name = "openai"

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        dimensions: int = 1536,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float = 10.0,
        client: openai.AsyncOpenAI | None = None,
    ) -> None:
        self._model = model
        self._dimensions = dimensions
        self._timeout = timeout
        self._client = client or openai.AsyncOpenAI(
            api_key=api_key, base_url=base_url, timeout=timeout
        )
        self.name = f"openai:{model}"

    @property
    def dimensions(self) -> int:
        return self._dimensions

    async def vectorize(self, text: str) -> list[float]:
        vectors = await self.vectorize_many([text])
        return vectors[0]

    async def vectorize_many(self, texts: Sequence[str]) -> list[list[float]]:
        results: list[list[float]] = []
        for start in range(0, len(texts), _BATCH_SIZE):
            batch = list(texts[start : start + _BATCH_SIZE])
            results.extend(
                await asyncio.wait_for(self._embed_batch(batch), timeout=self._timeout)
            )
        return results

    @retry(
        retry=retry_if_exception_type(_TRANSIENT_EXCEPTIONS),
        wait=wait_exponential(multiplier=1, min=1, max=30),
        stop=stop_after_attempt(3),
        reraise=True,
    )
    async def _embed_batch(self, batch: list[str]) -> list[list[float]]:
        # Empty strings are rejected by the endpoint; they map to the zero vector
        non_empty = [(i, t) for i, t in enumerate(batch) if t.strip()]
        vectors = [[0.0] * self._dimensions for _ in batch]
        if not non_empty:
            return vectors

        response = await self._client.embeddings.create(
            model=self._model,
            input=[t for _, t in non_empty],
            dimensions=self._dimensions,
        )
        for (index, _), item in zip(non_empty, response.data, strict=True):
            vectors[index] = l2_normalize(np.asarray(item.embedding, dtype=np.float64)).tolist()

        logger.debug("Embedded %d texts with %s", len(non_empty), self._model)
        return vectors

    async def close(self) -> None:
        await self._client.close()
