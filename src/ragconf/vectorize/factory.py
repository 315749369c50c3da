"""Select a vectorizer implementation from configuration."""

from __future__ import annotations

import logging

from ragconf.config.schema import EngineSettings, VectorizerBackend
from ragconf.vectorize.base import Vectorizer
from ragconf.vectorize.cache import CachedVectorizer
from ragconf.vectorize.hashing import HashingVectorizer

logger = logging.getLogger(__name__)


def build_vectorizer(settings: EngineSettings) -> Vectorizer:
    """Build the configured vectorizer, wrapped in an LRU when caching is enabled."""
    if settings.vectorizer == VectorizerBackend.OPENAI:
        from ragconf.vectorize.openai_embedder import OpenAIVectorizer

        inner: Vectorizer = OpenAIVectorizer(
            model=settings.embedding_model,
            dimensions=settings.embedding_dimensions,
            api_key=settings.api_key,
            base_url=settings.base_url,
            timeout=settings.vectorize_timeout,
        )
    else:
        inner = HashingVectorizer(dimensions=settings.embedding_dimensions)

    logger.debug("Using %s vectorizer (%d dims)", inner.name, inner.dimensions)
    if settings.vector_cache_entries > 0:
        return CachedVectorizer(inner, max_entries=settings.vector_cache_entries)
    return inner
