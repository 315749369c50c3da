"""Pluggable text-to-vector backends."""

from ragconf.vectorize.base import Vectorizer, cosine_similarity, l2_normalize
from ragconf.vectorize.cache import CachedVectorizer, VectorCacheStats
from ragconf.vectorize.factory import build_vectorizer
from ragconf.vectorize.hashing import HashingVectorizer

__all__ = [
    "Vectorizer",
    "HashingVectorizer",
    "CachedVectorizer",
    "VectorCacheStats",
    "build_vectorizer",
    "cosine_similarity",
    "l2_normalize",
]
