"""Package-level default configuration values."""

from __future__ import annotations

from typing import Any

# Vectorizer settings
DEFAULT_VECTORIZER = "hashing"
DEFAULT_EMBEDDING_DIMENSIONS = 1536
DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"
DEFAULT_VECTOR_CACHE_ENTRIES = 1024
DEFAULT_VECTORIZE_TIMEOUT = 10.0

# Chunking settings
DEFAULT_CHUNK_WORDS = 1000
DEFAULT_CHUNK_OVERLAP = 200
DEFAULT_MIN_CHUNK_CHARS = 50
DEFAULT_RECORD_TEXT_PREFIX_CHARS = 500
DEFAULT_MAX_INDEX_WORKERS = 5

# Retrieval settings
DEFAULT_BM25_K1 = 1.5
DEFAULT_BM25_B = 0.75
DEFAULT_BM25_STOP_WORDS = False
DEFAULT_MIN_SEMANTIC_SIMILARITY = 0.1
DEFAULT_LEXICAL_WEIGHT = 0.4
DEFAULT_SEMANTIC_WEIGHT = 0.6
DEFAULT_MAX_RESULTS = 5

# Summarizer settings
DEFAULT_SUMMARIZER_ENABLED = False
DEFAULT_SUMMARIZER_MODEL = "gpt-4.1-mini"
DEFAULT_SUMMARY_TIMEOUT = 10.0

# Confidence settings
DEFAULT_MODEL_RELIABILITY: dict[str, float] = {
    "openai": 0.88,
    "gemini": 0.82,
    "anthropic": 0.85,
    "google_vision": 0.90,
}
DEFAULT_UNKNOWN_MODEL_RELIABILITY = 0.8
DEFAULT_CALIBRATION_MIN_SAMPLES = 10
DEFAULT_PATTERN_MIN_SAMPLES = 5

# Seed calibration bins: [industry, document_type, lower, actual_accuracy, sample_count]
DEFAULT_CALIBRATION_SEED: list[list[Any]] = [
    ["medical", "medical_record", 0.8, 0.85, 50],
    ["medical", "medical_record", 0.9, 0.92, 30],
    ["legal", "contract", 0.7, 0.75, 40],
    ["legal", "contract", 0.8, 0.88, 35],
]

# Persistence (None = process-local only)
DEFAULT_DB_PATH = None

# Log level
DEFAULT_LOG_LEVEL = "WARNING"


def get_defaults() -> dict[str, Any]:
    """Return all defaults as a flat dictionary for merging."""
    return {
        "vectorizer": DEFAULT_VECTORIZER,
        "embedding_dimensions": DEFAULT_EMBEDDING_DIMENSIONS,
        "embedding_model": DEFAULT_EMBEDDING_MODEL,
        "vector_cache_entries": DEFAULT_VECTOR_CACHE_ENTRIES,
        "vectorize_timeout": DEFAULT_VECTORIZE_TIMEOUT,
        "chunk_words": DEFAULT_CHUNK_WORDS,
        "chunk_overlap": DEFAULT_CHUNK_OVERLAP,
        "min_chunk_chars": DEFAULT_MIN_CHUNK_CHARS,
        "record_text_prefix_chars": DEFAULT_RECORD_TEXT_PREFIX_CHARS,
        "max_index_workers": DEFAULT_MAX_INDEX_WORKERS,
        "bm25_k1": DEFAULT_BM25_K1,
        "bm25_b": DEFAULT_BM25_B,
        "bm25_stop_words": DEFAULT_BM25_STOP_WORDS,
        "min_semantic_similarity": DEFAULT_MIN_SEMANTIC_SIMILARITY,
        "lexical_weight": DEFAULT_LEXICAL_WEIGHT,
        "semantic_weight": DEFAULT_SEMANTIC_WEIGHT,
        "max_results": DEFAULT_MAX_RESULTS,
        "summarizer_enabled": DEFAULT_SUMMARIZER_ENABLED,
        "summarizer_model": DEFAULT_SUMMARIZER_MODEL,
        "summary_timeout": DEFAULT_SUMMARY_TIMEOUT,
        "model_reliability": dict(DEFAULT_MODEL_RELIABILITY),
        "unknown_model_reliability": DEFAULT_UNKNOWN_MODEL_RELIABILITY,
        "calibration_min_samples": DEFAULT_CALIBRATION_MIN_SAMPLES,
        "pattern_min_samples": DEFAULT_PATTERN_MIN_SAMPLES,
        "calibration_seed": [list(row) for row in DEFAULT_CALIBRATION_SEED],
        "db_path": DEFAULT_DB_PATH,
        "log_level": DEFAULT_LOG_LEVEL,
    }
