"""Pydantic model for validated engine settings."""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ragconf.config import defaults


class VectorizerBackend(StrEnum):
    HASHING = "hashing"
    OPENAI = "openai"


class CalibrationSeed(BaseModel):
    industry: str
    document_type: str
    lower: float
    actual_accuracy: float
    sample_count: int


class EngineSettings(BaseModel):
    """Resolved configuration for one engine instance."""

    model_config = ConfigDict(extra="ignore")

    api_key: str | None = None
    base_url: str | None = None

    vectorizer: VectorizerBackend = VectorizerBackend.HASHING
    embedding_dimensions: int = Field(default=defaults.DEFAULT_EMBEDDING_DIMENSIONS, gt=0)
    embedding_model: str = defaults.DEFAULT_EMBEDDING_MODEL
    vector_cache_entries: int = defaults.DEFAULT_VECTOR_CACHE_ENTRIES
    vectorize_timeout: float = defaults.DEFAULT_VECTORIZE_TIMEOUT

    chunk_words: int = Field(default=defaults.DEFAULT_CHUNK_WORDS, gt=0)
    chunk_overlap: int = Field(default=defaults.DEFAULT_CHUNK_OVERLAP, ge=0)
    min_chunk_chars: int = defaults.DEFAULT_MIN_CHUNK_CHARS
    record_text_prefix_chars: int = defaults.DEFAULT_RECORD_TEXT_PREFIX_CHARS
    max_index_workers: int = Field(default=defaults.DEFAULT_MAX_INDEX_WORKERS, gt=0)

    bm25_k1: float = defaults.DEFAULT_BM25_K1
    bm25_b: float = defaults.DEFAULT_BM25_B
    bm25_stop_words: bool = defaults.DEFAULT_BM25_STOP_WORDS
    min_semantic_similarity: float = defaults.DEFAULT_MIN_SEMANTIC_SIMILARITY
    lexical_weight: float = defaults.DEFAULT_LEXICAL_WEIGHT
    semantic_weight: float = defaults.DEFAULT_SEMANTIC_WEIGHT
    max_results: int = Field(default=defaults.DEFAULT_MAX_RESULTS, gt=0)

    summarizer_enabled: bool = defaults.DEFAULT_SUMMARIZER_ENABLED
    summarizer_model: str = defaults.DEFAULT_SUMMARIZER_MODEL
    summary_timeout: float = defaults.DEFAULT_SUMMARY_TIMEOUT

    model_reliability: dict[str, float] = Field(
        default_factory=lambda: dict(defaults.DEFAULT_MODEL_RELIABILITY)
    )
    unknown_model_reliability: float = defaults.DEFAULT_UNKNOWN_MODEL_RELIABILITY
    calibration_min_samples: int = defaults.DEFAULT_CALIBRATION_MIN_SAMPLES
    pattern_min_samples: int = defaults.DEFAULT_PATTERN_MIN_SAMPLES
    calibration_seed: list[CalibrationSeed] = Field(default_factory=list)

    db_path: Path | None = None

    @model_validator(mode="before")
    @classmethod
    def _parse_seed_rows(cls, data: Any) -> Any:
        """Accept seed rows written as flat lists in YAML."""
        if isinstance(data, dict) and isinstance(data.get("calibration_seed"), list):
            rows = []
            for row in data["calibration_seed"]:
                if isinstance(row, (list, tuple)):
                    industry, document_type, lower, accuracy, count = row
                    row = {
                        "industry": industry,
                        "document_type": document_type,
                        "lower": lower,
                        "actual_accuracy": accuracy,
                        "sample_count": count,
                    }
                rows.append(row)
            data = {**data, "calibration_seed": rows}
        return data

    @model_validator(mode="after")
    def _check_overlap(self) -> EngineSettings:
        if self.chunk_overlap >= self.chunk_words:
            raise ValueError("chunk_overlap must be smaller than chunk_words")
        return self

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> EngineSettings:
        return cls.model_validate(config)

    @classmethod
    def default(cls) -> EngineSettings:
        return cls.model_validate(defaults.get_defaults())
