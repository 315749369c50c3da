"""Shared Pydantic models for ragconf."""

from __future__ import annotations

import math
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ── Enums ──


class EnhancementStrategy(StrEnum):
    TERMINOLOGY_SUPPORT = "terminology_support"
    PATTERN_RECOGNITION = "pattern_recognition"
    COMPARATIVE_ANALYSIS = "comparative_analysis"
    DOMAIN_EXPERTISE = "domain_expertise"


class ConfidenceLevel(StrEnum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    FAILED = "FAILED"


GENERAL_INDUSTRY = "general"
EMBEDDING_ANALYSIS_TYPE = "document_embedding"


def clamp(value: float, lower: float, upper: float) -> float:
    """Clamp a value into [lower, upper]."""
    return max(lower, min(upper, value))


# ── Corpus models ──


class Document(BaseModel):
    """A document as handed over by the external document store."""

    id: int
    industry: str = GENERAL_INDUSTRY
    document_type: str | None = None
    extracted_text: str | None = None
    extracted_data: dict[str, Any] = Field(default_factory=dict)
    ai_confidence: float | None = None
    created_at: datetime | None = None


class ChunkMetadata(BaseModel):
    industry: str = GENERAL_INDUSTRY
    document_type: str = "unknown"
    entity_types: set[str] = Field(default_factory=set)
    confidence: float = 0.7
    created_at: str = ""


class Chunk(BaseModel):
    """One indexed window of a document's text."""

    model_config = ConfigDict(frozen=True)

    document_id: int
    chunk_id: str
    text: str
    vector: list[float] = Field(default_factory=list)
    metadata: ChunkMetadata = Field(default_factory=ChunkMetadata)
    # Unfiltered token counts of the full window text
    term_counts: dict[str, int] = Field(default_factory=dict)


class EmbeddingRecordChunk(BaseModel):
    chunk_id: str
    text: str
    vector: list[float] = Field(default_factory=list)
    metadata: ChunkMetadata = Field(default_factory=ChunkMetadata)
    term_counts: dict[str, int] = Field(default_factory=dict)


class EmbeddingRecord(BaseModel):
    """Persisted analysis record holding a document's chunk vectors."""

    document_id: int
    analysis_type: str = EMBEDDING_ANALYSIS_TYPE
    chunks: list[EmbeddingRecordChunk] = Field(default_factory=list)
    confidence_score: float = 0.7


# ── Retrieval models ──


class RetrievedChunk(BaseModel):
    text: str
    similarity: float = 0.0
    metadata: ChunkMetadata = Field(default_factory=ChunkMetadata)


class RetrievedDocument(BaseModel):
    document: Document
    similarity: float = 0.0
    relevant_chunks: list[RetrievedChunk] = Field(default_factory=list)
    reason_for_relevance: str = ""


class RAGContext(BaseModel):
    """Structured result of a retrieval query."""

    query: str
    retrieved_documents: list[RetrievedDocument] = Field(default_factory=list)
    total_documents_searched: int = 0
    average_similarity: float = 0.0
    context_summary: str = ""
    enhancement_strategy: EnhancementStrategy = EnhancementStrategy.TERMINOLOGY_SUPPORT
    degraded: bool = False


# ── Confidence inputs ──


class ModelFeatures(BaseModel):
    text_quality: float = Field(default=0.5, ge=0.0, le=1.0)
    structural_clarity: float = Field(default=0.5, ge=0.0, le=1.0)
    domain_match: float = Field(default=0.5, ge=0.0, le=1.0)
    # Milliseconds spent producing the prediction
    processing_time: float = Field(default=0.0, ge=0.0)


class ModelPrediction(BaseModel):
    """A single upstream model's prediction summary."""

    model: str
    confidence: float = Field(ge=0.0, le=1.0)
    entropy: float = Field(default=0.0, ge=0.0)
    features: ModelFeatures = Field(default_factory=ModelFeatures)


class DocumentContext(BaseModel):
    """Required per-document context, validated once at the pipeline boundary."""

    industry: str
    document_type: str
    text_quality: float = 0.7
    processing_complexity: float = 0.5

    @field_validator("industry", "document_type")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must be a non-empty string")
        return value

    @field_validator("text_quality", "processing_complexity")
    @classmethod
    def _unit_interval(cls, value: float) -> float:
        return clamp(value, 0.0, 1.0)

    @property
    def key(self) -> tuple[str, str]:
        return self.industry, self.document_type


class HistoricalEvidence(BaseModel):
    """Retrieval-derived evidence consumed by the historical component."""

    similarity: float = 0.0
    historical_confidence: float = 0.7
    sample_size: int = 0

    @classmethod
    def from_rag_context(cls, context: RAGContext) -> HistoricalEvidence:
        docs = context.retrieved_documents
        known = [d.document.ai_confidence for d in docs if d.document.ai_confidence is not None]
        historical = sum(known) / len(known) if known else 0.7
        return cls(
            similarity=context.average_similarity,
            historical_confidence=historical,
            sample_size=len(docs),
        )


class StructureContext(BaseModel):
    """Output of an optional structure-analysis pass."""

    structure_confidence: float = 0.5
    pattern_match: float = 0.5
    adaptive_confidence: float = 0.5


# ── Confidence outputs ──


class ConfidenceComponents(BaseModel):
    content: float = Field(ge=0.1, le=0.95)
    consensus: float = Field(ge=0.2, le=0.95)
    historical: float = Field(ge=0.2, le=0.9)
    technical: float = Field(ge=0.3, le=0.95)
    domain: float = Field(ge=0.3, le=0.9)

    def items(self) -> list[tuple[str, float]]:
        return list(self.model_dump().items())


class UncertaintyMetrics(BaseModel):
    aleatoric: float = Field(ge=0.05, le=0.8)
    epistemic: float = Field(ge=0.05, le=0.7)
    total: float

    @classmethod
    def combine(cls, aleatoric: float, epistemic: float) -> UncertaintyMetrics:
        return cls(
            aleatoric=aleatoric,
            epistemic=epistemic,
            total=math.sqrt(aleatoric * aleatoric + epistemic * epistemic),
        )


class CalibrationBin(BaseModel):
    """Observed accuracy for predictions falling in [lower, upper)."""

    model_config = ConfigDict(frozen=True)

    lower: float
    upper: float
    actual_accuracy: float
    sample_count: int = 0
    reliability: float = 0.0

    @property
    def midpoint(self) -> float:
        return (self.lower + self.upper) / 2

    @property
    def confidence_range(self) -> tuple[float, float]:
        return self.lower, self.upper


class CalibrationMetrics(BaseModel):
    reliability: float = 0.7
    sharpness: float = 0.6
    brier: float = 0.25


class ConfidenceBoost(BaseModel):
    source: str
    impact: int
    reason: str


class Explanation(BaseModel):
    primary_factors: list[str] = Field(default_factory=list)
    confidence_boosts: list[ConfidenceBoost] = Field(default_factory=list)
    uncertainty_factors: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class ConfidenceReport(BaseModel):
    """Calibrated, explained confidence for one extraction."""

    overall: float = Field(ge=0.1, le=0.98)
    posterior: float = 0.0
    level: ConfidenceLevel = ConfidenceLevel.FAILED
    needs_human_review: bool = True
    components: ConfidenceComponents
    uncertainty: UncertaintyMetrics
    calibration: CalibrationMetrics = Field(default_factory=CalibrationMetrics)
    explanation: Explanation = Field(default_factory=Explanation)
    calibrated_from_bin: bool = False
    fallback_used: bool = False
