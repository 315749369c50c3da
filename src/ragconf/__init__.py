"""Retrieval-augmented confidence scoring for document extraction."""

from ragconf.core import AnalysisResult, RagConfidenceEngine
from ragconf.types import (
    ConfidenceReport,
    Document,
    DocumentContext,
    HistoricalEvidence,
    ModelFeatures,
    ModelPrediction,
    RAGContext,
    StructureContext,
)

__version__ = "0.1.0"

__all__ = [
    "AnalysisResult",
    "ConfidenceReport",
    "Document",
    "DocumentContext",
    "HistoricalEvidence",
    "ModelFeatures",
    "ModelPrediction",
    "RAGContext",
    "RagConfidenceEngine",
    "StructureContext",
]
