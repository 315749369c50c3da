"""The five confidence components, each a pure function clamped to its range."""

from __future__ import annotations

from collections.abc import Sequence

from ragconf.confidence.patterns import HistoricalPattern
from ragconf.confidence.reliability import ModelReliabilityTable
from ragconf.types import (
    GENERAL_INDUSTRY,
    ConfidenceComponents,
    DocumentContext,
    HistoricalEvidence,
    ModelPrediction,
    StructureContext,
    clamp,
)

# processing_time is in milliseconds
_TIME_SCALE_MS = 10000.0
_SLOW_PROCESSING_MS = 5000.0


def mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def confidence_variance(predictions: Sequence[ModelPrediction]) -> float:
    """Population variance of prediction confidences."""
    if not predictions:
        return 0.0
    avg = mean([p.confidence for p in predictions])
    return sum((p.confidence - avg) ** 2 for p in predictions) / len(predictions)


def average_entropy(predictions: Sequence[ModelPrediction]) -> float:
    return mean([p.entropy for p in predictions])


def feature_score(prediction: ModelPrediction) -> float:
    f = prediction.features
    time_term = max(0.0, 1 - f.processing_time / _TIME_SCALE_MS)
    return (
        f.text_quality * 0.3
        + f.structural_clarity * 0.3
        + f.domain_match * 0.2
        + time_term * 0.2
    )


def content_confidence(
    context: DocumentContext,
    predictions: Sequence[ModelPrediction],
) -> float:
    confidence = 0.5
    confidence += (context.text_quality - 0.5) * 0.4
    confidence -= (context.processing_complexity - 0.5) * 0.2
    confidence += (mean([feature_score(p) for p in predictions]) - 0.5) * 0.3
    return clamp(confidence, 0.1, 0.95)


def consensus_confidence(predictions: Sequence[ModelPrediction]) -> float:
    """Pairwise agreement minus a variance penalty; 0.6 for fewer than two models."""
    if len(predictions) < 2:
        return 0.6

    agreements: list[float] = []
    for i, first in enumerate(predictions):
        for second in predictions[i + 1 :]:
            confidence_agreement = 1 - abs(first.confidence - second.confidence)
            entropy_agreement = 1 - abs(first.entropy - second.entropy)
            agreements.append(confidence_agreement * 0.6 + entropy_agreement * 0.4)

    penalty = min(confidence_variance(predictions) * 2, 0.3)
    return clamp(mean(agreements) - penalty, 0.2, 0.95)


def historical_confidence(
    evidence: HistoricalEvidence | None,
    pattern: HistoricalPattern | None = None,
    min_pattern_samples: int = 5,
) -> float:
    confidence = 0.5

    if evidence is not None and evidence.sample_size > 0:
        weight = min(evidence.sample_size / 10, 1.0)
        confidence = (
            confidence * (1 - weight)
            + evidence.historical_confidence * weight
            + evidence.similarity * 0.3
        )

    if pattern is not None and pattern.sample_size >= min_pattern_samples:
        weight = min(pattern.sample_size / 20, 0.4)
        confidence = confidence * (1 - weight) + pattern.accuracy_rate * weight

    return clamp(confidence, 0.2, 0.9)


def technical_confidence(
    context: DocumentContext,
    predictions: Sequence[ModelPrediction],
    reliability: ModelReliabilityTable,
) -> float:
    confidence = 0.7

    weighted = mean([reliability.get(p.model) * p.confidence for p in predictions])
    confidence += (weighted - 0.8) * 0.3

    avg_time = mean([p.features.processing_time for p in predictions])
    if avg_time > _SLOW_PROCESSING_MS:
        confidence -= min((avg_time - _SLOW_PROCESSING_MS) / _TIME_SCALE_MS, 0.2)

    confidence += (context.text_quality - 0.7) * 0.2
    return clamp(confidence, 0.3, 0.95)


def domain_confidence(
    context: DocumentContext,
    structure: StructureContext | None,
    predictions: Sequence[ModelPrediction],
) -> float:
    confidence = 0.6
    if context.industry != GENERAL_INDUSTRY:
        confidence += 0.1

    if structure is not None:
        confidence += (structure.structure_confidence - 0.5) * 0.3
        confidence += (structure.pattern_match - 0.5) * 0.2
        confidence += (structure.adaptive_confidence - 0.5) * 0.3

    if predictions:
        confidence += (mean([p.features.domain_match for p in predictions]) - 0.5) * 0.2

    return clamp(confidence, 0.3, 0.9)


def compute_components(
    predictions: Sequence[ModelPrediction],
    context: DocumentContext,
    reliability: ModelReliabilityTable,
    evidence: HistoricalEvidence | None = None,
    structure: StructureContext | None = None,
    pattern: HistoricalPattern | None = None,
    min_pattern_samples: int = 5,
) -> ConfidenceComponents:
    return ConfidenceComponents(
        content=content_confidence(context, predictions),
        consensus=consensus_confidence(predictions),
        historical=historical_confidence(evidence, pattern, min_pattern_samples),
        technical=technical_confidence(context, predictions, reliability),
        domain=domain_confidence(context, structure, predictions),
    )
