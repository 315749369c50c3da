"""Confidence report helpers and the fallback report."""

from __future__ import annotations

from collections.abc import Sequence

from ragconf.types import (
    CalibrationMetrics,
    ConfidenceComponents,
    ConfidenceLevel,
    ConfidenceReport,
    DocumentContext,
    Explanation,
    ModelPrediction,
    UncertaintyMetrics,
    clamp,
)

# Decision thresholds
_THRESHOLDS: list[tuple[float, ConfidenceLevel]] = [
    (0.8, ConfidenceLevel.HIGH),
    (0.6, ConfidenceLevel.MEDIUM),
    (0.3, ConfidenceLevel.LOW),
]

FALLBACK_FACTOR = "Fallback confidence calculation used"
FALLBACK_UNCERTAINTY = "Advanced confidence calculation failed"
FALLBACK_RECOMMENDATION = "Review results manually due to processing error"


def score_to_level(score: float) -> ConfidenceLevel:
    """Convert a numeric confidence score to a ConfidenceLevel."""
    for threshold, level in _THRESHOLDS:
        if score >= threshold:
            return level
    return ConfidenceLevel.FAILED


def needs_human_review(score: float) -> bool:
    """Determine if a confidence score warrants human review."""
    return score < 0.6


def fallback_report(
    predictions: Sequence[ModelPrediction],
    context: DocumentContext,
) -> ConfidenceReport:
    """Fixed, conservative report used when any confidence stage fails.

    Built only from constants and already-validated inputs so it cannot fail.
    """
    confidences = [p.confidence for p in predictions]
    average = sum(confidences) / len(confidences) if confidences else 0.0
    overall = clamp(average, 0.3, 0.8)

    return ConfidenceReport(
        overall=overall,
        posterior=overall,
        level=score_to_level(overall),
        needs_human_review=needs_human_review(overall),
        components=ConfidenceComponents(
            content=clamp(context.text_quality, 0.1, 0.95),
            consensus=0.5 if len(predictions) > 1 else 0.6,
            historical=0.5,
            technical=0.6,
            domain=0.5,
        ),
        uncertainty=UncertaintyMetrics.combine(0.3, 0.3),
        calibration=CalibrationMetrics(reliability=0.6, sharpness=0.5, brier=0.3),
        explanation=Explanation(
            primary_factors=[FALLBACK_FACTOR],
            uncertainty_factors=[FALLBACK_UNCERTAINTY],
            recommendations=[FALLBACK_RECOMMENDATION],
        ),
        fallback_used=True,
    )
