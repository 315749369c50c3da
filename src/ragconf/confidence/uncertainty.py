"""Aleatoric and epistemic uncertainty."""

from __future__ import annotations

from collections.abc import Sequence

from ragconf.confidence.components import average_entropy, confidence_variance
from ragconf.types import (
    ConfidenceComponents,
    DocumentContext,
    ModelPrediction,
    UncertaintyMetrics,
    clamp,
)


def aleatoric_uncertainty(context: DocumentContext, components: ConfidenceComponents) -> float:
    """Noise inherent to the input document."""
    uncertainty = 0.2
    uncertainty += (1 - context.text_quality) * 0.3
    uncertainty += context.processing_complexity * 0.2
    uncertainty += (1 - components.content) * 0.15
    uncertainty += (1 - components.technical) * 0.15
    return clamp(uncertainty, 0.05, 0.8)


def epistemic_uncertainty(
    predictions: Sequence[ModelPrediction],
    components: ConfidenceComponents,
) -> float:
    """Model disagreement and missing evidence."""
    uncertainty = 0.15
    if len(predictions) > 1:
        uncertainty += confidence_variance(predictions) * 0.4
    uncertainty += (1 - components.consensus) * 0.25
    uncertainty += (1 - components.historical) * 0.2
    uncertainty += average_entropy(predictions) * 0.15
    return clamp(uncertainty, 0.05, 0.7)


def quantify_uncertainty(
    predictions: Sequence[ModelPrediction],
    components: ConfidenceComponents,
    context: DocumentContext,
) -> UncertaintyMetrics:
    return UncertaintyMetrics.combine(
        aleatoric_uncertainty(context, components),
        epistemic_uncertainty(predictions, components),
    )
