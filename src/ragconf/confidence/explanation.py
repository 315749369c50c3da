"""Rule-based explanation of a confidence result."""

from __future__ import annotations

from collections.abc import Sequence

from ragconf.types import (
    ConfidenceBoost,
    ConfidenceComponents,
    Explanation,
    HistoricalEvidence,
    ModelPrediction,
    StructureContext,
    UncertaintyMetrics,
)


def _percent(score: float) -> int:
    return round(score * 100)


def explain(
    components: ConfidenceComponents,
    predictions: Sequence[ModelPrediction],
    uncertainty: UncertaintyMetrics,
    evidence: HistoricalEvidence | None = None,
    structure: StructureContext | None = None,
) -> Explanation:
    explanation = Explanation()

    for name, score in components.items():
        if score > 0.8:
            explanation.primary_factors.append(f"High {name} confidence ({_percent(score)}%)")
        elif score < 0.5:
            explanation.uncertainty_factors.append(f"Low {name} confidence ({_percent(score)}%)")

    if evidence is not None and evidence.similarity > 0.7:
        explanation.confidence_boosts.append(
            ConfidenceBoost(
                source="Historical Context",
                impact=round(evidence.similarity * 15),
                reason=f"High similarity to {evidence.sample_size} historical documents",
            )
        )
    if structure is not None and structure.pattern_match > 0.8:
        explanation.confidence_boosts.append(
            ConfidenceBoost(
                source="Pattern Recognition",
                impact=round(structure.pattern_match * 10),
                reason="Strong structural pattern recognition",
            )
        )
    if components.consensus > 0.8:
        explanation.confidence_boosts.append(
            ConfidenceBoost(
                source="Model Agreement",
                impact=round(components.consensus * 12),
                reason=f"{len(predictions)} models in strong agreement",
            )
        )

    if uncertainty.aleatoric > 0.4:
        explanation.uncertainty_factors.append(
            "High data uncertainty due to text quality or complexity"
        )
    if uncertainty.epistemic > 0.4:
        explanation.uncertainty_factors.append(
            "Model uncertainty due to limited training data or disagreement"
        )

    if components.technical < 0.6:
        explanation.recommendations.append(
            "Consider manual review due to technical processing challenges"
        )
    if components.consensus < 0.6 and len(predictions) > 1:
        explanation.recommendations.append("Models disagree - review conflicting predictions")
    if components.historical < 0.5:
        explanation.recommendations.append("Limited historical context - proceed with caution")
    if uncertainty.total > 0.4:
        explanation.recommendations.append(
            "High uncertainty detected - recommend additional validation"
        )

    return explanation
