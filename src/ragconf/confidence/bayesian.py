"""Bayesian aggregation of confidence components."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from pydantic import BaseModel, Field

from ragconf.confidence.components import average_entropy
from ragconf.types import (
    GENERAL_INDUSTRY,
    ConfidenceComponents,
    DocumentContext,
    ModelPrediction,
    clamp,
)

BASE_WEIGHTS: dict[str, float] = {
    "content": 0.25,
    "consensus": 0.25,
    "historical": 0.20,
    "technical": 0.15,
    "domain": 0.15,
}

INDUSTRY_PRIORS: dict[str, float] = {
    "medical": 0.75,
    "legal": 0.80,
    "finance": 0.82,
    "logistics": 0.70,
    "real_estate": 0.72,
    GENERAL_INDUSTRY: 0.65,
}

DOCUMENT_TYPE_ADJUSTMENTS: dict[str, float] = {
    "contract": 0.05,
    "invoice": 0.03,
    "medical_record": 0.04,
    "legal_document": 0.06,
    "report": 0.02,
    "form": 0.01,
}

_WEIGHT_BOOST = 0.1


class Aggregation(BaseModel):
    """Intermediate values of one aggregation, kept for reporting."""

    weights: dict[str, float] = Field(default_factory=dict)
    prior: float = 0.0
    likelihood: float = 0.0
    posterior: float = 0.0
    entropy_bonus: float = 0.0
    overall: float = 0.0


def component_weights(components: ConfidenceComponents, industry: str) -> dict[str, float]:
    """Baseline weights with context boosts, renormalized to sum to 1."""
    weights = dict(BASE_WEIGHTS)
    if components.consensus > 0.8:
        weights["consensus"] += _WEIGHT_BOOST
    if components.historical > 0.8:
        weights["historical"] += _WEIGHT_BOOST
    if industry != GENERAL_INDUSTRY and components.domain > 0.7:
        weights["domain"] += _WEIGHT_BOOST
    return _normalize(weights)


def _normalize(weights: Mapping[str, float]) -> dict[str, float]:
    total = sum(weights.values())
    if total <= 0:
        equal = 1.0 / len(weights)
        return {name: equal for name in weights}
    return {name: weight / total for name, weight in weights.items()}


def domain_prior(industry: str, document_type: str) -> float:
    base = INDUSTRY_PRIORS.get(industry, INDUSTRY_PRIORS[GENERAL_INDUSTRY])
    return clamp(base + DOCUMENT_TYPE_ADJUSTMENTS.get(document_type, 0.0), 0.5, 0.9)


def posterior(prior: float, likelihood: float) -> float:
    """P(reliable | evidence); the prior when the evidence is degenerate."""
    numerator = likelihood * prior
    denominator = numerator + (1 - likelihood) * (1 - prior)
    if denominator <= 0:
        return prior
    return numerator / denominator


def aggregate(
    components: ConfidenceComponents,
    predictions: Sequence[ModelPrediction],
    context: DocumentContext,
) -> Aggregation:
    weights = component_weights(components, context.industry)
    likelihood = sum(score * weights[name] for name, score in components.items())
    prior = domain_prior(context.industry, context.document_type)
    post = posterior(prior, likelihood)
    bonus = max(0.0, 0.5 - average_entropy(predictions)) * 0.1
    return Aggregation(
        weights=weights,
        prior=prior,
        likelihood=likelihood,
        posterior=post,
        entropy_bonus=bonus,
        overall=clamp(post + bonus, 0.1, 0.98),
    )
