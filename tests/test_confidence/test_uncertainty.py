"""Tests for uncertainty quantification."""

import math

from ragconf.confidence.uncertainty import (
    aleatoric_uncertainty,
    epistemic_uncertainty,
    quantify_uncertainty,
)
from ragconf.types import ConfidenceComponents, DocumentContext, ModelPrediction


def _make_components(**overrides) -> ConfidenceComponents:
    fields = {"content": 0.7, "consensus": 0.7, "historical": 0.6, "technical": 0.7, "domain": 0.6}
    fields.update(overrides)
    return ConfidenceComponents(**fields)


def _make_context(**overrides) -> DocumentContext:
    return DocumentContext(industry="legal", document_type="contract", **overrides)


class TestUncertainty:
    def test_total_is_root_sum_of_squares(self):
        metrics = quantify_uncertainty([], _make_components(), _make_context())
        assert math.isclose(metrics.total, math.hypot(metrics.aleatoric, metrics.epistemic))

    def test_aleatoric_grows_as_quality_drops(self):
        components = _make_components()
        previous = 0.0
        for quality in (1.0, 0.8, 0.6, 0.4, 0.2):
            value = aleatoric_uncertainty(_make_context(text_quality=quality), components)
            assert value > previous
            previous = value

    def test_epistemic_grows_with_disagreement(self):
        components = _make_components()
        agree = [ModelPrediction(model="a", confidence=0.8), ModelPrediction(model="b", confidence=0.8)]
        disagree = [ModelPrediction(model="a", confidence=0.2), ModelPrediction(model="b", confidence=0.9)]
        assert epistemic_uncertainty(disagree, components) > epistemic_uncertainty(agree, components)

    def test_bounds(self):
        worst = _make_components(content=0.1, consensus=0.2, historical=0.2, technical=0.3, domain=0.3)
        context = _make_context(text_quality=0.0, processing_complexity=1.0)
        preds = [ModelPrediction(model="a", confidence=0.0, entropy=5.0), ModelPrediction(model="b", confidence=1.0, entropy=5.0)]
        metrics = quantify_uncertainty(preds, worst, context)
        assert metrics.aleatoric == 0.8
        assert metrics.epistemic == 0.7
