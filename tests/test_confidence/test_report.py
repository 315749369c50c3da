"""Tests for report helpers and the fallback report."""

import math

import pytest

from ragconf.confidence.report import (
    FALLBACK_FACTOR,
    fallback_report,
    needs_human_review,
    score_to_level,
)
from ragconf.types import ConfidenceLevel, DocumentContext, ModelPrediction

CONTEXT = DocumentContext(industry="legal", document_type="contract", text_quality=0.9)


class TestScoreToLevel:
    @pytest.mark.parametrize(
        ("score", "level"),
        [
            (0.95, ConfidenceLevel.HIGH),
            (0.8, ConfidenceLevel.HIGH),
            (0.7, ConfidenceLevel.MEDIUM),
            (0.3, ConfidenceLevel.LOW),
            (0.1, ConfidenceLevel.FAILED),
        ],
    )
    def test_levels(self, score, level):
        assert score_to_level(score) == level

    def test_review_threshold(self):
        assert needs_human_review(0.59)
        assert not needs_human_review(0.6)


class TestFallbackReport:
    def test_mean_clamped(self):
        preds = [ModelPrediction(model="a", confidence=0.95), ModelPrediction(model="b", confidence=0.99)]
        report = fallback_report(preds, CONTEXT)
        assert report.overall == 0.8
        assert report.fallback_used
        assert report.components.consensus == 0.5
        assert report.explanation.primary_factors == [FALLBACK_FACTOR]

    def test_no_predictions(self):
        report = fallback_report([], CONTEXT)
        assert report.overall == 0.3
        assert report.components.consensus == 0.6
        assert report.components.content == 0.9
        assert report.needs_human_review

    def test_fixed_uncertainty(self):
        report = fallback_report([], CONTEXT)
        assert report.uncertainty.aleatoric == 0.3
        assert math.isclose(report.uncertainty.total, math.sqrt(0.18))
