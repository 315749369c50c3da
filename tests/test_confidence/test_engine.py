"""Tests for the confidence engine pipeline."""

import random

import pytest

from ragconf.config.schema import EngineSettings
from ragconf.confidence.engine import ConfidenceEngine, to_evidence, validate_context
from ragconf.errors.exceptions import ConfidenceCalculationFailure, ContextValidationError
from ragconf.types import (
    Document,
    DocumentContext,
    HistoricalEvidence,
    ModelFeatures,
    ModelPrediction,
    RAGContext,
    RetrievedDocument,
    StructureContext,
)

CONTEXT = DocumentContext(industry="legal", document_type="contract", text_quality=0.8)


def _make_predictions() -> list[ModelPrediction]:
    return [
        ModelPrediction(model="openai", confidence=0.90, entropy=0.10),
        ModelPrediction(model="anthropic", confidence=0.91, entropy=0.11),
        ModelPrediction(model="gemini", confidence=0.89, entropy=0.10),
    ]


class TestValidateContext:
    def test_passthrough(self):
        assert validate_context(CONTEXT) is CONTEXT

    def test_camel_case_mapping(self):
        context = validate_context({"industry": "legal", "documentType": "contract", "textQuality": 0.4})
        assert context.document_type == "contract"
        assert context.text_quality == 0.4

    def test_missing_fields(self):
        with pytest.raises(ContextValidationError) as exc_info:
            validate_context({"industry": "legal"})
        assert exc_info.value.missing_fields == ["document_type"]

    def test_invalid_value(self):
        with pytest.raises(ContextValidationError):
            validate_context({"industry": "legal", "document_type": "contract", "text_quality": "high"})


class TestToEvidence:
    def test_zero_confidence_is_kept(self):
        rag = RAGContext(
            query="q",
            retrieved_documents=[
                RetrievedDocument(document=Document(id=1, ai_confidence=0.0), similarity=0.6),
                RetrievedDocument(document=Document(id=2, ai_confidence=0.8), similarity=0.6),
                RetrievedDocument(document=Document(id=3), similarity=0.6),
            ],
            average_similarity=0.6,
        )
        evidence = to_evidence(rag)
        assert evidence.historical_confidence == pytest.approx(0.4)
        assert evidence.sample_size == 3

    def test_unknown_confidence_defaults(self):
        rag = RAGContext(
            query="q", retrieved_documents=[RetrievedDocument(document=Document(id=1))]
        )
        assert to_evidence(rag).historical_confidence == 0.7

    def test_none(self):
        assert to_evidence(None) is None


class TestComputeConfidence:
    def test_agreeing_models(self):
        report = ConfidenceEngine().compute_confidence(_make_predictions(), CONTEXT)
        assert report.components.consensus > 0.8
        assert not report.fallback_used
        assert any(b.source == "Model Agreement" for b in report.explanation.confidence_boosts)

    def test_empty_predictions(self):
        report = ConfidenceEngine().compute_confidence([], CONTEXT)
        assert report.components.consensus == 0.6
        assert not report.fallback_used
        assert 0.1 <= report.overall <= 0.98

    def test_accepts_prediction_dicts_and_rag_context(self):
        rag = RAGContext(
            query="q",
            retrieved_documents=[RetrievedDocument(document=Document(id=1, ai_confidence=0.9), similarity=0.8)],
            average_similarity=0.8,
        )
        report = ConfidenceEngine().compute_confidence(
            [{"model": "openai", "confidence": 0.85, "entropy": 0.2}], {"industry": "legal", "document_type": "contract"}, rag
        )
        assert not report.fallback_used
        assert report.explanation.confidence_boosts[0].source == "Historical Context"

    def test_missing_context_field_raises(self):
        with pytest.raises(ContextValidationError):
            ConfidenceEngine().compute_confidence(_make_predictions(), {"document_type": "contract"})

    def test_invalid_prediction_uses_fallback(self):
        report = ConfidenceEngine().compute_confidence(
            [{"model": "openai", "confidence": 1.5}], CONTEXT
        )
        assert report.fallback_used
        assert report.overall == 0.3

    def test_stage_failure_uses_fallback(self, monkeypatch):
        def broken(*args, **kwargs):
            raise ArithmeticError("boom")

        monkeypatch.setattr("ragconf.confidence.engine.quantify_uncertainty", broken)
        report = ConfidenceEngine().compute_confidence(_make_predictions(), CONTEXT)
        assert report.fallback_used
        assert report.overall == 0.8
        assert report.components.consensus == 0.5
        assert report.explanation.recommendations == ["Review results manually due to processing error"]

    def test_stage_failure_names_the_stage(self, monkeypatch, caplog):
        def broken(*args, **kwargs):
            raise ArithmeticError("boom")

        monkeypatch.setattr("ragconf.confidence.engine.quantify_uncertainty", broken)
        engine = ConfidenceEngine()
        with pytest.raises(ConfidenceCalculationFailure) as exc_info:
            engine._run_pipeline(_make_predictions(), CONTEXT, None, None)
        assert exc_info.value.stage == "uncertainty"
        assert isinstance(exc_info.value.original, ArithmeticError)

        with caplog.at_level("WARNING", logger="ragconf.confidence.engine"):
            engine.compute_confidence(_make_predictions(), CONTEXT)
        assert "Stage 'uncertainty' failed: boom" in caplog.text

    def test_levels_follow_overall(self):
        report = ConfidenceEngine().compute_confidence(_make_predictions(), CONTEXT)
        assert report.needs_human_review == (report.overall < 0.6)

    def test_deterministic(self):
        engine = ConfidenceEngine()
        assert engine.compute_confidence(_make_predictions(), CONTEXT) == engine.compute_confidence(
            _make_predictions(), CONTEXT
        )

    def test_outputs_stay_in_range(self):
        rng = random.Random(7)
        engine = ConfidenceEngine.from_settings(EngineSettings.default())
        industries = ["legal", "medical", "finance", "general", "aerospace"]
        for _ in range(200):
            predictions = [
                ModelPrediction(
                    model=rng.choice(["openai", "gemini", "anthropic", "unknown"]),
                    confidence=rng.random(),
                    entropy=rng.random() * 2,
                    features=ModelFeatures(
                        text_quality=rng.random(),
                        structural_clarity=rng.random(),
                        domain_match=rng.random(),
                        processing_time=rng.random() * 20000,
                    ),
                )
                for _ in range(rng.randint(0, 4))
            ]
            context = DocumentContext(
                industry=rng.choice(industries),
                document_type=rng.choice(["contract", "medical_record", "invoice", "memo"]),
                text_quality=rng.random(),
                processing_complexity=rng.random(),
            )
            evidence = HistoricalEvidence(
                similarity=rng.random(), historical_confidence=rng.random(), sample_size=rng.randint(0, 12)
            )
            structure = StructureContext(
                structure_confidence=rng.random(), pattern_match=rng.random(), adaptive_confidence=rng.random()
            )
            report = engine.compute_confidence(predictions, context, evidence, structure)
            assert not report.fallback_used
            assert 0.1 <= report.overall <= 0.98
            assert 0.05 <= report.uncertainty.aleatoric <= 0.8
            assert 0.05 <= report.uncertainty.epistemic <= 0.7


class TestRecordOutcome:
    def test_updates_patterns_and_calibration(self):
        engine = ConfidenceEngine()
        before = engine.compute_confidence(_make_predictions(), CONTEXT).components.historical
        for _ in range(5):
            engine.record_outcome(CONTEXT, predicted=0.9, actual=0.2)

        pattern = engine.patterns.get(CONTEXT)
        assert pattern.sample_size == 5
        assert engine.calibration.bins_for(CONTEXT)[0].sample_count == 5
        after = engine.compute_confidence(_make_predictions(), CONTEXT).components.historical
        assert after < before

    def test_requires_context_fields(self):
        with pytest.raises(ContextValidationError):
            ConfidenceEngine().record_outcome({"industry": "legal"}, 0.9, 1.0)


class TestStatus:
    def test_from_settings(self):
        engine = ConfidenceEngine.from_settings(EngineSettings.default())
        status = engine.status()
        assert status.calibration.bins == 4
        assert status.model_reliability["openai"] == 0.88
        assert status.historical_patterns == 0
