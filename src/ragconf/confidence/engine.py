"""Confidence engine pipeline and its fallback branch."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any, TypeVar

from pydantic import BaseModel, Field, ValidationError

from ragconf.confidence.bayesian import aggregate
from ragconf.confidence.calibration import CalibrationStatus, CalibrationTable
from ragconf.confidence.components import compute_components
from ragconf.confidence.explanation import explain
from ragconf.confidence.patterns import HistoricalPatternStore
from ragconf.confidence.reliability import ModelReliabilityTable
from ragconf.confidence.report import fallback_report, needs_human_review, score_to_level
from ragconf.confidence.uncertainty import quantify_uncertainty
from ragconf.config.schema import EngineSettings
from ragconf.errors.exceptions import ConfidenceCalculationFailure, ContextValidationError
from ragconf.errors.outcome import FailureKind, StageOutcome, run_stage
from ragconf.types import (
    ConfidenceReport,
    DocumentContext,
    HistoricalEvidence,
    ModelPrediction,
    RAGContext,
    StructureContext,
    clamp,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_REQUIRED_FIELDS = ("industry", "document_type")
_CAMEL_ALIASES = {
    "documentType": "document_type",
    "textQuality": "text_quality",
    "processingComplexity": "processing_complexity",
}

_STAGE_KIND = FailureKind.CONFIDENCE_CALCULATION


class ConfidenceEngineStatus(BaseModel):
    calibration: CalibrationStatus = Field(default_factory=CalibrationStatus)
    model_reliability: dict[str, float] = Field(default_factory=dict)
    historical_patterns: int = 0


def validate_context(document_context: DocumentContext | Mapping[str, Any]) -> DocumentContext:
    """Check the required context fields once, before any computation."""
    if isinstance(document_context, DocumentContext):
        return document_context

    data = {_CAMEL_ALIASES.get(k, k): v for k, v in dict(document_context).items()}
    missing = [f for f in _REQUIRED_FIELDS if not data.get(f)]
    if missing:
        raise ContextValidationError(
            f"Document context is missing required fields: {', '.join(missing)}",
            missing_fields=missing,
        )
    try:
        return DocumentContext.model_validate(data)
    except ValidationError as exc:
        raise ContextValidationError(f"Invalid document context: {exc}") from exc


def to_evidence(rag_context: HistoricalEvidence | RAGContext | None) -> HistoricalEvidence | None:
    if rag_context is None or isinstance(rag_context, HistoricalEvidence):
        return rag_context
    return HistoricalEvidence.from_rag_context(rag_context)


class ConfidenceEngine:
    """Orchestrate components → aggregation → uncertainty → calibration → explanation.

    ``compute_confidence`` is total: the first failing stage raises
    ConfidenceCalculationFailure, which becomes a tagged outcome that selects
    the fallback report. The only exception it raises is ContextValidationError
    for a context missing required fields.
    """

    def __init__(
        self,
        calibration: CalibrationTable | None = None,
        patterns: HistoricalPatternStore | None = None,
        reliability: ModelReliabilityTable | None = None,
        pattern_min_samples: int = 5,
    ) -> None:
        self._calibration = calibration or CalibrationTable()
        self._patterns = patterns or HistoricalPatternStore()
        self._reliability = reliability or ModelReliabilityTable()
        self._pattern_min_samples = pattern_min_samples

    @classmethod
    def from_settings(cls, settings: EngineSettings, record_store: Any = None) -> ConfidenceEngine:
        return cls(
            calibration=CalibrationTable(
                seed=settings.calibration_seed,
                min_samples=settings.calibration_min_samples,
                record_store=record_store,
            ),
            reliability=ModelReliabilityTable(
                settings.model_reliability, default=settings.unknown_model_reliability
            ),
            pattern_min_samples=settings.pattern_min_samples,
        )

    @property
    def calibration(self) -> CalibrationTable:
        return self._calibration

    @property
    def patterns(self) -> HistoricalPatternStore:
        return self._patterns

    @property
    def reliability(self) -> ModelReliabilityTable:
        return self._reliability

    def compute_confidence(
        self,
        predictions: Sequence[ModelPrediction],
        document_context: DocumentContext | Mapping[str, Any],
        rag_context: HistoricalEvidence | RAGContext | None = None,
        structure_context: StructureContext | None = None,
    ) -> ConfidenceReport:
        context = validate_context(document_context)

        prepared = run_stage("inputs", _STAGE_KIND, self._prepare, predictions, rag_context)
        if not prepared.ok:
            return self._fallback([], context, prepared)
        preds, evidence = prepared.unwrap()

        outcome = run_stage(
            "pipeline",
            _STAGE_KIND,
            self._run_pipeline,
            preds,
            context,
            evidence,
            structure_context,
        )
        if not outcome.ok:
            return self._fallback(preds, context, outcome)

        report = outcome.unwrap()
        logger.debug(
            "Confidence for %s/%s: %.3f (posterior %.3f, uncertainty %.3f)",
            context.industry,
            context.document_type,
            report.overall,
            report.posterior,
            report.uncertainty.total,
        )
        return report

    def record_outcome(
        self,
        document_context: DocumentContext | Mapping[str, Any],
        predicted: float,
        actual: float,
    ) -> None:
        """Feed an observed accuracy back into calibration and patterns."""
        context = validate_context(document_context)
        self._calibration.record(context, predicted, actual)
        self._patterns.record(context, predicted, actual)

    def status(self) -> ConfidenceEngineStatus:
        return ConfidenceEngineStatus(
            calibration=self._calibration.status(),
            model_reliability=self._reliability.as_dict(),
            historical_patterns=len(self._patterns),
        )

    def _run_pipeline(
        self,
        predictions: list[ModelPrediction],
        context: DocumentContext,
        evidence: HistoricalEvidence | None,
        structure: StructureContext | None,
    ) -> ConfidenceReport:
        """Run every scoring stage; raises ConfidenceCalculationFailure naming the stage."""
        components = _stage(
            "components",
            compute_components,
            predictions,
            context,
            self._reliability,
            evidence=evidence,
            structure=structure,
            pattern=self._patterns.get(context),
            min_pattern_samples=self._pattern_min_samples,
        )
        aggregation = _stage("aggregation", aggregate, components, predictions, context)
        uncertainty = _stage("uncertainty", quantify_uncertainty, predictions, components, context)
        calibrated = _stage(
            "calibration",
            self._calibration.calibrate,
            aggregation.overall,
            context,
            uncertainty.total,
        )
        metrics = _stage("metrics", self._calibration.metrics, context)
        explanation = _stage(
            "explanation",
            explain,
            components,
            predictions,
            uncertainty,
            evidence=evidence,
            structure=structure,
        )

        overall = clamp(calibrated.value, 0.1, 0.98)
        return _stage(
            "report",
            ConfidenceReport,
            overall=overall,
            posterior=aggregation.overall,
            level=score_to_level(overall),
            needs_human_review=needs_human_review(overall),
            components=components,
            uncertainty=uncertainty,
            calibration=metrics,
            explanation=explanation,
            calibrated_from_bin=calibrated.from_bin,
        )

    @staticmethod
    def _prepare(
        predictions: Sequence[ModelPrediction | Mapping[str, Any]],
        rag_context: HistoricalEvidence | RAGContext | None,
    ) -> tuple[list[ModelPrediction], HistoricalEvidence | None]:
        preds = [
            p if isinstance(p, ModelPrediction) else ModelPrediction.model_validate(p)
            for p in predictions
        ]
        return preds, to_evidence(rag_context)

    @staticmethod
    def _fallback(
        predictions: list[ModelPrediction],
        context: DocumentContext,
        failed: StageOutcome[Any],
    ) -> ConfidenceReport:
        logger.warning(
            "Using fallback confidence for %s/%s (%s): %s",
            context.industry,
            context.document_type,
            failed.failure,
            failed.detail,
        )
        return fallback_report(predictions, context)


def _stage(name: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    try:
        return fn(*args, **kwargs)
    except Exception as exc:
        raise ConfidenceCalculationFailure(
            f"Stage '{name}' failed: {exc}", stage=name, original=exc
        ) from exc
