"""Confidence scoring with Bayesian aggregation and online calibration."""

from ragconf.confidence.bayesian import aggregate, component_weights, domain_prior, posterior
from ragconf.confidence.calibration import CalibrationTable, bin_index
from ragconf.confidence.components import compute_components
from ragconf.confidence.engine import ConfidenceEngine, validate_context
from ragconf.confidence.explanation import explain
from ragconf.confidence.patterns import HistoricalPattern, HistoricalPatternStore
from ragconf.confidence.reliability import ModelReliabilityTable
from ragconf.confidence.report import fallback_report, needs_human_review, score_to_level
from ragconf.confidence.uncertainty import quantify_uncertainty

__all__ = [
    "CalibrationTable",
    "ConfidenceEngine",
    "HistoricalPattern",
    "HistoricalPatternStore",
    "ModelReliabilityTable",
    "aggregate",
    "bin_index",
    "component_weights",
    "compute_components",
    "domain_prior",
    "explain",
    "fallback_report",
    "needs_human_review",
    "posterior",
    "quantify_uncertainty",
    "score_to_level",
    "validate_context",
]
