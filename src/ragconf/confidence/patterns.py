"""Learned per-(industry, document type) accuracy patterns."""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict

from ragconf.confidence.locking import KeyedLocks
from ragconf.types import DocumentContext, clamp

logger = logging.getLogger(__name__)


class HistoricalPattern(BaseModel):
    """Running means of predicted confidence and observed accuracy."""

    model_config = ConfigDict(frozen=True)

    sample_size: int = 0
    accuracy_rate: float = 0.0
    average_confidence: float = 0.0

    def observe(self, predicted: float, actual: float) -> HistoricalPattern:
        n = self.sample_size + 1
        return HistoricalPattern(
            sample_size=n,
            accuracy_rate=(self.accuracy_rate * self.sample_size + actual) / n,
            average_confidence=(self.average_confidence * self.sample_size + predicted) / n,
        )


class HistoricalPatternStore:
    """Patterns keyed by (industry, document_type), fed by outcome feedback."""

    def __init__(self) -> None:
        self._patterns: dict[tuple[str, str], HistoricalPattern] = {}
        self._locks = KeyedLocks()

    def get(self, context: DocumentContext) -> HistoricalPattern | None:
        return self._patterns.get(context.key)

    def record(self, context: DocumentContext, predicted: float, actual: float) -> HistoricalPattern:
        key = context.key
        with self._locks.get(key):
            current = self._patterns.get(key, HistoricalPattern())
            updated = current.observe(clamp(predicted, 0.0, 1.0), clamp(actual, 0.0, 1.0))
            self._patterns[key] = updated
        logger.debug("Pattern %s now has %d samples", key, updated.sample_size)
        return updated

    def __len__(self) -> int:
        return len(self._patterns)
