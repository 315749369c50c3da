"""Online calibration of posterior confidence against observed accuracy.

Bins are 0.1 wide and keyed by (industry, document_type). Each observation
updates the running accuracy of the bin holding the predicted value. Bins
are immutable: an update builds a replacement under the key's lock, so a
reader sees either the old bin or the new one.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from ragconf.confidence.locking import KeyedLocks
from ragconf.errors.outcome import FailureKind, StageOutcome
from ragconf.types import CalibrationBin, CalibrationMetrics, DocumentContext, clamp

if TYPE_CHECKING:
    from ragconf.config.schema import CalibrationSeed
    from ragconf.store.sqlite import SQLiteRecordStore

logger = logging.getLogger(__name__)

BIN_WIDTH = 0.1
_BIN_COUNT = 10
_EPSILON = 1e-9


def bin_index(value: float) -> int:
    """Index of the bin containing ``value``; 1.0 falls in the last bin."""
    return min(max(int(math.floor(value * _BIN_COUNT + _EPSILON)), 0), _BIN_COUNT - 1)


def make_bin(index: int, actual_accuracy: float, sample_count: int) -> CalibrationBin:
    lower = index / _BIN_COUNT
    upper = (index + 1) / _BIN_COUNT
    return CalibrationBin(
        lower=lower,
        upper=upper,
        actual_accuracy=actual_accuracy,
        sample_count=sample_count,
        reliability=abs(actual_accuracy - (lower + upper) / 2),
    )


class CalibrationResult(BaseModel):
    value: float
    from_bin: bool = False


class CalibrationStatus(BaseModel):
    bins: int = 0
    keys: list[str] = Field(default_factory=list)
    supported_industries: list[str] = Field(default_factory=list)
    average_reliability: float = 0.7


class CalibrationTable:
    """Calibration bins for every (industry, document_type) seen so far."""

    def __init__(
        self,
        seed: Iterable[CalibrationSeed] = (),
        min_samples: int = 10,
        record_store: SQLiteRecordStore | None = None,
    ) -> None:
        self._bins: dict[tuple[str, str], dict[int, CalibrationBin]] = {}
        self._locks = KeyedLocks()
        self._min_samples = min_samples
        self._record_store = record_store

        for row in seed:
            index = bin_index(row.lower)
            self._bins.setdefault((row.industry, row.document_type), {})[index] = make_bin(
                index, row.actual_accuracy, row.sample_count
            )

        # Persisted bins override the seed
        if record_store is not None:
            for key, bins in record_store.load_bins().items():
                current = self._bins.setdefault(key, {})
                for b in bins:
                    current[bin_index(b.lower)] = b

    @property
    def min_samples(self) -> int:
        return self._min_samples

    def bins_for(self, context: DocumentContext) -> list[CalibrationBin]:
        bins = self._bins.get(context.key, {})
        return [bins[i] for i in sorted(bins)]

    def lookup(self, context: DocumentContext, raw: float) -> StageOutcome[CalibrationBin]:
        """The bin for ``raw`` if it has enough samples to trust."""
        found = self._bins.get(context.key, {}).get(bin_index(raw))
        if found is None or found.sample_count < self._min_samples:
            return StageOutcome.failed(
                "calibration_lookup",
                FailureKind.CALIBRATION_LOOKUP_MISS,
                f"no bin with {self._min_samples}+ samples for {context.key} at {raw:.3f}",
            )
        return StageOutcome.success("calibration_lookup", found)

    def calibrate(
        self,
        raw: float,
        context: DocumentContext,
        total_uncertainty: float,
    ) -> CalibrationResult:
        outcome = self.lookup(context, raw)
        if not outcome.ok:
            # A miss is not an error: apply the default correction
            return CalibrationResult(value=clamp(raw - 0.1 * total_uncertainty, 0.1, 0.95))

        found = outcome.unwrap()
        adjusted = raw + 0.3 * (found.actual_accuracy - raw) - 0.15 * total_uncertainty
        return CalibrationResult(value=clamp(adjusted, 0.1, 0.95), from_bin=True)

    def record(self, context: DocumentContext, predicted: float, actual: float) -> CalibrationBin:
        """Fold one observed outcome into the bin containing ``predicted``."""
        key = context.key
        index = bin_index(clamp(predicted, 0.0, 1.0))
        actual = clamp(actual, 0.0, 1.0)

        with self._locks.get(key):
            bins = self._bins.get(key, {})
            current = bins.get(index)
            if current is None:
                updated = make_bin(index, actual, 1)
            else:
                n = current.sample_count + 1
                accuracy = (current.actual_accuracy * current.sample_count + actual) / n
                updated = make_bin(index, accuracy, n)
            self._bins[key] = {**bins, index: updated}
            if self._record_store is not None:
                self._record_store.save_bin(key[0], key[1], updated)

        logger.debug(
            "Calibration %s bin [%.1f, %.1f) -> accuracy %.3f over %d samples",
            key,
            updated.lower,
            updated.upper,
            updated.actual_accuracy,
            updated.sample_count,
        )
        return updated

    def metrics(self, context: DocumentContext) -> CalibrationMetrics:
        """Sample-weighted reliability, sharpness and Brier score for a key."""
        bins = self.bins_for(context)
        total = sum(b.sample_count for b in bins)
        if not bins or total <= 0:
            return CalibrationMetrics()

        reliability = sum(b.reliability * b.sample_count for b in bins) / total
        sharpness = sum(abs(b.midpoint - 0.5) * 2 * b.sample_count for b in bins) / total
        brier = sum((b.midpoint - b.actual_accuracy) ** 2 * b.sample_count for b in bins) / total
        return CalibrationMetrics(reliability=reliability, sharpness=sharpness, brier=brier)

    def status(self) -> CalibrationStatus:
        snapshot = dict(self._bins)
        all_bins = [b for bins in snapshot.values() for b in bins.values()]
        average = sum(b.reliability for b in all_bins) / len(all_bins) if all_bins else 0.7
        return CalibrationStatus(
            bins=len(all_bins),
            keys=sorted(f"{industry}/{doc_type}" for industry, doc_type in snapshot),
            supported_industries=sorted({industry for industry, _ in snapshot}),
            average_reliability=average,
        )
