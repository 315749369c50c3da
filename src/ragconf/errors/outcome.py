"""Tagged stage outcomes: a success value or a named failure kind.

Public operations branch on ``outcome.ok`` to select their degraded path
instead of relying on an enclosing exception handler.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FailureKind(StrEnum):
    INDEXING = "indexing"
    RETRIEVAL = "retrieval"
    CONFIDENCE_CALCULATION = "confidence_calculation"
    CALIBRATION_LOOKUP_MISS = "calibration_lookup_miss"


@dataclass(frozen=True)
class StageOutcome(Generic[T]):
    """Result of one pipeline stage."""

    stage: str
    value: T | None = None
    failure: FailureKind | None = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, stage: str, value: T) -> StageOutcome[T]:
        return cls(stage=stage, value=value)

    @classmethod
    def failed(cls, stage: str, kind: FailureKind, detail: str = "") -> StageOutcome[T]:
        return cls(stage=stage, failure=kind, detail=detail)

    def unwrap(self) -> T:
        """Return the value; only valid on a successful outcome."""
        if self.failure is not None:
            raise ValueError(f"Stage '{self.stage}' failed ({self.failure}): {self.detail}")
        return self.value  # type: ignore[return-value]


def run_stage(
    stage: str,
    kind: FailureKind,
    fn: Callable[..., T],
    *args: Any,
    **kwargs: Any,
) -> StageOutcome[T]:
    """Run a synchronous stage, converting any exception into a tagged failure."""
    try:
        return StageOutcome.success(stage, fn(*args, **kwargs))
    except Exception as exc:
        logger.warning("Stage '%s' failed (%s): %s", stage, kind.value, exc)
        return StageOutcome.failed(stage, kind, f"{type(exc).__name__}: {exc}")


async def arun_stage(
    stage: str,
    kind: FailureKind,
    fn: Callable[..., Awaitable[T]],
    *args: Any,
    **kwargs: Any,
) -> StageOutcome[T]:
    """Async counterpart of run_stage()."""
    try:
        return StageOutcome.success(stage, await fn(*args, **kwargs))
    except Exception as exc:
        logger.warning("Stage '%s' failed (%s): %s", stage, kind.value, exc)
        return StageOutcome.failed(stage, kind, f"{type(exc).__name__}: {exc}")
