"""Exception taxonomy and tagged stage outcomes."""

from ragconf.errors.exceptions import (
    ConfidenceCalculationFailure,
    ContextValidationError,
    IndexingFailure,
    RagConfError,
    RetrievalFailure,
)
from ragconf.errors.outcome import FailureKind, StageOutcome, arun_stage, run_stage

__all__ = [
    "RagConfError",
    "IndexingFailure",
    "RetrievalFailure",
    "ConfidenceCalculationFailure",
    "ContextValidationError",
    "FailureKind",
    "StageOutcome",
    "run_stage",
    "arun_stage",
]
