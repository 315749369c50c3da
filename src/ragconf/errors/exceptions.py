"""Custom exception hierarchy for ragconf."""

from __future__ import annotations

from typing import Any


class RagConfError(Exception):
    """Base exception for all ragconf errors."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        super().__init__(message)
        self.message = message


class IndexingFailure(RagConfError):
    """A single document could not be chunked or vectorized.

    Logged and skipped; the rest of the corpus build continues.
    """

    def __init__(
        self,
        message: str = "",
        document_id: int | None = None,
        original: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.document_id = document_id
        self.original = original


class RetrievalFailure(RagConfError):
    """Ranking could not complete; the caller receives an empty RAGContext."""

    def __init__(
        self,
        message: str = "",
        query: str = "",
        original: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.query = query
        self.original = original


class ConfidenceCalculationFailure(RagConfError):
    """A confidence stage failed; the caller receives the fallback report."""

    def __init__(
        self,
        message: str = "",
        stage: str = "",
        original: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.stage = stage
        self.original = original


class ContextValidationError(RagConfError):
    """The document context is missing a required field.

    This is a caller contract violation and the only error raised by
    compute_confidence().
    """

    def __init__(
        self,
        message: str = "",
        missing_fields: list[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.missing_fields = missing_fields or []
