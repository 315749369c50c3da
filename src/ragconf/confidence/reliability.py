"""Per-model reliability used by the technical component."""

from __future__ import annotations

import threading
from collections.abc import Mapping

from ragconf.config import defaults


class ModelReliabilityTable:
    """Reliability score per upstream model name.

    Lookups are case-insensitive. A name like ``openai:gpt-4o`` falls back
    to its provider prefix before the default applies.
    """

    def __init__(
        self,
        scores: Mapping[str, float] | None = None,
        default: float = defaults.DEFAULT_UNKNOWN_MODEL_RELIABILITY,
    ) -> None:
        source = defaults.DEFAULT_MODEL_RELIABILITY if scores is None else scores
        self._scores = {name.lower(): value for name, value in source.items()}
        self._default = default
        self._lock = threading.Lock()

    @property
    def default(self) -> float:
        return self._default

    def get(self, model: str) -> float:
        name = model.lower()
        scores = self._scores
        if name in scores:
            return scores[name]
        provider = name.split(":", 1)[0].split("/", 1)[0]
        return scores.get(provider, self._default)

    def set(self, model: str, reliability: float) -> None:
        with self._lock:
            self._scores = {**self._scores, model.lower(): reliability}

    def as_dict(self) -> dict[str, float]:
        return dict(self._scores)
