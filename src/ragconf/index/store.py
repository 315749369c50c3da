"""In-process chunk index published as immutable snapshots.

Writers build a complete new snapshot under a lock and swap the reference;
readers take the current reference once and work against it, so they never
see a document with a partially written chunk list.
"""

from __future__ import annotations

import threading
from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

import numpy as np
from pydantic import BaseModel, Field

from ragconf.types import Chunk


@dataclass(frozen=True)
class IndexSnapshot:
    """Read-only view of every indexed chunk at one point in time."""

    documents: Mapping[int, tuple[Chunk, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    chunks: tuple[Chunk, ...] = ()
    vectors: tuple[np.ndarray, ...] = ()
    version: int = 0

    @classmethod
    def build(cls, documents: Mapping[int, tuple[Chunk, ...]], version: int) -> IndexSnapshot:
        frozen = MappingProxyType(dict(sorted(documents.items())))
        chunks = tuple(c for doc_chunks in frozen.values() for c in doc_chunks)
        vectors = tuple(np.asarray(c.vector, dtype=np.float64) for c in chunks)
        return cls(documents=frozen, chunks=chunks, vectors=vectors, version=version)

    @property
    def document_count(self) -> int:
        return len(self.documents)

    @property
    def chunk_count(self) -> int:
        return len(self.chunks)


class IndexStatus(BaseModel):
    indexed: bool = False
    documents: int = 0
    chunks: int = 0
    average_chunks_per_document: float = 0.0
    industries: dict[str, int] = Field(default_factory=dict)


class ChunkStore:
    """Owns the chunk index for the lifetime of an engine."""

    def __init__(self) -> None:
        self._snapshot = IndexSnapshot()
        self._write_lock = threading.Lock()
        self._indexed = False

    @property
    def is_indexed(self) -> bool:
        return self._indexed

    def snapshot(self) -> IndexSnapshot:
        return self._snapshot

    def put_document(self, document_id: int, chunks: Iterable[Chunk]) -> None:
        """Add or replace all chunks of one document."""
        self.put_many({document_id: tuple(chunks)})

    def put_many(self, documents: Mapping[int, Iterable[Chunk]]) -> None:
        with self._write_lock:
            merged = dict(self._snapshot.documents)
            for document_id, chunks in documents.items():
                merged[document_id] = tuple(chunks)
            self._snapshot = IndexSnapshot.build(merged, self._snapshot.version + 1)

    def remove_document(self, document_id: int) -> bool:
        with self._write_lock:
            if document_id not in self._snapshot.documents:
                return False
            merged = dict(self._snapshot.documents)
            del merged[document_id]
            self._snapshot = IndexSnapshot.build(merged, self._snapshot.version + 1)
            return True

    def mark_indexed(self) -> None:
        self._indexed = True

    def clear(self) -> None:
        with self._write_lock:
            self._snapshot = IndexSnapshot(version=self._snapshot.version + 1)
            self._indexed = False

    def status(self) -> IndexStatus:
        snap = self._snapshot
        industries = Counter(c.metadata.industry for c in snap.chunks)
        avg = snap.chunk_count / snap.document_count if snap.document_count else 0.0
        return IndexStatus(
            indexed=self._indexed,
            documents=snap.document_count,
            chunks=snap.chunk_count,
            average_chunks_per_document=avg,
            industries=dict(sorted(industries.items())),
        )
