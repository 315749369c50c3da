"""Chunk index: windowing, snapshot store, record codec and builder."""

from ragconf.index.builder import BuildReport, IndexBuilder
from ragconf.index.chunking import extract_entity_types, split_into_windows
from ragconf.index.records import chunks_to_record, record_to_chunks
from ragconf.index.store import ChunkStore, IndexSnapshot, IndexStatus

__all__ = [
    "BuildReport",
    "ChunkStore",
    "IndexBuilder",
    "IndexSnapshot",
    "IndexStatus",
    "chunks_to_record",
    "extract_entity_types",
    "record_to_chunks",
    "split_into_windows",
]
