"""Conversion between indexed chunks and persisted embedding records."""

from __future__ import annotations

from collections.abc import Sequence

from ragconf.types import EMBEDDING_ANALYSIS_TYPE, Chunk, EmbeddingRecord, EmbeddingRecordChunk


def chunks_to_record(
    document_id: int,
    chunks: Sequence[Chunk],
    confidence_score: float = 0.7,
    text_prefix_chars: int = 500,
) -> EmbeddingRecord:
    """Build the durable record.

    Chunk text is truncated to a prefix; the stored term counts keep the
    full window so lexical scoring survives a reload.
    """
    return EmbeddingRecord(
        document_id=document_id,
        analysis_type=EMBEDDING_ANALYSIS_TYPE,
        chunks=[
            EmbeddingRecordChunk(
                chunk_id=c.chunk_id,
                text=c.text[:text_prefix_chars],
                vector=list(c.vector),
                metadata=c.metadata,
                term_counts=dict(c.term_counts),
            )
            for c in chunks
        ],
        confidence_score=confidence_score,
    )


def record_to_chunks(record: EmbeddingRecord) -> list[Chunk]:
    """Rehydrate chunks without re-vectorizing."""
    return [
        Chunk(
            document_id=record.document_id,
            chunk_id=rc.chunk_id,
            text=rc.text,
            vector=list(rc.vector),
            metadata=rc.metadata,
            term_counts=dict(rc.term_counts),
        )
        for rc in record.chunks
    ]


def is_embedding_record(record: EmbeddingRecord) -> bool:
    return record.analysis_type == EMBEDDING_ANALYSIS_TYPE and bool(record.chunks)
