"""Word-window chunking and chunk metadata extraction."""

from __future__ import annotations

from datetime import datetime, timezone

from ragconf.types import ChunkMetadata, Document


def split_into_windows(
    text: str,
    chunk_words: int = 1000,
    overlap: int = 200,
    min_chars: int = 50,
) -> list[str]:
    """Split text into overlapping word windows.

    Windows whose stripped text is not longer than ``min_chars`` are
    dropped. If none qualifies the whole text is returned as one chunk.
    """
    if overlap >= chunk_words:
        raise ValueError("overlap must be smaller than chunk_words")

    words = text.split()
    step = chunk_words - overlap
    windows: list[str] = []
    for start in range(0, len(words), step):
        window = " ".join(words[start : start + chunk_words])
        if len(window.strip()) > min_chars:
            windows.append(window)
    return windows or [text]


def chunk_id_for(document_id: int, index: int) -> str:
    return f"{document_id}_chunk_{index}"


def extract_entity_types(document: Document) -> set[str]:
    """Entity types from the document type, the industry and extracted entities."""
    entity_types: set[str] = set()
    if document.document_type:
        entity_types.add(document.document_type)
    entity_types.add(document.industry)

    entities = document.extracted_data.get("entities")
    if isinstance(entities, list):
        for entity in entities:
            if isinstance(entity, dict) and entity.get("type"):
                entity_types.add(str(entity["type"]))
    return entity_types


def build_metadata(document: Document) -> ChunkMetadata:
    created = document.created_at or datetime.now(timezone.utc)
    return ChunkMetadata(
        industry=document.industry,
        document_type=document.document_type or "unknown",
        entity_types=extract_entity_types(document),
        confidence=document.ai_confidence if document.ai_confidence is not None else 0.7,
        created_at=created.isoformat(),
    )
