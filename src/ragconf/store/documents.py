"""Document store boundary and an in-memory implementation."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import yaml

from ragconf.types import Document, EmbeddingRecord

if TYPE_CHECKING:
    from ragconf.store.sqlite import SQLiteRecordStore

logger = logging.getLogger(__name__)


@runtime_checkable
class DocumentStore(Protocol):
    """What the engine needs from the system that owns documents."""

    async def list_documents(self) -> list[Document]: ...

    async def get_document(self, document_id: int) -> Document | None: ...

    async def list_embedding_records(self) -> list[EmbeddingRecord]: ...

    async def save_embedding_record(self, record: EmbeddingRecord) -> None: ...


class InMemoryDocumentStore:
    """Dict-backed store; embedding records optionally go to SQLite."""

    def __init__(
        self,
        documents: list[Document] | None = None,
        record_store: SQLiteRecordStore | None = None,
    ) -> None:
        self._documents: dict[int, Document] = {}
        self._records: dict[int, EmbeddingRecord] = {}
        self._record_store = record_store
        for doc in documents or []:
            self.add(doc)

    @classmethod
    def from_file(
        cls,
        path: Path,
        record_store: SQLiteRecordStore | None = None,
    ) -> InMemoryDocumentStore:
        return cls(load_documents_file(path), record_store=record_store)

    def add(self, document: Document) -> None:
        self._documents[document.id] = document

    def __len__(self) -> int:
        return len(self._documents)

    async def list_documents(self) -> list[Document]:
        return [self._documents[k] for k in sorted(self._documents)]

    async def get_document(self, document_id: int) -> Document | None:
        return self._documents.get(document_id)

    async def list_embedding_records(self) -> list[EmbeddingRecord]:
        if self._record_store is not None:
            return self._record_store.load_records()
        return [self._records[k] for k in sorted(self._records)]

    async def save_embedding_record(self, record: EmbeddingRecord) -> None:
        if self._record_store is not None:
            self._record_store.save_record(record)
        else:
            self._records[record.document_id] = record


def load_documents_file(path: Path) -> list[Document]:
    """Load documents from a JSON or YAML corpus file.

    The file holds either a list of documents or a mapping with a
    ``documents`` list. Keys may be snake_case or camelCase.
    """
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in (".yaml", ".yml"):
        data: Any = yaml.safe_load(text)
    else:
        data = json.loads(text)

    if isinstance(data, dict):
        data = data.get("documents", [])
    if not isinstance(data, list):
        raise ValueError(f"Corpus file {path} must contain a list of documents")

    documents = [Document.model_validate(_normalize_keys(item)) for item in data]
    logger.debug("Loaded %d documents from %s", len(documents), path)
    return documents


_CAMEL_KEYS = {
    "documentType": "document_type",
    "extractedText": "extracted_text",
    "extractedData": "extracted_data",
    "aiConfidence": "ai_confidence",
    "createdAt": "created_at",
}


def _normalize_keys(item: dict[str, Any]) -> dict[str, Any]:
    return {_CAMEL_KEYS.get(k, k): v for k, v in item.items()}
