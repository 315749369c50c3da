"""Tests for the document store boundary."""

import json

import pytest

from ragconf.store.documents import DocumentStore, InMemoryDocumentStore, load_documents_file
from ragconf.store.sqlite import SQLiteRecordStore
from ragconf.types import Document, EmbeddingRecord, EmbeddingRecordChunk


def _make_record(doc_id: int) -> EmbeddingRecord:
    return EmbeddingRecord(
        document_id=doc_id,
        chunks=[EmbeddingRecordChunk(chunk_id=f"{doc_id}_chunk_0", text="text", vector=[1.0])],
    )


class TestInMemoryDocumentStore:
    def test_satisfies_protocol(self):
        assert isinstance(InMemoryDocumentStore(), DocumentStore)

    async def test_documents_sorted_by_id(self):
        store = InMemoryDocumentStore([Document(id=3), Document(id=1)])
        assert [d.id for d in await store.list_documents()] == [1, 3]
        assert len(store) == 2

    async def test_get_document(self):
        store = InMemoryDocumentStore([Document(id=1, industry="legal")])
        assert (await store.get_document(1)).industry == "legal"
        assert await store.get_document(2) is None

    async def test_records_in_memory(self):
        store = InMemoryDocumentStore()
        await store.save_embedding_record(_make_record(2))
        await store.save_embedding_record(_make_record(1))
        assert [r.document_id for r in await store.list_embedding_records()] == [1, 2]

    async def test_records_in_sqlite(self, tmp_path):
        records = SQLiteRecordStore(tmp_path / "db.sqlite")
        store = InMemoryDocumentStore(record_store=records)
        await store.save_embedding_record(_make_record(5))
        assert records.record_count == 1
        reopened = InMemoryDocumentStore(record_store=records)
        assert [r.document_id for r in await reopened.list_embedding_records()] == [5]
        records.close()


class TestLoadDocumentsFile:
    def test_json_mapping_with_camel_case(self, tmp_path):
        path = tmp_path / "corpus.json"
        path.write_text(json.dumps({
            "documents": [{"id": 1, "industry": "legal", "documentType": "contract", "extractedText": "terms", "aiConfidence": 0.9}]
        }))
        [doc] = load_documents_file(path)
        assert doc.document_type == "contract"
        assert doc.extracted_text == "terms"
        assert doc.ai_confidence == 0.9

    def test_yaml_list(self, tmp_path):
        path = tmp_path / "corpus.yaml"
        path.write_text("- id: 1\n  industry: medical\n- id: 2\n")
        docs = load_documents_file(path)
        assert [d.industry for d in docs] == ["medical", "general"]

    def test_rejects_scalar(self, tmp_path):
        path = tmp_path / "corpus.json"
        path.write_text("42")
        with pytest.raises(ValueError):
            load_documents_file(path)

    def test_from_file(self, corpus_file):
        assert len(InMemoryDocumentStore.from_file(corpus_file)) == 5
