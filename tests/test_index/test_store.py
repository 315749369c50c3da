"""Tests for the snapshot chunk store."""

import threading

import pytest

from ragconf.index.store import ChunkStore
from ragconf.types import Chunk, ChunkMetadata


def _make_chunk(doc_id: int, index: int = 0, industry: str = "finance") -> Chunk:
    return Chunk(
        document_id=doc_id,
        chunk_id=f"{doc_id}_chunk_{index}",
        text=f"chunk {index} of document {doc_id}",
        vector=[1.0, 0.0],
        metadata=ChunkMetadata(industry=industry),
    )


class TestChunkStore:
    def test_starts_empty_and_unindexed(self):
        store = ChunkStore()
        assert not store.is_indexed
        assert store.snapshot().chunk_count == 0

    def test_put_document(self):
        store = ChunkStore()
        store.put_document(1, [_make_chunk(1, 0), _make_chunk(1, 1)])
        snap = store.snapshot()
        assert snap.document_count == 1
        assert [c.chunk_id for c in snap.chunks] == ["1_chunk_0", "1_chunk_1"]
        assert len(snap.vectors) == 2

    def test_snapshot_is_unaffected_by_later_writes(self):
        store = ChunkStore()
        store.put_document(1, [_make_chunk(1)])
        before = store.snapshot()
        store.put_document(2, [_make_chunk(2)])
        assert before.document_count == 1
        assert store.snapshot().document_count == 2
        assert store.snapshot().version > before.version

    def test_replace_document(self):
        store = ChunkStore()
        store.put_document(1, [_make_chunk(1, 0), _make_chunk(1, 1)])
        store.put_document(1, [_make_chunk(1, 5)])
        assert [c.chunk_id for c in store.snapshot().chunks] == ["1_chunk_5"]

    def test_documents_ordered_by_id(self):
        store = ChunkStore()
        store.put_many({3: [_make_chunk(3)], 1: [_make_chunk(1)]})
        assert list(store.snapshot().documents) == [1, 3]

    def test_remove_document(self):
        store = ChunkStore()
        store.put_document(1, [_make_chunk(1)])
        assert store.remove_document(1)
        assert not store.remove_document(1)
        assert store.snapshot().chunk_count == 0

    def test_snapshot_mapping_is_read_only(self):
        store = ChunkStore()
        store.put_document(1, [_make_chunk(1)])
        documents = store.snapshot().documents
        with pytest.raises(TypeError):
            documents[2] = ()  # type: ignore[index]

    def test_status(self):
        store = ChunkStore()
        store.put_many({
            1: [_make_chunk(1, 0), _make_chunk(1, 1)],
            2: [_make_chunk(2, 0, industry="legal")],
        })
        store.mark_indexed()
        status = store.status()
        assert status.indexed
        assert status.documents == 2
        assert status.chunks == 3
        assert status.average_chunks_per_document == 1.5
        assert status.industries == {"finance": 2, "legal": 1}

    def test_clear(self):
        store = ChunkStore()
        store.put_document(1, [_make_chunk(1)])
        store.mark_indexed()
        store.clear()
        assert not store.is_indexed
        assert store.snapshot().chunk_count == 0

    def test_concurrent_writers_lose_nothing(self):
        store = ChunkStore()

        def writer(start: int) -> None:
            for doc_id in range(start, start + 50):
                store.put_document(doc_id, [_make_chunk(doc_id)])

        threads = [threading.Thread(target=writer, args=(i * 100,)) for i in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert store.snapshot().document_count == 200
