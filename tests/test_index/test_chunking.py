"""Tests for word-window chunking and chunk metadata."""

from datetime import datetime, timezone

import pytest

from ragconf.index.chunking import (
    build_metadata,
    chunk_id_for,
    extract_entity_types,
    split_into_windows,
)
from ragconf.types import Document


def _words(n: int) -> str:
    return " ".join(f"word{i}" for i in range(n))


class TestSplitIntoWindows:
    def test_overlapping_windows(self):
        windows = split_into_windows(_words(2500), chunk_words=1000, overlap=200)
        assert len(windows) == 4
        assert windows[0].split()[0] == "word0"
        assert windows[1].split()[0] == "word800"
        assert windows[1].split()[:200] == windows[0].split()[800:]

    def test_short_window_dropped(self):
        windows = split_into_windows(_words(12), chunk_words=10, overlap=2, min_chars=30)
        # "word8 word9 word10 word11" is under the minimum
        assert len(windows) == 1
        assert windows[0].split()[-1] == "word9"

    def test_falls_back_to_whole_text(self):
        assert split_into_windows("too short") == ["too short"]

    def test_empty_text(self):
        assert split_into_windows("") == [""]

    def test_rejects_bad_overlap(self):
        with pytest.raises(ValueError):
            split_into_windows("text", chunk_words=10, overlap=10)


class TestChunkId:
    def test_format(self):
        assert chunk_id_for(42, 3) == "42_chunk_3"


class TestEntityTypes:
    def test_collects_all_sources(self):
        doc = Document(
            id=1,
            industry="medical",
            document_type="medical_record",
            extracted_data={"entities": [{"type": "patient"}, {"type": "medication"}, {"name": "x"}]},
        )
        assert extract_entity_types(doc) == {"medical", "medical_record", "patient", "medication"}

    def test_ignores_malformed_entities(self):
        doc = Document(id=1, industry="legal", extracted_data={"entities": "oops"})
        assert extract_entity_types(doc) == {"legal"}


class TestBuildMetadata:
    def test_defaults(self):
        meta = build_metadata(Document(id=1, industry="finance"))
        assert meta.document_type == "unknown"
        assert meta.confidence == 0.7
        assert meta.created_at

    def test_uses_document_fields(self):
        created = datetime(2024, 1, 2, tzinfo=timezone.utc)
        meta = build_metadata(
            Document(id=1, industry="finance", document_type="invoice", ai_confidence=0.91, created_at=created)
        )
        assert meta.industry == "finance"
        assert meta.document_type == "invoice"
        assert meta.confidence == 0.91
        assert meta.created_at == created.isoformat()

    def test_zero_confidence_is_kept(self):
        assert build_metadata(Document(id=1, ai_confidence=0.0)).confidence == 0.0
