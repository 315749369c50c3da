"""Tests for hybrid retrieval over the chunk index."""

import asyncio

from ragconf.config.schema import EngineSettings
from ragconf.index.builder import IndexBuilder
from ragconf.index.store import ChunkStore
from ragconf.retrieval.retriever import (
    DEGRADED_SUMMARY,
    HybridRetriever,
    choose_strategy,
    relevance_reason,
)
from ragconf.retrieval.summarizer import NO_CONTEXT_SUMMARY
from ragconf.store.documents import InMemoryDocumentStore
from ragconf.types import Document, EnhancementStrategy, RetrievedDocument
from ragconf.vectorize.hashing import HashingVectorizer

QUERY = "invoice payment terms"


class _FailingVectorizer(HashingVectorizer):
    async def vectorize(self, text: str) -> list[float]:
        raise RuntimeError("embedding service down")


class _SlowVectorizer(HashingVectorizer):
    async def vectorize(self, text: str) -> list[float]:
        await asyncio.sleep(1)
        return self.embed(text)


class _BrokenDocumentStore(InMemoryDocumentStore):
    async def get_document(self, document_id: int):
        raise ConnectionError("document store unreachable")


def _make_retriever(store, query_vectorizer=None, **overrides) -> HybridRetriever:
    settings = EngineSettings(**overrides)
    builder = IndexBuilder(ChunkStore(), store, HashingVectorizer(), settings)
    return HybridRetriever(builder, store, query_vectorizer or HashingVectorizer(), settings)


def _make_retrieved(doc_id: int) -> RetrievedDocument:
    return RetrievedDocument(document=Document(id=doc_id))


class TestRetrieve:
    async def test_filtered_hybrid_match(self, document_store):
        context = await _make_retriever(document_store).retrieve(QUERY, industry="finance")

        assert [d.document.id for d in context.retrieved_documents] == [1]
        top = context.retrieved_documents[0]
        assert 0.9 < top.similarity <= 1.0
        assert "high semantic similarity" in top.reason_for_relevance
        assert "finance industry match" in top.reason_for_relevance
        assert "invoice document type" in top.reason_for_relevance
        assert context.total_documents_searched == 5
        assert context.enhancement_strategy == EnhancementStrategy.COMPARATIVE_ANALYSIS
        assert not context.degraded

    async def test_general_query_searches_all_industries(self, document_store):
        context = await _make_retriever(document_store).retrieve(QUERY)
        ids = {d.document.id for d in context.retrieved_documents}
        assert {1, 4, 5} <= ids

    async def test_document_type_filter(self, document_store):
        context = await _make_retriever(document_store).retrieve(QUERY, document_type="memo")
        assert {d.document.id for d in context.retrieved_documents} <= {4, 5}
        assert context.retrieved_documents

    async def test_empty_index(self):
        context = await _make_retriever(InMemoryDocumentStore()).retrieve("anything at all")
        assert context.retrieved_documents == []
        assert context.average_similarity == 0.0
        assert context.context_summary == NO_CONTEXT_SUMMARY
        assert context.enhancement_strategy == EnhancementStrategy.TERMINOLOGY_SUPPORT
        assert not context.degraded

    async def test_deterministic(self, document_store):
        retriever = _make_retriever(document_store)
        first = await retriever.retrieve(QUERY)
        second = await retriever.retrieve(QUERY)
        assert first == second

    async def test_max_results_and_chunk_limit(self, document_store):
        context = await _make_retriever(document_store).retrieve(QUERY, max_results=1)
        assert len(context.retrieved_documents) == 1
        assert len(context.retrieved_documents[0].relevant_chunks) <= 3

    async def test_zero_max_results_returns_nothing(self, document_store):
        retriever = _make_retriever(document_store, max_results=3)
        context = await retriever.retrieve(QUERY, max_results=0)
        assert context.retrieved_documents == []
        assert context.total_documents_searched == 5

    async def test_default_max_results_from_settings(self, document_store):
        context = await _make_retriever(document_store, max_results=1).retrieve(QUERY)
        assert len(context.retrieved_documents) == 1

    async def test_scores_within_unit_interval(self, document_store):
        context = await _make_retriever(document_store).retrieve(QUERY)
        for doc in context.retrieved_documents:
            assert 0.0 <= doc.similarity <= 1.0
            assert all(0.0 <= c.similarity <= 1.0 for c in doc.relevant_chunks)

    async def test_store_failure_degrades(self, finance_documents):
        retriever = _make_retriever(_BrokenDocumentStore(finance_documents))
        context = await retriever.retrieve(QUERY)
        assert context.degraded
        assert context.retrieved_documents == []
        assert context.context_summary == DEGRADED_SUMMARY
        assert context.enhancement_strategy == EnhancementStrategy.TERMINOLOGY_SUPPORT

    async def test_query_vectorizer_failure_falls_back_to_lexical(self, document_store):
        retriever = _make_retriever(document_store, query_vectorizer=_FailingVectorizer())
        context = await retriever.retrieve(QUERY, industry="finance")
        assert not context.degraded
        assert [d.document.id for d in context.retrieved_documents] == [1]
        assert context.retrieved_documents[0].similarity == 1.0

    async def test_query_vectorizer_timeout_falls_back_to_lexical(self, document_store):
        retriever = _make_retriever(
            document_store, query_vectorizer=_SlowVectorizer(), vectorize_timeout=0.05
        )
        context = await retriever.retrieve(QUERY, industry="finance")
        assert [d.document.id for d in context.retrieved_documents] == [1]

    async def test_skips_documents_missing_from_store(self, finance_documents):
        store = InMemoryDocumentStore(finance_documents)
        retriever = _make_retriever(store)
        await retriever.retrieve(QUERY)
        # Drop document 1 from the store after indexing
        store._documents.pop(1)
        context = await retriever.retrieve(QUERY)
        assert 1 not in {d.document.id for d in context.retrieved_documents}
        assert not context.degraded


class TestChooseStrategy:
    def test_no_documents(self):
        assert choose_strategy([], 0.0, "finance") == EnhancementStrategy.TERMINOLOGY_SUPPORT

    def test_high_similarity(self):
        assert choose_strategy([_make_retrieved(1)], 0.85, "general") == EnhancementStrategy.COMPARATIVE_ANALYSIS

    def test_specific_industry(self):
        assert choose_strategy([_make_retrieved(1)], 0.5, "legal") == EnhancementStrategy.DOMAIN_EXPERTISE

    def test_many_documents(self):
        docs = [_make_retrieved(i) for i in range(4)]
        assert choose_strategy(docs, 0.5, "general") == EnhancementStrategy.PATTERN_RECOGNITION

    def test_default(self):
        docs = [_make_retrieved(i) for i in range(3)]
        assert choose_strategy(docs, 0.5, "general") == EnhancementStrategy.TERMINOLOGY_SUPPORT


class TestRelevanceReason:
    def test_all_reasons(self):
        doc = Document(id=1, industry="legal", document_type="contract")
        reason = relevance_reason(0.9, doc, "legal", "contract")
        assert reason == "high semantic similarity, legal industry match, contract document type match"

    def test_type_without_match(self):
        doc = Document(id=1, industry="legal", document_type="contract")
        assert relevance_reason(0.5, doc, "general", None) == "contract document type"

    def test_fallback(self):
        assert relevance_reason(0.5, Document(id=1), "general", None) == "contextual relevance"
