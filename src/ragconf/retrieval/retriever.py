"""Hybrid lexical + semantic retrieval over the chunk index."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

import numpy as np

from ragconf.config.schema import EngineSettings
from ragconf.errors.exceptions import RetrievalFailure
from ragconf.errors.outcome import FailureKind, arun_stage
from ragconf.index.builder import IndexBuilder
from ragconf.index.store import IndexSnapshot
from ragconf.retrieval.bm25 import BM25Scorer
from ragconf.retrieval.fusion import fuse_scores
from ragconf.retrieval.semantic import semantic_scores
from ragconf.retrieval.summarizer import ContextSummarizer
from ragconf.store.documents import DocumentStore
from ragconf.types import (
    GENERAL_INDUSTRY,
    Chunk,
    Document,
    EnhancementStrategy,
    RAGContext,
    RetrievedChunk,
    RetrievedDocument,
    clamp,
)
from ragconf.vectorize.base import Vectorizer

logger = logging.getLogger(__name__)

DEGRADED_SUMMARY = "No relevant context retrieved due to error"

_CHUNKS_PER_DOCUMENT = 3
_HIGH_SIMILARITY = 0.8


class HybridRetriever:
    """Answers retrieval queries against the current index snapshot.

    ``retrieve`` never raises: a failure while ranking yields an empty
    context flagged as degraded.
    """

    def __init__(
        self,
        builder: IndexBuilder,
        documents: DocumentStore,
        vectorizer: Vectorizer,
        settings: EngineSettings | None = None,
        summarizer: ContextSummarizer | None = None,
    ) -> None:
        self._builder = builder
        self._documents = documents
        self._vectorizer = vectorizer
        self._settings = settings or EngineSettings()
        self._summarizer = summarizer or ContextSummarizer()
        self._bm25 = BM25Scorer(
            k1=self._settings.bm25_k1,
            b=self._settings.bm25_b,
            stop_words=self._settings.bm25_stop_words,
        )

    async def retrieve(
        self,
        query: str,
        industry: str = GENERAL_INDUSTRY,
        document_type: str | None = None,
        max_results: int | None = None,
    ) -> RAGContext:
        limit = self._settings.max_results if max_results is None else max_results
        outcome = await arun_stage(
            "retrieve",
            FailureKind.RETRIEVAL,
            self._retrieve_documents,
            query,
            industry,
            document_type,
            limit,
        )
        if not outcome.ok:
            return degraded_context(query)

        documents, searched = outcome.unwrap()
        summary = await self._summarizer.summarize(query, documents)
        average = sum(d.similarity for d in documents) / len(documents) if documents else 0.0
        logger.debug(
            "Query '%s' matched %d documents (avg similarity %.3f)",
            query,
            len(documents),
            average,
        )
        return RAGContext(
            query=query,
            retrieved_documents=documents,
            total_documents_searched=searched,
            average_similarity=average,
            context_summary=summary,
            enhancement_strategy=choose_strategy(documents, average, industry),
        )

    async def _retrieve_documents(
        self,
        query: str,
        industry: str,
        document_type: str | None,
        max_results: int,
    ) -> tuple[list[RetrievedDocument], int]:
        try:
            await self._builder.ensure_built()
            snapshot = self._builder.store.snapshot()
            ranked = await self.rank_chunks(snapshot, query, industry, document_type, max_results)
            documents = await self._group_by_document(ranked, industry, document_type, max_results)
        except Exception as exc:
            raise RetrievalFailure(str(exc), query=query, original=exc) from exc
        return documents, snapshot.document_count

    async def rank_chunks(
        self,
        snapshot: IndexSnapshot,
        query: str,
        industry: str,
        document_type: str | None,
        max_results: int,
    ) -> list[tuple[Chunk, float]]:
        """Top ``2 * max_results`` eligible chunks with their fused scores."""
        eligible = [
            i for i, chunk in enumerate(snapshot.chunks)
            if _matches(chunk, industry, document_type)
        ]
        if not eligible:
            return []

        chunks = [snapshot.chunks[i] for i in eligible]
        vectors = [snapshot.vectors[i] for i in eligible]

        bm25 = self._bm25.score_counts(
            self._bm25.tokenize(query),
            [self._bm25.term_counts(c.text, c.term_counts) for c in chunks],
        )
        lexical = {c.chunk_id: s for c, s in zip(chunks, bm25, strict=True) if s > 0}

        query_vector = await self._vectorize_query(query)
        semantic: dict[str, float] = {}
        if query_vector is not None:
            semantic = semantic_scores(
                query_vector, chunks, vectors, threshold=self._settings.min_semantic_similarity
            )

        fused = fuse_scores(
            lexical,
            semantic,
            lexical_weight=self._settings.lexical_weight,
            semantic_weight=self._settings.semantic_weight,
        )
        by_id = {c.chunk_id: c for c in chunks}
        return [(by_id[chunk_id], score) for chunk_id, score in fused[: 2 * max_results]]

    async def _vectorize_query(self, query: str) -> np.ndarray | None:
        try:
            vector = await asyncio.wait_for(
                self._vectorizer.vectorize(query), timeout=self._settings.vectorize_timeout
            )
        except asyncio.TimeoutError:
            logger.warning("Query vectorization timed out; using lexical ranking only")
            return None
        except Exception as exc:
            logger.warning("Query vectorization failed (%s); using lexical ranking only", exc)
            return None
        return np.asarray(vector, dtype=np.float64)

    async def _group_by_document(
        self,
        ranked: Sequence[tuple[Chunk, float]],
        industry: str,
        document_type: str | None,
        max_results: int,
    ) -> list[RetrievedDocument]:
        groups: dict[int, list[tuple[Chunk, float]]] = {}
        for chunk, score in ranked:
            groups.setdefault(chunk.document_id, []).append((chunk, score))

        averages = {
            doc_id: sum(score for _, score in items) / len(items)
            for doc_id, items in groups.items()
        }
        order = sorted(groups, key=lambda doc_id: (-averages[doc_id], doc_id))

        results: list[RetrievedDocument] = []
        for doc_id in order:
            if len(results) >= max_results:
                break
            document = await self._documents.get_document(doc_id)
            if document is None:
                logger.debug("Document %d no longer in store, skipping", doc_id)
                continue
            items = groups[doc_id]
            results.append(
                RetrievedDocument(
                    document=document,
                    similarity=clamp(averages[doc_id], 0.0, 1.0),
                    relevant_chunks=[
                        RetrievedChunk(
                            text=chunk.text,
                            similarity=clamp(score, 0.0, 1.0),
                            metadata=chunk.metadata,
                        )
                        for chunk, score in items[:_CHUNKS_PER_DOCUMENT]
                    ],
                    reason_for_relevance=relevance_reason(
                        items[0][1], document, industry, document_type
                    ),
                )
            )
        return results


def degraded_context(query: str) -> RAGContext:
    return RAGContext(
        query=query,
        context_summary=DEGRADED_SUMMARY,
        enhancement_strategy=EnhancementStrategy.TERMINOLOGY_SUPPORT,
        degraded=True,
    )


def choose_strategy(
    documents: Sequence[RetrievedDocument],
    average_similarity: float,
    industry: str,
) -> EnhancementStrategy:
    if not documents:
        return EnhancementStrategy.TERMINOLOGY_SUPPORT
    if average_similarity > 0.8:
        return EnhancementStrategy.COMPARATIVE_ANALYSIS
    if industry != GENERAL_INDUSTRY:
        return EnhancementStrategy.DOMAIN_EXPERTISE
    if len(documents) > 3:
        return EnhancementStrategy.PATTERN_RECOGNITION
    return EnhancementStrategy.TERMINOLOGY_SUPPORT


def relevance_reason(
    best_similarity: float,
    document: Document,
    industry: str,
    document_type: str | None,
) -> str:
    reasons: list[str] = []
    if best_similarity > _HIGH_SIMILARITY:
        reasons.append("high semantic similarity")
    if industry != GENERAL_INDUSTRY and document.industry == industry:
        reasons.append(f"{document.industry} industry match")
    if document.document_type:
        if document_type and document.document_type == document_type:
            reasons.append(f"{document.document_type} document type match")
        else:
            reasons.append(f"{document.document_type} document type")
    return ", ".join(reasons) if reasons else "contextual relevance"


def _matches(chunk: Chunk, industry: str, document_type: str | None) -> bool:
    if industry != GENERAL_INDUSTRY and chunk.metadata.industry != industry:
        return False
    if document_type and chunk.metadata.document_type != document_type:
        return False
    return True
