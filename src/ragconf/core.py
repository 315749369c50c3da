"""Top-level entry point: RagConfidenceEngine wires retrieval and confidence together."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel

from ragconf.confidence.engine import ConfidenceEngine, ConfidenceEngineStatus, validate_context
from ragconf.config.hierarchy import load_config_hierarchy
from ragconf.config.schema import EngineSettings
from ragconf.errors.outcome import StageOutcome
from ragconf.index.builder import BuildReport, IndexBuilder
from ragconf.index.store import ChunkStore, IndexStatus
from ragconf.llm.client import AsyncTextClient
from ragconf.retrieval.retriever import HybridRetriever
from ragconf.retrieval.summarizer import ContextSummarizer
from ragconf.store.documents import DocumentStore, InMemoryDocumentStore
from ragconf.store.sqlite import SQLiteRecordStore
from ragconf.types import (
    GENERAL_INDUSTRY,
    Chunk,
    ConfidenceReport,
    Document,
    DocumentContext,
    HistoricalEvidence,
    ModelPrediction,
    RAGContext,
    StructureContext,
)
from ragconf.vectorize.base import Vectorizer
from ragconf.vectorize.cache import CachedVectorizer, VectorCacheStats
from ragconf.vectorize.factory import build_vectorizer

logger = logging.getLogger(__name__)


class AnalysisResult(BaseModel):
    context: RAGContext
    report: ConfidenceReport


class EngineStatus(BaseModel):
    index: IndexStatus
    confidence: ConfidenceEngineStatus
    vector_cache: VectorCacheStats | None = None


class RagConfidenceEngine:
    """Retrieval-augmented confidence engine with full lifecycle control.

    Owns the chunk index, the calibration table and the collaborators
    built from settings. Everything mutable lives on this instance.
    """

    def __init__(
        self,
        documents: DocumentStore | None = None,
        settings: EngineSettings | None = None,
        vectorizer: Vectorizer | None = None,
        summary_client: AsyncTextClient | None = None,
        record_store: SQLiteRecordStore | None = None,
    ) -> None:
        self._settings = settings or EngineSettings.default()

        if record_store is None and self._settings.db_path is not None:
            record_store = SQLiteRecordStore(self._settings.db_path)
        self._record_store = record_store

        self._documents = documents or InMemoryDocumentStore(record_store=record_store)
        self._vectorizer = vectorizer or build_vectorizer(self._settings)

        if summary_client is None and self._settings.summarizer_enabled:
            summary_client = AsyncTextClient(
                api_key=self._settings.api_key,
                base_url=self._settings.base_url,
                timeout=self._settings.summary_timeout,
            )
        self._summarizer = ContextSummarizer(
            client=summary_client,
            model=self._settings.summarizer_model,
            timeout=self._settings.summary_timeout,
        )

        self._chunk_store = ChunkStore()
        self._builder = IndexBuilder(
            self._chunk_store, self._documents, self._vectorizer, self._settings
        )
        self._retriever = HybridRetriever(
            self._builder,
            self._documents,
            self._vectorizer,
            settings=self._settings,
            summarizer=self._summarizer,
        )
        self._confidence = ConfidenceEngine.from_settings(self._settings, record_store=record_store)

    @classmethod
    def from_config(
        cls,
        documents: DocumentStore | None = None,
        **overrides: Any,
    ) -> RagConfidenceEngine:
        """Build an engine from defaults, config files, env vars and overrides."""
        settings = EngineSettings.from_config(load_config_hierarchy(**overrides))
        return cls(documents=documents, settings=settings)

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    @property
    def chunk_store(self) -> ChunkStore:
        return self._chunk_store

    @property
    def confidence_engine(self) -> ConfidenceEngine:
        return self._confidence

    @property
    def retriever(self) -> HybridRetriever:
        return self._retriever

    async def initialize(self, force: bool = False) -> BuildReport:
        """Build the index now instead of on the first query."""
        return await self._builder.build(force=force)

    async def retrieve(
        self,
        query: str,
        industry: str = GENERAL_INDUSTRY,
        document_type: str | None = None,
        max_results: int | None = None,
    ) -> RAGContext:
        return await self._retriever.retrieve(
            query, industry=industry, document_type=document_type, max_results=max_results
        )

    def compute_confidence(
        self,
        predictions: Sequence[ModelPrediction],
        document_context: DocumentContext | Mapping[str, Any],
        rag_context: HistoricalEvidence | RAGContext | None = None,
        structure_context: StructureContext | None = None,
    ) -> ConfidenceReport:
        return self._confidence.compute_confidence(
            predictions, document_context, rag_context, structure_context
        )

    def record_outcome(
        self,
        document_context: DocumentContext | Mapping[str, Any],
        predicted: float,
        actual: float,
    ) -> None:
        self._confidence.record_outcome(document_context, predicted, actual)

    async def add_document(self, document: Document) -> StageOutcome[list[Chunk]]:
        """Index a newly ingested document."""
        if isinstance(self._documents, InMemoryDocumentStore):
            self._documents.add(document)
        return await self._builder.add_document(document)

    async def analyze(
        self,
        predictions: Sequence[ModelPrediction],
        document_context: DocumentContext | Mapping[str, Any],
        query: str,
        structure_context: StructureContext | None = None,
        max_results: int | None = None,
    ) -> AnalysisResult:
        """Retrieve context for ``query`` and score the predictions with it."""
        context = validate_context(document_context)
        rag = await self.retrieve(
            query,
            industry=context.industry,
            document_type=context.document_type,
            max_results=max_results,
        )
        report = self.compute_confidence(predictions, context, rag, structure_context)
        return AnalysisResult(context=rag, report=report)

    def status(self) -> EngineStatus:
        cache_stats = None
        if isinstance(self._vectorizer, CachedVectorizer):
            cache_stats = self._vectorizer.stats()
        return EngineStatus(
            index=self._chunk_store.status(),
            confidence=self._confidence.status(),
            vector_cache=cache_stats,
        )

    async def close(self) -> None:
        await self._vectorizer.close()
        await self._summarizer.close()
        if self._record_store is not None:
            self._record_store.close()
