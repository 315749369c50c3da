"""Populate the chunk store from persisted records or from the corpus."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter

from pydantic import BaseModel, Field

from ragconf.config.schema import EngineSettings
from ragconf.errors.exceptions import IndexingFailure
from ragconf.errors.outcome import FailureKind, StageOutcome
from ragconf.index.chunking import build_metadata, chunk_id_for, split_into_windows
from ragconf.index.records import chunks_to_record, is_embedding_record, record_to_chunks
from ragconf.index.store import ChunkStore
from ragconf.store.documents import DocumentStore
from ragconf.tokenize import tokenize
from ragconf.types import Chunk, Document
from ragconf.vectorize.base import Vectorizer

logger = logging.getLogger(__name__)


class BuildReport(BaseModel):
    loaded_from_records: bool = False
    documents_indexed: int = 0
    chunks_indexed: int = 0
    skipped: list[int] = Field(default_factory=list)


class IndexBuilder:
    """Chunks and vectorizes documents into a ChunkStore.

    Documents are vectorized concurrently, bounded by ``max_index_workers``.
    Each finished document is published to the store on its own, so queries
    running during the build see whole documents only.
    """

    def __init__(
        self,
        store: ChunkStore,
        documents: DocumentStore,
        vectorizer: Vectorizer,
        settings: EngineSettings | None = None,
    ) -> None:
        self._store = store
        self._documents = documents
        self._vectorizer = vectorizer
        self._settings = settings or EngineSettings()
        self._build_lock = asyncio.Lock()

    @property
    def store(self) -> ChunkStore:
        return self._store

    async def ensure_built(self) -> None:
        if not self._store.is_indexed:
            await self.build()

    async def build(self, force: bool = False) -> BuildReport:
        """Load persisted embedding records, or index the corpus if none exist."""
        async with self._build_lock:
            if self._store.is_indexed and not force:
                status = self._store.status()
                return BuildReport(
                    documents_indexed=status.documents, chunks_indexed=status.chunks
                )

            records = [r for r in await self._documents.list_embedding_records() if is_embedding_record(r)]
            if records and not force:
                self._store.put_many({r.document_id: record_to_chunks(r) for r in records})
                self._store.mark_indexed()
                status = self._store.status()
                logger.info(
                    "Loaded %d chunks for %d documents from persisted records",
                    status.chunks,
                    status.documents,
                )
                return BuildReport(
                    loaded_from_records=True,
                    documents_indexed=status.documents,
                    chunks_indexed=status.chunks,
                )

            report = await self._index_corpus()
            self._store.mark_indexed()
            logger.info(
                "Indexed %d documents (%d chunks, %d skipped)",
                report.documents_indexed,
                report.chunks_indexed,
                len(report.skipped),
            )
            return report

    async def add_document(self, document: Document) -> StageOutcome[list[Chunk]]:
        """Index one new document and persist its embedding record."""
        try:
            chunks = await self._index_and_persist(document)
        except IndexingFailure as exc:
            logger.warning("Skipping document %s: %s", exc.document_id, exc)
            return StageOutcome.failed("index", FailureKind.INDEXING, str(exc))
        logger.info("Indexed document %d (%d chunks)", document.id, len(chunks))
        return StageOutcome.success("index", chunks)

    async def _index_corpus(self) -> BuildReport:
        min_chars = self._settings.min_chunk_chars
        eligible = [
            d for d in await self._documents.list_documents()
            if d.extracted_text and len(d.extracted_text) > min_chars
        ]
        semaphore = asyncio.Semaphore(self._settings.max_index_workers)

        async def worker(document: Document) -> list[Chunk]:
            async with semaphore:
                return await self._index_and_persist(document)

        results = await asyncio.gather(*(worker(d) for d in eligible), return_exceptions=True)

        report = BuildReport()
        for document, result in zip(eligible, results, strict=True):
            if isinstance(result, IndexingFailure):
                logger.warning("Skipping document %d: %s", document.id, result)
                report.skipped.append(document.id)
            elif isinstance(result, BaseException):
                raise result
            else:
                report.documents_indexed += 1
                report.chunks_indexed += len(result)
        return report

    async def _index_and_persist(self, document: Document) -> list[Chunk]:
        chunks = await self.chunk_document(document)
        self._store.put_document(document.id, chunks)
        confidence = document.ai_confidence
        record = chunks_to_record(
            document.id,
            chunks,
            confidence_score=confidence if confidence is not None else 0.7,
            text_prefix_chars=self._settings.record_text_prefix_chars,
        )
        try:
            await self._documents.save_embedding_record(record)
        except Exception as exc:
            # The in-memory index stays usable even if persistence fails
            logger.warning("Could not persist embedding record for document %d: %s", document.id, exc)
        return chunks

    async def chunk_document(self, document: Document) -> list[Chunk]:
        """Split and vectorize a document; raises IndexingFailure."""
        if not document.extracted_text:
            raise IndexingFailure("Document has no extracted text", document_id=document.id)

        try:
            windows = split_into_windows(
                document.extracted_text,
                chunk_words=self._settings.chunk_words,
                overlap=self._settings.chunk_overlap,
                min_chars=self._settings.min_chunk_chars,
            )
            vectors = await asyncio.wait_for(
                self._vectorizer.vectorize_many(windows),
                timeout=self._settings.vectorize_timeout * max(1, len(windows)),
            )
        except Exception as exc:
            raise IndexingFailure(
                f"Failed to vectorize document {document.id}: {exc}",
                document_id=document.id,
                original=exc,
            ) from exc

        metadata = build_metadata(document)
        return [
            Chunk(
                document_id=document.id,
                chunk_id=chunk_id_for(document.id, i),
                text=text,
                vector=vector,
                metadata=metadata,
                term_counts=Counter(tokenize(text)),
            )
            for i, (text, vector) in enumerate(zip(windows, vectors, strict=True))
        ]
