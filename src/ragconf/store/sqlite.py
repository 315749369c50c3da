"""SQLite persistence for embedding records and calibration bins."""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
import time
from pathlib import Path

from ragconf.types import CalibrationBin, EmbeddingRecord, EmbeddingRecordChunk

logger = logging.getLogger(__name__)

_DEFAULT_DB_PATH = Path.home() / ".ragconf" / "ragconf.db"


class SQLiteRecordStore:
    """Durable storage for the embedding index and the calibration table.

    One connection is shared across threads; every statement runs under
    a lock.
    """

    def __init__(self, db_path: Path | None = None) -> None:
        self._db_path = db_path or _DEFAULT_DB_PATH
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._create_tables()

    @property
    def db_path(self) -> Path:
        return self._db_path

    # ── Embedding records ──

    def save_record(self, record: EmbeddingRecord) -> None:
        chunks = json.dumps([c.model_dump(mode="json") for c in record.chunks])
        with self._lock:
            self._conn.execute(
                """INSERT OR REPLACE INTO embedding_records
                   (document_id, analysis_type, confidence_score, chunks, updated_at)
                   VALUES (?, ?, ?, ?, ?)""",
                (
                    record.document_id,
                    record.analysis_type,
                    record.confidence_score,
                    chunks,
                    time.time(),
                ),
            )
            self._conn.commit()

    def load_records(self) -> list[EmbeddingRecord]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT * FROM embedding_records ORDER BY document_id"
            ).fetchall()
        return [self._row_to_record(row) for row in rows]

    @property
    def record_count(self) -> int:
        with self._lock:
            row = self._conn.execute("SELECT COUNT(*) FROM embedding_records").fetchone()
        return row[0]

    # ── Calibration bins ──

    def save_bin(self, industry: str, document_type: str, bin_: CalibrationBin) -> None:
        with self._lock:
            self._conn.execute(
                """INSERT OR REPLACE INTO calibration_bins
                   (industry, document_type, lower, upper,
                    actual_accuracy, sample_count, reliability)
                   VALUES (?, ?, ?, ?, ?, ?, ?)""",
                (
                    industry,
                    document_type,
                    round(bin_.lower, 1),
                    bin_.upper,
                    bin_.actual_accuracy,
                    bin_.sample_count,
                    bin_.reliability,
                ),
            )
            self._conn.commit()

    def load_bins(self) -> dict[tuple[str, str], list[CalibrationBin]]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT * FROM calibration_bins ORDER BY industry, document_type, lower"
            ).fetchall()
        bins: dict[tuple[str, str], list[CalibrationBin]] = {}
        for row in rows:
            bins.setdefault((row["industry"], row["document_type"]), []).append(
                CalibrationBin(
                    lower=row["lower"],
                    upper=row["upper"],
                    actual_accuracy=row["actual_accuracy"],
                    sample_count=row["sample_count"],
                    reliability=row["reliability"],
                )
            )
        return bins

    def clear(self) -> None:
        with self._lock:
            self._conn.execute("DELETE FROM embedding_records")
            self._conn.execute("DELETE FROM calibration_bins")
            self._conn.commit()

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def _create_tables(self) -> None:
        with self._lock:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS embedding_records (
                    document_id INTEGER PRIMARY KEY,
                    analysis_type TEXT,
                    confidence_score REAL,
                    chunks TEXT,
                    updated_at REAL
                )
            """)
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS calibration_bins (
                    industry TEXT,
                    document_type TEXT,
                    lower REAL,
                    upper REAL,
                    actual_accuracy REAL,
                    sample_count INTEGER,
                    reliability REAL,
                    PRIMARY KEY (industry, document_type, lower)
                )
            """)
            self._conn.commit()

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> EmbeddingRecord:
        try:
            raw_chunks = json.loads(row["chunks"]) if row["chunks"] else []
        except (json.JSONDecodeError, TypeError):
            logger.warning("Discarding unreadable chunks for document %s", row["document_id"])
            raw_chunks = []

        return EmbeddingRecord(
            document_id=row["document_id"],
            analysis_type=row["analysis_type"] or "",
            chunks=[EmbeddingRecordChunk.model_validate(c) for c in raw_chunks],
            confidence_score=row["confidence_score"] if row["confidence_score"] is not None else 0.7,
        )
