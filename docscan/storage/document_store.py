"""SQLite-backed store for processed documents.

Supports free-text search over titles and raw text plus an inclusive
creation-date range, newest first.
"""

import json
import sqlite3
import unicodedata
import uuid
from collections.abc import Iterator
from contextlib import closing, contextmanager
from datetime import date, datetime, time, timezone
from pathlib import Path

from pydantic import BaseModel, Field

from docscan.pipeline import DocumentRecord
from docscan.utils.logger import get_logger

logger = get_logger(__name__)

MAX_TITLE_LENGTH = 120
DEFAULT_LIMIT = 50

_SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    id TEXT PRIMARY KEY,
    created_at TEXT NOT NULL,
    title TEXT NOT NULL,
    raw_text TEXT NOT NULL,
    sections TEXT NOT NULL,
    scanned_found INTEGER NOT NULL,
    doc_type TEXT NOT NULL,
    mean_confidence INTEGER NOT NULL
)
"""


class SectionModel(BaseModel):
    """Serialized form of a document section."""

    heading: str
    content: str


class StoredDocument(BaseModel):
    """A document as persisted by the store or the local history."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    title: str = "Untitled"
    raw_text: str
    sections: list[SectionModel] = Field(default_factory=list)
    scanned_found: bool = False
    doc_type: str = "Other"
    mean_confidence: int = 0

    @classmethod
    def from_record(
        cls, record: DocumentRecord, created_at: datetime | None = None
    ) -> "StoredDocument":
        return cls(
            created_at=created_at or datetime.now(timezone.utc),
            title=(record.title or "Untitled")[:MAX_TITLE_LENGTH],
            raw_text=record.raw_text,
            sections=[
                SectionModel(heading=s.heading, content=s.content) for s in record.sections
            ],
            scanned_found=record.scanned_found,
            doc_type=record.doc_type,
            mean_confidence=record.mean_confidence,
        )


def _timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _fold(text: str) -> str:
    return unicodedata.normalize("NFKC", text).casefold()


class DocumentStore:
    """Persist and search processed documents in a SQLite database.

    Each operation opens its own connection, so one store can be shared
    between threads.

    Args:
        db_path: Database file path. Parent directories are created.
    """

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.execute(_SCHEMA)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        with closing(sqlite3.connect(self.db_path)) as conn:
            conn.row_factory = sqlite3.Row
            conn.create_function("casefold", 1, _fold, deterministic=True)
            with conn:
                yield conn

    def insert(
        self, record: DocumentRecord, created_at: datetime | None = None
    ) -> StoredDocument:
        """Store a document record.

        Args:
            record: Record produced by the pipeline.
            created_at: Creation time. Defaults to now (UTC).

        Returns:
            The stored document with its id and timestamp.

        Raises:
            ValueError: If the record has no text.
        """
        if not record.raw_text.strip():
            raise ValueError("Cannot store a document without text")

        doc = StoredDocument.from_record(record, created_at)
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO documents VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    doc.id,
                    _timestamp(doc.created_at),
                    doc.title,
                    doc.raw_text,
                    json.dumps([s.model_dump() for s in doc.sections]),
                    int(doc.scanned_found),
                    doc.doc_type,
                    doc.mean_confidence,
                ),
            )
        logger.info("Stored document %s (%s)", doc.id, doc.title)
        return doc

    def search(
        self,
        query: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        limit: int = DEFAULT_LIMIT,
    ) -> list[StoredDocument]:
        """Find documents by text and creation date.

        Args:
            query: Case-insensitive substring matched against title or text.
            date_from: First creation day to include (UTC).
            date_to: Last creation day to include (UTC).
            limit: Maximum number of results.

        Returns:
            Matching documents, newest first.
        """
        clauses: list[str] = []
        params: list[object] = []

        if query and query.strip():
            needle = _fold(query.strip())
            clauses.append(
                "(instr(casefold(title), ?) > 0 OR instr(casefold(raw_text), ?) > 0)"
            )
            params.extend([needle, needle])
        if date_from is not None:
            clauses.append("created_at >= ?")
            params.append(_timestamp(datetime.combine(date_from, time.min)))
        if date_to is not None:
            clauses.append("created_at <= ?")
            params.append(_timestamp(datetime.combine(date_to, time.max)))

        sql = "SELECT * FROM documents"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY created_at DESC, rowid DESC LIMIT ?"
        params.append(limit)

        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()

        logger.debug("Search %r returned %d documents", query, len(rows))
        return [self._from_row(row) for row in rows]

    def get(self, doc_id: str) -> StoredDocument | None:
        """Fetch a single document by id."""
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM documents WHERE id = ?", (doc_id,)).fetchone()
        return self._from_row(row) if row else None

    @staticmethod
    def _from_row(row: sqlite3.Row) -> StoredDocument:
        return StoredDocument(
            id=row["id"],
            created_at=datetime.fromisoformat(row["created_at"]),
            title=row["title"],
            raw_text=row["raw_text"],
            sections=json.loads(row["sections"]),
            scanned_found=bool(row["scanned_found"]),
            doc_type=row["doc_type"],
            mean_confidence=row["mean_confidence"],
        )
