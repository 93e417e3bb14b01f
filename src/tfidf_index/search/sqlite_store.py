"""SQLite-backed index store.

Layout mirrors the classic three-table inverted index:

- ``documents``: normalized content, unique
- ``terms``: term surface text, unique
- ``document_terms``: one TF-IDF weight per (document, term), overwritten on re-index

Every statement is parameterized. A mutating call outside ``transaction()``
commits on its own. Inside it, calls join one ``BEGIN IMMEDIATE`` transaction,
which takes the database write lock up front so writers in other connections
and processes wait for it instead of interleaving their reads and writes.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
import logging
from pathlib import Path
import sqlite3
import threading

from tfidf_index.search.models import Document, Posting, Term
from tfidf_index.search.sqlite_pragmas import apply_connection_pragmas
from tfidf_index.search.store import AbstractIndexStore, DuplicateDocument, StoreUnavailable


logger = logging.getLogger(__name__)

_SCHEMA = """
    CREATE TABLE IF NOT EXISTS documents (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        content TEXT NOT NULL UNIQUE
    );

    CREATE TABLE IF NOT EXISTS terms (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        term TEXT NOT NULL UNIQUE
    );

    CREATE TABLE IF NOT EXISTS document_terms (
        document_id INTEGER NOT NULL REFERENCES documents(id),
        term_id INTEGER NOT NULL REFERENCES terms(id),
        tfidf REAL NOT NULL,
        PRIMARY KEY (document_id, term_id)
    ) WITHOUT ROWID;

    CREATE INDEX IF NOT EXISTS idx_document_terms_term ON document_terms(term_id, document_id);
"""

_SELECT_POSTINGS_FOR_TERM = (
    "SELECT document_terms.document_id, document_terms.tfidf FROM document_terms "
    "JOIN terms ON document_terms.term_id = terms.id "
    "WHERE terms.term = ? ORDER BY document_terms.document_id"
)

_COUNT_DOCUMENTS_FOR_TERM = (
    "SELECT COUNT(*) FROM document_terms JOIN terms ON document_terms.term_id = terms.id WHERE terms.term = ?"
)

_UPSERT_POSTING = (
    "INSERT INTO document_terms (document_id, term_id, tfidf) VALUES (?, ?, ?) "
    "ON CONFLICT(document_id, term_id) DO UPDATE SET tfidf = excluded.tfidf"
)


class SQLiteConnectionPool:
    """Thread-safe connection pool with thread-local connections."""

    def __init__(self, db_path: Path, *, busy_timeout_ms: int = 5000):
        self.db_path = db_path
        self.busy_timeout_ms = busy_timeout_ms
        self._local = threading.local()
        self._connections: set[sqlite3.Connection] = set()
        self._lock = threading.Lock()

    @contextmanager
    def get_connection(self) -> Iterator[sqlite3.Connection]:
        """Get a thread-local connection."""
        if getattr(self._local, "connection", None) is None:
            self._local.connection = self._create_connection()

        yield self._local.connection

    def _create_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            self.db_path,
            timeout=self.busy_timeout_ms / 1000,
            check_same_thread=False,
        )
        try:
            apply_connection_pragmas(conn, busy_timeout_ms=self.busy_timeout_ms)
        except sqlite3.Error:
            conn.close()
            raise
        with self._lock:
            self._connections.add(conn)
        return conn

    def release(self) -> None:
        """Close the calling thread's connection, if any."""
        conn = getattr(self._local, "connection", None)
        if conn is None:
            return
        self._local.connection = None
        with self._lock:
            self._connections.discard(conn)
        try:
            conn.close()
        except sqlite3.Error as close_error:
            logger.warning("Failed to close SQLite connection for %s: %s", self.db_path, close_error)

    def close_all(self) -> None:
        """Close every connection opened by this pool."""
        with self._lock:
            connections = list(self._connections)
            self._connections.clear()
        for conn in connections:
            try:
                conn.close()
            except sqlite3.Error as close_error:
                logger.warning("Failed to close SQLite connection for %s: %s", self.db_path, close_error)
        self._local.connection = None


class SqliteIndexStore(AbstractIndexStore):
    """Durable store following the repository pattern."""

    def __init__(self, db_path: str | Path, *, busy_timeout_ms: int = 5000) -> None:
        super().__init__()
        self.db_path = Path(db_path)
        self._pool = SQLiteConnectionPool(self.db_path, busy_timeout_ms=busy_timeout_ms)
        self._local = threading.local()
        self._create_schema()

    def _create_schema(self) -> None:
        with self._connect("create_schema") as conn:
            conn.executescript(_SCHEMA)

    @contextmanager
    def _connect(self, operation: str, *, write: bool = False) -> Iterator[sqlite3.Connection]:
        """Yield a connection, committing writes and translating backend errors."""
        try:
            with self._pool.get_connection() as conn:
                if write and not self._in_transaction():
                    with conn:
                        yield conn
                else:
                    yield conn
        except sqlite3.IntegrityError as exc:
            raise ValueError(f"{operation}: {exc}") from exc
        except sqlite3.Error as exc:
            raise StoreUnavailable(operation, str(exc)) from exc

    def _in_transaction(self) -> bool:
        return getattr(self._local, "transaction_depth", 0) > 0

    @contextmanager
    def session(self) -> Iterator[SqliteIndexStore]:
        """Keep one connection open for the calling thread until the outermost session exits."""
        depth = getattr(self._local, "depth", 0)
        self._local.depth = depth + 1
        try:
            with self._connect("session"):
                yield self
        finally:
            self._local.depth = depth
            if depth == 0:
                self._pool.release()

    @contextmanager
    def transaction(self) -> Iterator[SqliteIndexStore]:
        """Run the enclosed calls in one ``BEGIN IMMEDIATE`` transaction.

        Nested calls join the outermost transaction. Any exception rolls the
        whole unit back. Waiting for another writer is bounded by the busy
        timeout and surfaces as ``StoreUnavailable``.
        """
        depth = getattr(self._local, "transaction_depth", 0)
        if depth:
            self._local.transaction_depth = depth + 1
            try:
                yield self
            finally:
                self._local.transaction_depth = depth
            return

        with self.write_lock, self.session(), self._connect("transaction") as conn:
            conn.execute("BEGIN IMMEDIATE")
            self._local.transaction_depth = 1
            try:
                yield self
            except BaseException:
                conn.rollback()
                raise
            else:
                conn.commit()
            finally:
                self._local.transaction_depth = 0

    def find_document_by_content(self, content: str) -> Document | None:
        with self._connect("find_document_by_content") as conn:
            row = conn.execute("SELECT id, content FROM documents WHERE content = ?", (content,)).fetchone()
        return Document(id=row[0], content=row[1]) if row else None

    def create_document(self, content: str) -> Document:
        try:
            with self._connect("create_document", write=True) as conn:
                cursor = conn.execute("INSERT INTO documents (content) VALUES (?)", (content,))
                document_id = cursor.lastrowid
        except ValueError as exc:
            raise DuplicateDocument(content) from exc
        return Document(id=int(document_id), content=content)

    def get_document_by_id(self, document_id: int) -> Document | None:
        with self._connect("get_document_by_id") as conn:
            row = conn.execute("SELECT id, content FROM documents WHERE id = ?", (document_id,)).fetchone()
        return Document(id=row[0], content=row[1]) if row else None

    def count_documents(self) -> int:
        with self._connect("count_documents") as conn:
            row = conn.execute("SELECT COUNT(*) FROM documents").fetchone()
        return int(row[0] or 0)

    def find_term_by_text(self, text: str) -> Term | None:
        with self._connect("find_term_by_text") as conn:
            row = conn.execute("SELECT id, term FROM terms WHERE term = ?", (text,)).fetchone()
        return Term(id=row[0], text=row[1]) if row else None

    def create_term(self, text: str) -> Term:
        with self._connect("create_term", write=True) as conn:
            conn.execute("INSERT OR IGNORE INTO terms (term) VALUES (?)", (text,))
            row = conn.execute("SELECT id, term FROM terms WHERE term = ?", (text,)).fetchone()
        return Term(id=row[0], text=row[1])

    def upsert_posting(self, document_id: int, term_id: int, weight: float) -> None:
        with self._connect("upsert_posting", write=True) as conn:
            conn.execute(_UPSERT_POSTING, (document_id, term_id, float(weight)))

    def get_posting(self, document_id: int, term_id: int) -> Posting | None:
        with self._connect("get_posting") as conn:
            row = conn.execute(
                "SELECT tfidf FROM document_terms WHERE document_id = ? AND term_id = ?",
                (document_id, term_id),
            ).fetchone()
        if not row:
            return None
        return Posting(document_id=document_id, term_id=term_id, weight=float(row[0]))

    def count_documents_containing_term(self, text: str) -> int:
        with self._connect("count_documents_containing_term") as conn:
            row = conn.execute(_COUNT_DOCUMENTS_FOR_TERM, (text,)).fetchone()
        return int(row[0] or 0)

    def list_postings_for_term(self, text: str) -> list[tuple[int, float]]:
        with self._connect("list_postings_for_term") as conn:
            rows = conn.execute(_SELECT_POSTINGS_FOR_TERM, (text,)).fetchall()
        return [(int(document_id), float(weight)) for document_id, weight in rows]

    def close(self) -> None:
        """Close connection pool."""
        self._pool.close_all()
