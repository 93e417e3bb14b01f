"""Persistence boundary for the inverted index.

The indexer and searcher only talk to an ``AbstractIndexStore``. It owns the
three collections of the index (documents, terms, postings) and answers the
few lookups the TF-IDF engine needs. Concrete stores translate backend
failures into ``StoreUnavailable`` so callers see one error type.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
import threading

from tfidf_index.search.models import Document, Posting, Term


class StoreUnavailable(RuntimeError):
    """Raised when the persistence backend cannot serve a request.

    ``document_id`` is set by the indexer when the failure hit a document that
    was already registered, so callers know which document lacks postings.
    """

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation}: {message}")
        self.operation = operation
        self.document_id: int | None = None


class DuplicateDocument(ValueError):
    """A document with the same normalized content is already stored."""

    def __init__(self, content: str) -> None:
        super().__init__(f"Document with identical content already exists: {content!r}")
        self.content = content


class AbstractIndexStore(ABC):
    """Abstract repository for documents, terms and postings."""

    def __init__(self) -> None:
        # Serializes ingestion against this store instance.
        self.write_lock = threading.RLock()

    @abstractmethod
    def find_document_by_content(self, content: str) -> Document | None:
        raise NotImplementedError

    @abstractmethod
    def create_document(self, content: str) -> Document:
        """Insert a document and return it with its assigned id.

        Raises:
            DuplicateDocument: ``content`` is already stored.
        """
        raise NotImplementedError

    @abstractmethod
    def get_document_by_id(self, document_id: int) -> Document | None:
        raise NotImplementedError

    @abstractmethod
    def count_documents(self) -> int:
        raise NotImplementedError

    @abstractmethod
    def find_term_by_text(self, text: str) -> Term | None:
        raise NotImplementedError

    @abstractmethod
    def create_term(self, text: str) -> Term:
        """Insert a term and return it; an existing term with the same text is returned as is."""
        raise NotImplementedError

    @abstractmethod
    def upsert_posting(self, document_id: int, term_id: int, weight: float) -> None:
        """Insert the posting or overwrite its weight."""
        raise NotImplementedError

    @abstractmethod
    def get_posting(self, document_id: int, term_id: int) -> Posting | None:
        raise NotImplementedError

    @abstractmethod
    def count_documents_containing_term(self, text: str) -> int:
        raise NotImplementedError

    @abstractmethod
    def list_postings_for_term(self, text: str) -> list[tuple[int, float]]:
        """Return ``(document_id, weight)`` pairs ordered by document id."""
        raise NotImplementedError

    @contextmanager
    def session(self) -> Iterator[AbstractIndexStore]:
        """Hold backend resources for the duration of one indexing or search call."""
        yield self

    @contextmanager
    def transaction(self) -> Iterator[AbstractIndexStore]:
        """Run the enclosed calls as one unit of work.

        Stores shared between processes must make this exclusive across every
        writer of the same data; the base version only holds ``write_lock``
        and cannot roll back.
        """
        with self.write_lock:
            yield self

    def close(self) -> None:
        """Release backend resources."""

    def __enter__(self) -> AbstractIndexStore:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class InMemoryIndexStore(AbstractIndexStore):
    """Dict-backed store for tests and throwaway indexes."""

    def __init__(self) -> None:
        super().__init__()
        self._documents: dict[int, Document] = {}
        self._documents_by_content: dict[str, Document] = {}
        self._terms: dict[str, Term] = {}
        self._postings: dict[int, dict[int, float]] = {}
        self._next_document_id = 1
        self._next_term_id = 1
        self._lock = threading.Lock()

    def find_document_by_content(self, content: str) -> Document | None:
        return self._documents_by_content.get(content)

    def create_document(self, content: str) -> Document:
        with self._lock:
            if content in self._documents_by_content:
                raise DuplicateDocument(content)
            document = Document(id=self._next_document_id, content=content)
            self._next_document_id += 1
            self._documents[document.id] = document
            self._documents_by_content[content] = document
            return document

    def get_document_by_id(self, document_id: int) -> Document | None:
        return self._documents.get(document_id)

    def count_documents(self) -> int:
        return len(self._documents)

    def find_term_by_text(self, text: str) -> Term | None:
        return self._terms.get(text)

    def create_term(self, text: str) -> Term:
        with self._lock:
            existing = self._terms.get(text)
            if existing is not None:
                return existing
            term = Term(id=self._next_term_id, text=text)
            self._next_term_id += 1
            self._terms[text] = term
            return term

    def upsert_posting(self, document_id: int, term_id: int, weight: float) -> None:
        with self._lock:
            self._postings.setdefault(term_id, {})[document_id] = float(weight)

    def get_posting(self, document_id: int, term_id: int) -> Posting | None:
        weight = self._postings.get(term_id, {}).get(document_id)
        if weight is None:
            return None
        return Posting(document_id=document_id, term_id=term_id, weight=weight)

    def count_documents_containing_term(self, text: str) -> int:
        term = self._terms.get(text)
        if term is None:
            return 0
        return len(self._postings.get(term.id, {}))

    def list_postings_for_term(self, text: str) -> list[tuple[int, float]]:
        term = self._terms.get(text)
        if term is None:
            return []
        with self._lock:
            return sorted(self._postings.get(term.id, {}).items())
