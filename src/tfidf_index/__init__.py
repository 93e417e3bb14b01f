"""Minimal TF-IDF full-text indexing and retrieval engine."""

from tfidf_index.config import Settings
from tfidf_index.engine import SearchEngine
from tfidf_index.search.analyzers import TextNormalizer, tokenize
from tfidf_index.search.indexer import Indexer, IngestReport
from tfidf_index.search.models import Document, Posting, SearchHit, Term
from tfidf_index.search.scoring import TfidfScorer
from tfidf_index.search.searcher import Searcher
from tfidf_index.search.sqlite_store import SqliteIndexStore
from tfidf_index.search.store import AbstractIndexStore, DuplicateDocument, InMemoryIndexStore, StoreUnavailable


__all__ = [
    "AbstractIndexStore",
    "Document",
    "DuplicateDocument",
    "InMemoryIndexStore",
    "Indexer",
    "IngestReport",
    "Posting",
    "SearchEngine",
    "SearchHit",
    "Searcher",
    "Settings",
    "SqliteIndexStore",
    "StoreUnavailable",
    "Term",
    "TextNormalizer",
    "TfidfScorer",
    "tokenize",
]

__version__ = "0.1.0"
