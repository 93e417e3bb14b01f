"""Search engine facade.

Wires the stemmer, normalizer, scorer, store, indexer and searcher together
behind a small interface:

- ingest(raw_documents) -> IngestReport
- search(raw_query, limit) -> list[SearchHit]
- close()
"""

from __future__ import annotations

from collections.abc import Sequence
import logging

from tfidf_index.config import Settings
from tfidf_index.search.analyzers import TextNormalizer
from tfidf_index.search.indexer import Indexer, IngestReport
from tfidf_index.search.models import SearchHit
from tfidf_index.search.scoring import TfidfScorer
from tfidf_index.search.searcher import Searcher
from tfidf_index.search.sqlite_store import SqliteIndexStore
from tfidf_index.search.stemmers import get_stemmer
from tfidf_index.search.store import AbstractIndexStore


logger = logging.getLogger(__name__)


class SearchEngine:
    """Index and query one store with a shared normalizer."""

    def __init__(
        self,
        store: AbstractIndexStore,
        normalizer: TextNormalizer,
        scorer: TfidfScorer | None = None,
    ) -> None:
        self.store = store
        self.normalizer = normalizer
        self.indexer = Indexer(store, normalizer, scorer)
        self.searcher = Searcher(store, normalizer)

    @classmethod
    def from_settings(cls, settings: Settings) -> SearchEngine:
        normalizer = TextNormalizer(get_stemmer(settings.stemmer), stopwords=settings.get_stopwords())
        store = SqliteIndexStore(settings.db_path, busy_timeout_ms=settings.busy_timeout_ms)
        logger.info(
            "Opened index %s (stemmer=%s, tf_mode=%s)", settings.db_path, settings.stemmer, settings.tf_mode
        )
        return cls(store, normalizer, TfidfScorer(settings.tf_mode))

    def ingest(self, raw_documents: Sequence[str], *, total_documents: int | None = None) -> IngestReport:
        return self.indexer.ingest(raw_documents, total_documents=total_documents)

    def search(self, raw_query: str, *, limit: int | None = None) -> list[SearchHit]:
        return self.searcher.search(raw_query, limit=limit)

    def close(self) -> None:
        self.store.close()

    def __enter__(self) -> SearchEngine:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
