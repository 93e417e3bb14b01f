"""Document ingestion for the TF-IDF index.

Each raw document is normalized, checked against the store for an existing
document with identical normalized content, registered, tokenized, and every
unique term gets a TF-IDF posting. Documents are processed one at a time in
input order.

Two units of work run inside ``store.transaction()``: registering a document
(duplicate check plus insert), and indexing one term of it (find-or-create the
term, read its document frequency, upsert the posting). The store makes each
unit exclusive against other writers of the same index, so a document
frequency is never read stale. A failure rolls back only the unit in progress;
earlier documents and terms stay committed.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
import logging

from tfidf_index.observability.metrics import (
    DOCUMENTS_INGESTED,
    INGEST_LATENCY,
    POSTINGS_WRITTEN,
    STORE_ERRORS,
    track_latency,
)
from tfidf_index.observability.tracing import create_span
from tfidf_index.search.analyzers import TextNormalizer, tokenize
from tfidf_index.search.models import Document
from tfidf_index.search.scoring import TfidfScorer
from tfidf_index.search.store import AbstractIndexStore, DuplicateDocument, StoreUnavailable


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestReport:
    """Outcome of an ingest call."""

    documents_indexed: int
    documents_skipped: int
    terms_created: int
    postings_written: int
    document_ids: tuple[int, ...]


@dataclass
class _IngestCounters:
    documents_indexed: int = 0
    documents_skipped: int = 0
    terms_created: int = 0
    postings_written: int = 0
    document_ids: list[int] = field(default_factory=list)

    def freeze(self) -> IngestReport:
        return IngestReport(
            documents_indexed=self.documents_indexed,
            documents_skipped=self.documents_skipped,
            terms_created=self.terms_created,
            postings_written=self.postings_written,
            document_ids=tuple(self.document_ids),
        )


class Indexer:
    """Coordinate normalization, document registration and weighting."""

    def __init__(
        self,
        store: AbstractIndexStore,
        normalizer: TextNormalizer,
        scorer: TfidfScorer | None = None,
    ) -> None:
        self.store = store
        self.normalizer = normalizer
        self.scorer = scorer or TfidfScorer()

    def ingest(self, raw_documents: Sequence[str], *, total_documents: int | None = None) -> IngestReport:
        """Index ``raw_documents`` in order.

        Args:
            raw_documents: Raw document texts.
            total_documents: Corpus size used for every IDF in this call.
                Defaults to the number of documents in the batch.

        Raises:
            StoreUnavailable: The store failed; documents finished before the
                failure stay indexed. ``document_id`` names the document
                being indexed when the failure hit, if it was registered.
        """
        documents = list(raw_documents)
        batch_size = len(documents) if total_documents is None else total_documents
        counters = _IngestCounters()

        with (
            create_span("tfidf.ingest", attributes={"tfidf.batch_size": len(documents)}),
            track_latency(INGEST_LATENCY),
            self.store.write_lock,
            self.store.session(),
        ):
            for position, raw in enumerate(documents):
                try:
                    self._ingest_one(raw, batch_size, counters)
                except StoreUnavailable as exc:
                    STORE_ERRORS.labels(component="indexer", operation=exc.operation).inc()
                    logger.exception(
                        "Store failure while indexing document %d of %d",
                        position + 1,
                        len(documents),
                        extra={"document_id": exc.document_id},
                    )
                    raise

        report = counters.freeze()
        logger.info(
            "Indexed %d documents (%d skipped, %d new terms, %d postings)",
            report.documents_indexed,
            report.documents_skipped,
            report.terms_created,
            report.postings_written,
        )
        return report

    def _ingest_one(self, raw: str, total_documents: int, counters: _IngestCounters) -> None:
        content = self.normalizer.normalize(raw)

        with self.store.transaction():
            document = None
            if self.store.find_document_by_content(content) is None:
                try:
                    document = self.store.create_document(content)
                except DuplicateDocument:
                    # Stored by another writer after the lookup
                    pass

        if document is None:
            counters.documents_skipped += 1
            DOCUMENTS_INGESTED.labels(outcome="skipped").inc()
            logger.debug("Skipping duplicate document %r", content)
            return

        counters.documents_indexed += 1
        counters.document_ids.append(document.id)
        DOCUMENTS_INGESTED.labels(outcome="indexed").inc()

        try:
            self._index_terms(document, total_documents, counters)
        except StoreUnavailable as exc:
            exc.document_id = document.id
            raise

    def _index_terms(self, document: Document, total_documents: int, counters: _IngestCounters) -> None:
        for text in tokenize(document.content):
            with self.store.transaction():
                term = self.store.find_term_by_text(text)
                created = term is None
                if term is None:
                    term = self.store.create_term(text)

                # Frequency is read before this document's posting exists.
                document_frequency = self.store.count_documents_containing_term(text)
                weight = self.scorer.score(document.content, text, total_documents, document_frequency)
                self.store.upsert_posting(document.id, term.id, weight)

            if created:
                counters.terms_created += 1
            counters.postings_written += 1
            POSTINGS_WRITTEN.inc()
