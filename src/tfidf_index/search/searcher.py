"""Ranked retrieval over the stored TF-IDF postings."""

from __future__ import annotations

import logging

from tfidf_index.observability.metrics import SEARCH_LATENCY, STORE_ERRORS, track_latency
from tfidf_index.observability.tracing import create_span
from tfidf_index.search.analyzers import TextNormalizer, tokenize
from tfidf_index.search.models import SearchHit
from tfidf_index.search.store import AbstractIndexStore, StoreUnavailable


logger = logging.getLogger(__name__)


class Searcher:
    """Score documents by summing their stored weights for each query term.

    The query goes through the same normalizer and tokenizer as indexed
    documents, so repeated query words count once. Ties keep insertion order
    (ascending document id). The searcher never takes the store's write lock.
    """

    def __init__(self, store: AbstractIndexStore, normalizer: TextNormalizer) -> None:
        self.store = store
        self.normalizer = normalizer

    def query_terms(self, raw_query: str) -> tuple[str, ...]:
        return tokenize(self.normalizer.normalize(raw_query))

    def search(self, raw_query: str, *, limit: int | None = None) -> list[SearchHit]:
        terms = self.query_terms(raw_query)
        if not terms:
            return []

        with (
            create_span("tfidf.search", attributes={"tfidf.query_terms": len(terms)}) as span,
            track_latency(SEARCH_LATENCY),
            self.store.session(),
        ):
            try:
                scores = self._accumulate_scores(terms)
                ranked = sorted(scores.items(), key=lambda item: (-item[1], item[0]))
                if limit is not None:
                    ranked = ranked[: max(limit, 0)]
                hits = self._fetch_hits(ranked)
            except StoreUnavailable as exc:
                STORE_ERRORS.labels(component="searcher", operation=exc.operation).inc()
                logger.exception("Store failure while searching for %r", raw_query)
                raise
            span.set_attribute("tfidf.hits", len(hits))

        logger.debug("Query %r matched %d documents", raw_query, len(hits))
        return hits

    def _accumulate_scores(self, terms: tuple[str, ...]) -> dict[int, float]:
        scores: dict[int, float] = {}
        for term in terms:
            for document_id, weight in self.store.list_postings_for_term(term):
                scores[document_id] = scores.get(document_id, 0.0) + weight
        return scores

    def _fetch_hits(self, ranked: list[tuple[int, float]]) -> list[SearchHit]:
        hits: list[SearchHit] = []
        for document_id, score in ranked:
            document = self.store.get_document_by_id(document_id)
            if document is None:
                continue
            hits.append(SearchHit(document=document, score=score))
        return hits
