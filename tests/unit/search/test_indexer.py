"""Unit tests for document ingestion."""

from __future__ import annotations

import math
import threading

from prometheus_client import REGISTRY
import pytest

from tfidf_index.search.indexer import Indexer, IngestReport
from tfidf_index.search.scoring import TfidfScorer
from tfidf_index.search.sqlite_store import SqliteIndexStore
from tfidf_index.search.store import InMemoryIndexStore, StoreUnavailable


class FlakyStore(InMemoryIndexStore):
    """In-memory store whose posting writes fail for one document's content."""

    def __init__(self, failing_content: str) -> None:
        super().__init__()
        self.failing_content = failing_content

    def upsert_posting(self, document_id: int, term_id: int, weight: float) -> None:
        document = self.get_document_by_id(document_id)
        if document is not None and document.content == self.failing_content:
            raise StoreUnavailable("upsert_posting", "database is locked")
        super().upsert_posting(document_id, term_id, weight)


class FailingTermStore(SqliteIndexStore):
    """SQLite store that fails while reading the frequency of one term."""

    def __init__(self, db_path, *, failing_term: str) -> None:
        super().__init__(db_path, busy_timeout_ms=1000)
        self.failing_term = failing_term

    def count_documents_containing_term(self, text: str) -> int:
        if text == self.failing_term:
            raise StoreUnavailable("count_documents_containing_term", "disk I/O error")
        return super().count_documents_containing_term(text)


class PausingStore(SqliteIndexStore):
    """SQLite store that waits inside the frequency read until resumed."""

    def __init__(self, db_path) -> None:
        super().__init__(db_path, busy_timeout_ms=5000)
        self.counting = threading.Event()
        self.resume = threading.Event()

    def count_documents_containing_term(self, text: str) -> int:
        self.counting.set()
        self.resume.wait(5)
        return super().count_documents_containing_term(text)


def _postings(store, term: str) -> dict[int, float]:
    return dict(store.list_postings_for_term(term))


def test_ingest_indexes_every_new_document(store, normalizer, sample_documents) -> None:
    report = Indexer(store, normalizer).ingest(sample_documents)

    assert isinstance(report, IngestReport)
    assert report.documents_indexed == 4
    assert report.documents_skipped == 0
    assert len(report.document_ids) == 4
    assert store.count_documents() == 4
    assert store.find_document_by_content("anjing suka berlari taman") is not None
    assert store.find_document_by_content("memberi makan anak kambing lapar") is not None


def test_weights_use_document_frequency_before_the_write(store, normalizer, sample_documents) -> None:
    report = Indexer(store, normalizer).ingest(sample_documents)
    first, second, third, _ = report.document_ids

    suka = _postings(store, "suka")

    assert suka[first] == pytest.approx(1 / 3 * math.log(4 / 1))
    assert suka[second] == pytest.approx(1 / 4 * math.log(4 / 2))
    assert suka[third] == pytest.approx(1 / 4 * math.log(4 / 3))
    assert _postings(store, "bermain") == {first: pytest.approx(1 / 3 * math.log(4))}


def test_total_documents_override(memory_store, normalizer) -> None:
    Indexer(memory_store, normalizer).ingest(["kucing"], total_documents=10)

    assert memory_store.list_postings_for_term("kucing") == [(1, pytest.approx(math.log(10)))]


def test_reingesting_the_same_content_is_a_noop(store, normalizer, sample_documents) -> None:
    indexer = Indexer(store, normalizer)
    indexer.ingest(sample_documents)
    before = _postings(store, "suka")

    report = indexer.ingest(sample_documents)

    assert report.documents_indexed == 0
    assert report.documents_skipped == 4
    assert report.postings_written == 0
    assert store.count_documents() == 4
    assert _postings(store, "suka") == before


def test_duplicates_are_filtered_after_normalization(memory_store, normalizer) -> None:
    report = Indexer(memory_store, normalizer).ingest(["Kucing suka!", "kucing   SUKA", "kucing di suka"])

    assert report.documents_indexed == 1
    assert report.documents_skipped == 2
    assert memory_store.count_documents() == 1
    assert len(memory_store.list_postings_for_term("kucing")) == 1


def test_terms_are_created_once_across_the_corpus(memory_store, normalizer, sample_documents) -> None:
    report = Indexer(memory_store, normalizer).ingest(sample_documents)

    distinct = {term for text in sample_documents for term in normalizer.normalize(text).split()}
    assert report.terms_created == len(distinct)
    assert report.postings_written == sum(len(set(normalizer.normalize(t).split())) for t in sample_documents)
    assert memory_store.create_term("suka") == memory_store.find_term_by_text("suka")


def test_repeated_words_count_in_tf_but_post_once(memory_store, normalizer) -> None:
    report = Indexer(memory_store, normalizer).ingest(["suka suka kucing", "anjing"])

    assert report.postings_written == 3
    assert memory_store.list_postings_for_term("suka") == [(1, pytest.approx(2 / 3 * math.log(2)))]


def test_token_mode_scorer(memory_store, normalizer) -> None:
    Indexer(memory_store, normalizer, TfidfScorer("token")).ingest(["main bermain", "anjing"])

    assert memory_store.list_postings_for_term("main") == [(1, pytest.approx(0.5 * math.log(2)))]


def test_empty_document_is_stored_without_postings(memory_store, normalizer) -> None:
    report = Indexer(memory_store, normalizer).ingest(["!!!", "...", "kucing"])

    assert report.documents_indexed == 2
    assert report.documents_skipped == 1
    assert memory_store.find_document_by_content("") is not None
    assert report.postings_written == 1


def test_store_failure_propagates_and_keeps_earlier_documents(normalizer) -> None:
    store = FlakyStore(failing_content="anjing suka berlari taman")
    indexer = Indexer(store, normalizer)
    labels = {"component": "indexer", "operation": "upsert_posting"}
    before = REGISTRY.get_sample_value("tfidf_store_errors_total", labels) or 0.0

    with pytest.raises(StoreUnavailable) as excinfo:
        indexer.ingest(["Kucing suka bermain.", "Anjing suka berlari di taman.", "Burung suka terbang."])

    kucing = store.find_document_by_content("kucing suka bermain")
    assert kucing is not None
    assert set(_postings(store, "suka")) == {kucing.id}
    assert _postings(store, "bermain") == {kucing.id: pytest.approx(1 / 3 * math.log(3))}
    assert store.find_document_by_content("burung suka terbang") is None
    assert excinfo.value.document_id == store.find_document_by_content("anjing suka berlari taman").id
    assert REGISTRY.get_sample_value("tfidf_store_errors_total", labels) == before + 1


def test_ingest_holds_the_store_write_lock(memory_store, normalizer) -> None:
    observed: list[bool] = []
    original_create = memory_store.create_document

    def create_document(content: str):
        def try_lock() -> None:
            acquired = memory_store.write_lock.acquire(blocking=False)
            if acquired:
                memory_store.write_lock.release()
            observed.append(acquired)

        thread = threading.Thread(target=try_lock)
        thread.start()
        thread.join()
        return original_create(content)

    memory_store.create_document = create_document  # type: ignore[method-assign]

    Indexer(memory_store, normalizer).ingest(["kucing"])

    assert observed == [False]
    assert memory_store.write_lock.acquire(blocking=False)
    memory_store.write_lock.release()


def test_failed_term_is_rolled_back_alone(tmp_path, normalizer) -> None:
    store = FailingTermStore(tmp_path / "index.db", failing_term="taman")

    try:
        with pytest.raises(StoreUnavailable) as excinfo:
            Indexer(store, normalizer).ingest(["Kucing suka bermain.", "Anjing suka berlari di taman."])

        kucing = store.find_document_by_content("kucing suka bermain")
        anjing = store.find_document_by_content("anjing suka berlari taman")
        assert excinfo.value.document_id == anjing.id
        assert store.find_term_by_text("taman") is None
        assert set(_postings(store, "suka")) == {kucing.id, anjing.id}
        assert set(_postings(store, "berlari")) == {anjing.id}
    finally:
        store.close()


def test_content_collision_on_insert_counts_as_duplicate(store, normalizer, monkeypatch) -> None:
    indexer = Indexer(store, normalizer)
    indexer.ingest(["kucing suka"])
    # Another writer stored the same content after the lookup ran
    monkeypatch.setattr(store, "find_document_by_content", lambda content: None)

    report = indexer.ingest(["Kucing suka!"])

    assert report.documents_indexed == 0
    assert report.documents_skipped == 1
    assert store.count_documents() == 1


def test_ingests_through_separate_stores_on_one_file_are_serialized(tmp_path, normalizer) -> None:
    db_path = tmp_path / "shared.db"
    first = PausingStore(db_path)
    second = SqliteIndexStore(db_path, busy_timeout_ms=5000)
    errors: list[BaseException] = []

    def ingest(store, text: str) -> None:
        try:
            Indexer(store, normalizer).ingest([text], total_documents=2)
        except BaseException as exc:  # pragma: no cover - surfaced below
            errors.append(exc)

    first_thread = threading.Thread(target=ingest, args=(first, "kucing a"))
    second_thread = threading.Thread(target=ingest, args=(second, "kucing b"))
    try:
        first_thread.start()
        assert first.counting.wait(5)
        second_thread.start()
        second_thread.join(0.2)
        assert second_thread.is_alive()

        first.resume.set()
        first_thread.join(5)
        second_thread.join(5)

        assert not errors
        weights = [weight for _, weight in second.list_postings_for_term("kucing")]
        assert weights == [pytest.approx(0.5 * math.log(2)), pytest.approx(0.0)]
    finally:
        first.resume.set()
        first.close()
        second.close()
