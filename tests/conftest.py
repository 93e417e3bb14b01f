"""Shared test fixtures and configuration."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from tfidf_index.search.analyzers import TextNormalizer
from tfidf_index.search.sqlite_store import SqliteIndexStore
from tfidf_index.search.stemmers import IdentityStemmer
from tfidf_index.search.store import InMemoryIndexStore


# Environment that overrides every Settings field so a developer's .env never leaks into tests
TEST_ENV = {
    "TFIDF_DB_PATH": "tfidf-test.db",
    "TFIDF_BUSY_TIMEOUT_MS": "1000",
    "TFIDF_STEMMER": "identity",
    "TFIDF_STOPWORDS": "dan,di,yang,untuk,pada,ke,dengan",
    "TFIDF_TF_MODE": "substring",
    "TFIDF_LOG_LEVEL": "warning",
    "TFIDF_LOG_JSON": "false",
}

SAMPLE_DOCUMENTS = (
    "Kucing suka bermain.",
    "Anjing suka berlari di taman.",
    "Burung suka terbang tinggi.",
    "memberi makan anak kambing yang lapar",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Pin configuration to test defaults."""
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)


@pytest.fixture
def normalizer() -> TextNormalizer:
    """Normalizer without stemming so expectations stay readable."""
    return TextNormalizer(IdentityStemmer())


@pytest.fixture
def memory_store() -> InMemoryIndexStore:
    return InMemoryIndexStore()


@pytest.fixture
def sqlite_store(tmp_path: Path):
    store = SqliteIndexStore(tmp_path / "index.db", busy_timeout_ms=1000)
    yield store
    store.close()


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path: Path):
    """Every store implementation, for contract tests."""
    if request.param == "memory":
        yield InMemoryIndexStore()
        return
    sqlite = SqliteIndexStore(tmp_path / "index.db", busy_timeout_ms=1000)
    yield sqlite
    sqlite.close()


@pytest.fixture
def sample_documents() -> list[str]:
    return list(SAMPLE_DOCUMENTS)


@pytest.fixture
def restore_root_logger():
    """Undo configure_logging so handlers never outlive captured streams."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
