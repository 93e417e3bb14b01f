"""
Indexing and retrieval engine.

This package provides the TF-IDF search stack:
- analyzers: text normalization (stop words, stemming) and tokenization
- stemmers: pluggable stemmer registry
- scoring: TF, IDF and TF-IDF weights
- store / sqlite_store: persistence boundary and its implementations
- indexer: document ingestion
- searcher: ranked retrieval
"""
