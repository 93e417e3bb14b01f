"""Command line driver: index documents, search them, or run the sample corpus.

Examples:
    tfidf-index --db corpus.db index "Kucing suka bermain." "Anjing suka berlari di taman."
    tfidf-index --db corpus.db index --file documents.txt
    tfidf-index --db corpus.db search "suka bermain" --top 5
    tfidf-index --db corpus.db demo
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence
import logging
from pathlib import Path
import sys

import orjson
from pydantic import ValidationError

from tfidf_index.config import Settings
from tfidf_index.engine import SearchEngine
from tfidf_index.observability.logging import configure_logging
from tfidf_index.observability.tracing import init_tracing
from tfidf_index.search.models import SearchHit
from tfidf_index.search.store import StoreUnavailable


logger = logging.getLogger(__name__)

SAMPLE_DOCUMENTS = (
    "Kucing suka bermain.",
    "Anjing suka berlari di taman.",
    "Burung suka terbang tinggi.",
    "memberi makan anak kambing yang lapar",
)
SAMPLE_QUERY = "suka bermain"


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tfidf-index", description="TF-IDF full-text index and search.")
    parser.add_argument("--db", type=Path, default=None, help="SQLite index file (default: TFIDF_DB_PATH).")
    parser.add_argument("--log-level", default=None, help="Override TFIDF_LOG_LEVEL.")
    parser.add_argument("--plain-logs", action="store_true", help="Human readable logs instead of JSON.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    index_parser = subparsers.add_parser("index", help="Ingest documents into the index.")
    index_parser.add_argument("texts", nargs="*", help="Document texts, one document per argument.")
    index_parser.add_argument(
        "--file",
        type=Path,
        default=None,
        help="UTF-8 file with one document per non-blank line.",
    )

    search_parser = subparsers.add_parser("search", help="Run a free-text query.")
    search_parser.add_argument("query", help="Query text.")
    search_parser.add_argument("--top", type=int, default=None, help="Maximum number of results.")
    search_parser.add_argument("--json", action="store_true", help="Print results as JSON.")

    subparsers.add_parser("demo", help="Index the sample corpus and query it.")
    return parser


def _read_documents(args: argparse.Namespace) -> list[str]:
    documents = list(args.texts)
    if args.file is not None:
        lines = args.file.read_text(encoding="utf-8").splitlines()
        documents.extend(line for line in lines if line.strip())
    return documents


def _print_hits(hits: Sequence[SearchHit], *, as_json: bool = False) -> None:
    if as_json:
        print(orjson.dumps([hit.to_dict() for hit in hits], option=orjson.OPT_INDENT_2).decode("utf-8"))
        return
    if not hits:
        print("No documents matched the query.")
        return
    for hit in hits:
        print(f"Document ID: {hit.id}")
        print(f"Content: {hit.content}")
        print(f"Score: {hit.score}")
        print()


def _run(engine: SearchEngine, args: argparse.Namespace) -> int:
    if args.command == "index":
        documents = _read_documents(args)
        if not documents:
            logger.error("No documents given; pass texts or --file")
            return 2
        report = engine.ingest(documents)
        print(f"Indexed {report.documents_indexed} documents, skipped {report.documents_skipped} duplicates.")
        return 0

    if args.command == "search":
        _print_hits(engine.search(args.query, limit=args.top), as_json=args.json)
        return 0

    report = engine.ingest(SAMPLE_DOCUMENTS)
    print(f"Indexed {report.documents_indexed} documents, skipped {report.documents_skipped} duplicates.")
    print(f"Query: {SAMPLE_QUERY}")
    print()
    _print_hits(engine.search(SAMPLE_QUERY))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_argument_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings()
    except ValidationError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1
    if args.db is not None:
        settings = settings.model_copy(update={"db_path": args.db})

    configure_logging(args.log_level or settings.log_level, json_output=settings.log_json and not args.plain_logs)
    init_tracing()

    try:
        with SearchEngine.from_settings(settings) as engine:
            return _run(engine, args)
    except StoreUnavailable as exc:
        logger.error("Index store unavailable: %s", exc)
        return 1
    except OSError as exc:
        logger.error("Could not read documents: %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
