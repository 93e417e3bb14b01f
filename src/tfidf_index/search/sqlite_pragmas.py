"""Shared SQLite PRAGMA helpers for consistent connection tuning."""

from __future__ import annotations

import sqlite3


def apply_connection_pragmas(
    conn: sqlite3.Connection,
    *,
    busy_timeout_ms: int | None = 5000,
    cache_size_kb: int = -16384,
    temp_store: str = "MEMORY",
    foreign_keys: bool = True,
) -> None:
    """Apply PRAGMAs for a read-write index connection.

    WAL lets searches read while a single writer ingests.
    """
    if busy_timeout_ms is not None:
        conn.execute(f"PRAGMA busy_timeout = {int(busy_timeout_ms)}")
    conn.execute("PRAGMA journal_mode = WAL")
    conn.execute("PRAGMA synchronous = NORMAL")
    conn.execute(f"PRAGMA cache_size = {int(cache_size_kb)}")
    conn.execute(f"PRAGMA temp_store = {temp_store}")
    conn.execute(f"PRAGMA foreign_keys = {'ON' if foreign_keys else 'OFF'}")
