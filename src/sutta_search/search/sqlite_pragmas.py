"""SQLite PRAGMA helpers for read-only corpus connections."""

from __future__ import annotations

import sqlite3


def apply_read_pragmas(
    conn: sqlite3.Connection,
    *,
    cache_size_kb: int = -65536,
    mmap_size_bytes: int = 134217728,
    temp_store: str = "MEMORY",
) -> None:
    """Apply read-optimized PRAGMAs.

    Journal and sync settings are left alone: the artifact is opened with
    ``mode=ro`` and those PRAGMAs would need a writable file.
    """
    conn.execute(f"PRAGMA cache_size = {int(cache_size_kb)}")
    conn.execute(f"PRAGMA mmap_size = {int(mmap_size_bytes)}")
    conn.execute(f"PRAGMA temp_store = {temp_store}")
    conn.execute("PRAGMA query_only = 1")
