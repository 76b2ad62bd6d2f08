"""
cache/store.py -- Listing cache for the HTMX resource fragment.

Each entry maps one filter query string (ResourceFilters.to_query_string())
to the envelope-shaped listing payload built by web/routes.py. The entry is
stamped with its expiry at write time, so a poll arriving after that instant
falls through to the store and refreshes it.

Only success payloads are written here; the fragment route never caches an
error, so the next poll after a fault retries the store.

Backed by sqlite3 like the rest of the local storage. ":memory:" (the default)
is per-process; give a file path to share one cache between workers.
"""

import json
import sqlite3
import time
from typing import Optional

_SCHEMA = """
CREATE TABLE IF NOT EXISTS listings (
    query_string  TEXT PRIMARY KEY,
    payload       TEXT NOT NULL,
    expires_at    REAL NOT NULL
);
"""


class ListingCache:
    """Query string -> listing payload, expiring ttl seconds after each write."""

    def __init__(self, db_path: str = ":memory:", ttl: int = 60) -> None:
        self.ttl = ttl
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        if db_path != ":memory:":
            self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    def get(self, query: str) -> Optional[dict]:
        row = self._conn.execute(
            "SELECT payload, expires_at FROM listings WHERE query_string = ?",
            (query,),
        ).fetchone()
        if row is None:
            return None
        payload, expires_at = row
        if time.time() > expires_at:
            self._conn.execute("DELETE FROM listings WHERE query_string = ?", (query,))
            self._conn.commit()
            return None
        return json.loads(payload)

    def set(self, query: str, payload: dict) -> None:
        """Store payload for query. A later write for the same query wins."""
        self._conn.execute(
            "INSERT OR REPLACE INTO listings (query_string, payload, expires_at) VALUES (?, ?, ?)",
            (query, json.dumps(payload), time.time() + self.ttl),
        )
        self._conn.commit()

    def purge_expired(self) -> int:
        """Drop every expired entry; returns how many were removed."""
        removed = self._conn.execute("DELETE FROM listings WHERE expires_at < ?", (time.time(),)).rowcount
        self._conn.commit()
        return removed

    def close(self) -> None:
        self._conn.close()
