"""Read-only access to a built corpus.

A ``Corpus`` wraps one SQLite connection opened in read-only mode. It is
shared by every request at serve time; nothing writes to it after the build.
"""
from __future__ import annotations

import hashlib
import logging
import os
import sqlite3
from typing import Any, Dict, List, Optional, Sequence, Set

from lexcorpus.store.schema import CAPABILITY_TABLES

logger = logging.getLogger(__name__)

FINGERPRINT_CHUNK = 1 << 20


class Corpus:
    def __init__(self, conn: sqlite3.Connection, path: Optional[str] = None) -> None:
        self.conn = conn
        self.conn.row_factory = sqlite3.Row
        self.path = path
        self._tables: Optional[Set[str]] = None

    def query(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        return [dict(row) for row in self.conn.execute(sql, params).fetchall()]

    def query_one(self, sql: str, params: Sequence[Any] = ()) -> Optional[Dict[str, Any]]:
        row = self.conn.execute(sql, params).fetchone()
        return dict(row) if row is not None else None

    @property
    def tables(self) -> Set[str]:
        if self._tables is None:
            rows = self.conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
            self._tables = {r[0] for r in rows}
        return self._tables

    def has_table(self, name: str) -> bool:
        return name in self.tables

    def close(self) -> None:
        self.conn.close()


def open_corpus(db_path: str) -> Corpus:
    """Open ``db_path`` read-only; raises FileNotFoundError if it is missing."""
    if not os.path.exists(db_path):
        raise FileNotFoundError(db_path)
    uri = f"file:{os.path.abspath(db_path)}?mode=ro"
    conn = sqlite3.connect(uri, uri=True, check_same_thread=False)
    logger.info(f"Opened corpus {db_path} (read-only)")
    return Corpus(conn, db_path)


def detect_capabilities(corpus: Corpus) -> Set[str]:
    return {
        cap for cap, required in CAPABILITY_TABLES.items()
        if all(corpus.has_table(t) for t in required)
    }


def read_metadata(corpus: Corpus) -> Dict[str, str]:
    meta: Dict[str, str] = {}
    if corpus.has_table('db_metadata'):
        for row in corpus.query("SELECT key, value FROM db_metadata"):
            meta[row['key']] = row['value']
    meta.setdefault('tier', 'free')
    meta.setdefault('schema_version', '1.0')
    return meta


def safe_count(corpus: Corpus, table: str) -> int:
    """Row count of ``table``, or 0 when the table is absent."""
    if not corpus.has_table(table):
        return 0
    row = corpus.query_one(f'SELECT COUNT(*) AS n FROM "{table}"')
    return int(row['n']) if row else 0


def fingerprint(db_path: Optional[str]) -> Optional[str]:
    """Short sha256 of the database file, used to tell builds apart."""
    if not db_path or not os.path.exists(db_path):
        return None
    h = hashlib.sha256()
    with open(db_path, 'rb') as f:
        for chunk in iter(lambda: f.read(FINGERPRINT_CHUNK), b''):
            h.update(chunk)
    return h.hexdigest()[:12]


__all__ = ['Corpus', 'open_corpus', 'detect_capabilities', 'read_metadata', 'safe_count', 'fingerprint']
