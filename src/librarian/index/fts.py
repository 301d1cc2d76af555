"""SQLite FTS5 index.

The index lives in an in-memory SQLite database; ``serialize`` produces the
database image, which is what ``dump`` writes to disk.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import List

from librarian.cache.store import TextCache
from librarian.exceptions import DuplicateKeyError
from librarian.index.base import read_index_file, resolve_ids, write_index_file
from librarian.models import SearchReference
from librarian.utils.text import tokenize

FTS_SCHEMA = """
CREATE VIRTUAL TABLE IF NOT EXISTS refs USING fts5(
    ref_id UNINDEXED,
    title,
    content,
    tokenize='unicode61'
)
"""


def _match_expression(query: str) -> str:
    # Every term quoted, so FTS5 operators in user input are plain text.
    return " ".join(f'"{term}"' for term in tokenize(query))


class FTSIndexer:
    """Full-text index backed by SQLite's FTS5 extension."""

    def __init__(self, cache: TextCache, index_path: Path) -> None:
        self.cache = cache
        self.index_path = Path(index_path)
        self._conn = sqlite3.connect(":memory:")
        self._conn.execute(FTS_SCHEMA)

    def close(self) -> None:
        self._conn.close()

    def add(self, ref: SearchReference) -> None:
        if self.exists(ref.id):
            raise DuplicateKeyError("index id", ref.id)
        with self._conn:
            self._conn.execute(
                "INSERT INTO refs (ref_id, title, content) VALUES (?, ?, ?)",
                (ref.id, ref.title, ref.content),
            )

    def remove(self, ref_id: str) -> None:
        with self._conn:
            self._conn.execute("DELETE FROM refs WHERE ref_id = ?", (ref_id,))

    def put(self, ref_id: str, ref: SearchReference) -> None:
        if self.exists(ref_id):
            self.remove(ref_id)
        self.add(ref)

    def exists(self, ref_id: str) -> bool:
        row = self._conn.execute("SELECT 1 FROM refs WHERE ref_id = ? LIMIT 1", (ref_id,)).fetchone()
        return row is not None

    def search(self, query: str) -> List[SearchReference]:
        expression = _match_expression(query)
        if not expression:
            return []
        rows = self._conn.execute(
            "SELECT ref_id FROM refs WHERE refs MATCH ? ORDER BY rowid", (expression,)
        ).fetchall()
        return resolve_ids(self.cache, (row[0] for row in rows))

    def serialize(self) -> bytes:
        return self._conn.serialize()

    def deserialize(self, data: bytes) -> None:
        self._conn.deserialize(data)
        self._conn.execute(FTS_SCHEMA)

    def load(self) -> None:
        data = read_index_file(self.index_path)
        if data is not None:
            self.deserialize(data)

    def dump(self) -> None:
        write_index_file(self.index_path, self.serialize())
