"""SQLite-backed text cache.

The file path is used to quickly check whether a file has been read already;
the content hash is the true identity of a file and survives renames.
"""

from __future__ import annotations

import logging
import re
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, List, Optional

from librarian.cache.transcoder import to_cache_record, to_search_references
from librarian.exceptions import DuplicateKeyError
from librarian.ingestion.extractor import ContentExtractor
from librarian.models import CacheRecord, InsertionReference, SearchReference

LOGGER = logging.getLogger(__name__)

_PAGE_SUFFIX_RE = re.compile(r"^(?P<hash>.+)-(?P<page>\d+)$")


def _row_to_record(row: sqlite3.Row) -> CacheRecord:
    return CacheRecord(
        id=row["id"],
        path=row["path"],
        hash=row["hash"],
        mime_type=row["mimeType"],
        text_content=row["textContent"],
    )


class TextCache:
    """Persistent cache of extracted text keyed by path and by content hash."""

    def __init__(
        self,
        db_path: Path,
        *,
        update_path_on_hash_match: bool = False,
        extractor: Optional[ContentExtractor] = None,
    ) -> None:
        self.db_path = Path(db_path)
        self.update_path_on_hash_match = update_path_on_hash_match
        self.extractor = extractor or ContentExtractor()
        self._conn: Optional[sqlite3.Connection] = None

    @property
    def connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Cache is not loaded; call load() first")
        return self._conn

    def load(self) -> None:
        if self._conn is not None:
            return
        self._conn = sqlite3.connect(self.db_path)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL;")
        self._conn.execute("PRAGMA synchronous=NORMAL;")
        self._ensure_schema()

    def unload(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "TextCache":
        self.load()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.unload()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        conn = self.connection
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def _ensure_schema(self) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS files (
                    id INTEGER PRIMARY KEY,
                    path TEXT NOT NULL,
                    hash TEXT NOT NULL,
                    mimeType TEXT NOT NULL,
                    textContent TEXT NOT NULL
                )
                """
            )
            conn.execute("CREATE UNIQUE INDEX IF NOT EXISTS hashIndex ON files (hash)")
            conn.execute("CREATE UNIQUE INDEX IF NOT EXISTS pathIndex ON files (path)")

    def _fetch_one(self, column: str, value: str) -> Optional[CacheRecord]:
        row = self.connection.execute(
            f"SELECT * FROM files WHERE {column} = ?", (value,)
        ).fetchone()
        return _row_to_record(row) if row is not None else None

    def get_by_path(self, path: str) -> Optional[List[SearchReference]]:
        record = self._fetch_one("path", path)
        if record is None:
            return None
        return to_search_references(record)

    def get_by_hash(self, hash: str, path: Optional[str] = None) -> Optional[List[SearchReference]]:
        """Look up by content hash.

        When ``path`` differs from the stored path the file was renamed; with
        ``update_path_on_hash_match`` the stored path is repaired. The returned
        references always reflect the record as it was read.
        """
        record = self._fetch_one("hash", hash)
        if record is None:
            return None
        if path and record.path != path and self.update_path_on_hash_match:
            self._repair_path(hash, record.path, path)
        return to_search_references(record)

    def _repair_path(self, hash: str, old_path: str, new_path: str) -> None:
        try:
            with self.transaction() as conn:
                conn.execute("UPDATE files SET path = ? WHERE hash = ?", (new_path, hash))
        except sqlite3.Error as exc:
            LOGGER.warning("Failed to repair path %s -> %s: %s", old_path, new_path, exc)
        else:
            LOGGER.info("Detected rename %s -> %s", old_path, new_path)

    def set(self, reference: InsertionReference) -> List[SearchReference]:
        """Extract and insert a new record. Never overwrites an existing one."""
        record = to_cache_record(reference, self.extractor)
        try:
            with self.transaction() as conn:
                record.id = conn.execute(
                    """
                    INSERT INTO files (path, hash, mimeType, textContent)
                    VALUES (?, ?, ?, ?)
                    """,
                    (record.path, record.hash, record.mime_type, record.text_content),
                ).lastrowid
        except sqlite3.IntegrityError as exc:
            raise self._duplicate_error(record, exc) from exc
        LOGGER.debug("Cached %s (%s)", record.path, record.mime_type)
        return to_search_references(record)

    def _duplicate_error(self, record: CacheRecord, exc: sqlite3.IntegrityError) -> DuplicateKeyError:
        if "files.path" in str(exc) or self._fetch_one("path", record.path) is not None:
            return DuplicateKeyError("path", record.path)
        return DuplicateKeyError("hash", record.hash)

    def unset_by_path(self, path: str) -> None:
        with self.transaction() as conn:
            conn.execute("DELETE FROM files WHERE path = ?", (path,))

    def unset_by_hash(self, hash: str) -> None:
        with self.transaction() as conn:
            conn.execute("DELETE FROM files WHERE hash = ?", (hash,))

    def get_ghost_keys(self, actual_paths: Iterable[str]) -> List[CacheRecord]:
        """Records whose path is not among ``actual_paths``."""
        with self.transaction() as conn:
            conn.execute("CREATE TEMP TABLE IF NOT EXISTS actual_paths (path TEXT PRIMARY KEY)")
            conn.execute("DELETE FROM actual_paths")
            conn.executemany(
                "INSERT OR IGNORE INTO actual_paths (path) VALUES (?)",
                ((str(path),) for path in actual_paths),
            )
            rows = conn.execute(
                """
                SELECT * FROM files
                WHERE path NOT IN (SELECT path FROM actual_paths)
                ORDER BY id
                """
            ).fetchall()
            conn.execute("DELETE FROM actual_paths")
        return [_row_to_record(row) for row in rows]

    def resolve(self, ref_id: str) -> Optional[SearchReference]:
        """Map an index id (a hash, or a hash with a page suffix) to its reference."""
        record = self._fetch_one("hash", ref_id)
        if record is None:
            match = _PAGE_SUFFIX_RE.match(ref_id)
            if match is None:
                return None
            record = self._fetch_one("hash", match.group("hash"))
            if record is None:
                return None
        # A single page shares its id with the aggregate; the aggregate wins.
        for reference in reversed(to_search_references(record)):
            if reference.id == ref_id:
                return reference
        return None

    def all_records(self) -> List[CacheRecord]:
        rows = self.connection.execute("SELECT * FROM files ORDER BY id").fetchall()
        return [_row_to_record(row) for row in rows]

    def count(self) -> int:
        return self.connection.execute("SELECT COUNT(*) FROM files").fetchone()[0]
