"""Keeps the text cache and an indexer in step with a set of files."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Sequence

from librarian.cache.store import TextCache
from librarian.exceptions import LibrarianError
from librarian.index.base import Indexer
from librarian.models import InsertionReference, SearchReference
from librarian.utils.files import compute_sha256, guess_mime_type

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class SyncStats:
    inserted: int = 0
    updated: int = 0
    renamed: int = 0
    skipped: int = 0
    failed: int = 0
    processed_files: list[Path] = field(default_factory=list)

    def increment(self, status: str, path: Path) -> None:
        if status == "inserted":
            self.inserted += 1
        elif status == "updated":
            self.updated += 1
        elif status == "renamed":
            self.renamed += 1
        elif status == "skipped":
            self.skipped += 1
        else:
            self.failed += 1
        self.processed_files.append(path)


class Synchronizer:
    """Coordinates the text cache and an indexer for a batch of files."""

    def __init__(self, cache: TextCache, indexer: Indexer) -> None:
        self.cache = cache
        self.indexer = indexer

    def sync(self, paths: Sequence[Path]) -> SyncStats:
        stats = SyncStats()
        for path in paths:
            try:
                LOGGER.info("Processing: %s", path)
                status = self._sync_single(path)
            except (LibrarianError, OSError) as exc:
                LOGGER.error("Failed to process %s: %s", path, exc)
                status = "failed"
            stats.increment(status, path)
        return stats

    def _sync_single(self, path: Path) -> str:
        key = str(path)
        sha256 = compute_sha256(path)

        cached = self.cache.get_by_path(key)
        status = "inserted"
        if cached is not None:
            root = _root_of(cached)
            if root.id == sha256:
                # Cached but possibly never indexed, e.g. an interrupted run.
                if not self.indexer.exists(root.id):
                    self._index(cached)
                return "skipped"
            # Same path, new content: the old record goes away.
            self._unindex(cached)
            self.cache.unset_by_path(key)
            status = "updated"

        known = self.cache.get_by_hash(sha256)
        if known is not None:
            known_path = _root_of(known).title
            if not self.cache.update_path_on_hash_match:
                LOGGER.warning(
                    "%s has the content of %s; enable rename repair to move it", key, known_path
                )
                return "skipped"
            if Path(known_path).exists():
                LOGGER.warning("%s duplicates %s; keeping the cached path", key, known_path)
                return "skipped"
            self.cache.get_by_hash(sha256, key)
            refreshed = self.cache.get_by_path(key) or known
            self._unindex(known)
            self._index(refreshed)
            return "renamed"

        references = self.cache.set(
            InsertionReference(
                id=sha256,
                title=key,
                content=path.read_bytes(),
                mime_type=guess_mime_type(path),
            )
        )
        self._index(references)
        return status

    def prune(self, actual_paths: Iterable[Path | str]) -> int:
        """Drop cached records, and their index entries, for vanished files."""
        ghosts = self.cache.get_ghost_keys(str(path) for path in actual_paths)
        for record in ghosts:
            references = self.cache.get_by_hash(record.hash)
            if references is not None:
                self._unindex(references)
            self.cache.unset_by_hash(record.hash)
            LOGGER.info("Pruned %s", record.path)
        return len(ghosts)

    def _index(self, references: List[SearchReference]) -> None:
        for reference in references:
            self.indexer.put(reference.id, reference)

    def _unindex(self, references: List[SearchReference]) -> None:
        for reference in references:
            self.indexer.remove(reference.id)


def _root_of(references: List[SearchReference]) -> SearchReference:
    return next(reference for reference in references if reference.is_root)
