"""Full-text indexers over cached search references."""

from __future__ import annotations

from pathlib import Path

from librarian.cache.store import TextCache
from librarian.config import IndexBackend
from librarian.index.base import Indexer
from librarian.index.fts import FTSIndexer
from librarian.index.memory import MemoryIndexer


def create_indexer(backend: IndexBackend, cache: TextCache, index_path: Path) -> Indexer:
    """Build the indexer implementation named by ``backend``."""
    if backend == "memory":
        return MemoryIndexer(cache, index_path)
    if backend == "fts":
        return FTSIndexer(cache, index_path)
    raise ValueError(f"Unknown index backend: {backend}")


__all__ = ["Indexer", "MemoryIndexer", "FTSIndexer", "create_indexer"]
