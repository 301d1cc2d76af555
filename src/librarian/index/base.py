"""Indexer capability shared by every index implementation."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Protocol, runtime_checkable

from librarian.cache.store import TextCache
from librarian.models import SearchReference

LOGGER = logging.getLogger(__name__)


@runtime_checkable
class Indexer(Protocol):
    """Stores reference ids and answers free-text queries.

    ``add`` is not idempotent: adding an id that is already indexed raises
    ``DuplicateKeyError``. Use ``put`` to replace.
    """

    def add(self, ref: SearchReference) -> None: ...

    def remove(self, ref_id: str) -> None: ...

    def put(self, ref_id: str, ref: SearchReference) -> None: ...

    def search(self, query: str) -> List[SearchReference]: ...

    def exists(self, ref_id: str) -> bool: ...

    def serialize(self) -> bytes: ...

    def deserialize(self, data: bytes) -> None: ...

    def load(self) -> None: ...

    def dump(self) -> None: ...


def read_index_file(index_path: Path) -> Optional[bytes]:
    """Contents of a dumped index, ``None`` when nothing was dumped yet."""
    if not index_path.exists():
        LOGGER.debug("No index at %s, starting empty", index_path)
        return None
    return index_path.read_bytes()


def write_index_file(index_path: Path, data: bytes) -> None:
    index_path.parent.mkdir(parents=True, exist_ok=True)
    index_path.write_bytes(data)


def resolve_ids(cache: TextCache, ref_ids: Iterable[str]) -> List[SearchReference]:
    """Look indexed ids up in the cache, dropping ids it no longer holds."""
    results: List[SearchReference] = []
    for ref_id in ref_ids:
        reference = cache.resolve(ref_id)
        if reference is None:
            LOGGER.debug("Indexed id %s is not cached anymore", ref_id)
            continue
        results.append(reference)
    return results
