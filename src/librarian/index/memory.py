"""In-memory inverted index persisted as JSON."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Set

from librarian.cache.store import TextCache
from librarian.exceptions import DuplicateKeyError
from librarian.index.base import read_index_file, resolve_ids, write_index_file
from librarian.models import SearchReference
from librarian.utils.text import tokenize

FORMAT_VERSION = 1


class MemoryIndexer:
    """Token -> ids postings kept in memory. Matches require every query term."""

    def __init__(self, cache: TextCache, index_path: Path) -> None:
        self.cache = cache
        self.index_path = Path(index_path)
        self._terms: Dict[str, List[str]] = {}
        self._postings: Dict[str, Set[str]] = {}

    def __len__(self) -> int:
        return len(self._terms)

    def add(self, ref: SearchReference) -> None:
        if ref.id in self._terms:
            raise DuplicateKeyError("index id", ref.id)
        terms = sorted(set(tokenize(ref.title)) | set(tokenize(ref.content)))
        self._insert(ref.id, terms)

    def _insert(self, ref_id: str, terms: List[str]) -> None:
        self._terms[ref_id] = terms
        for term in terms:
            self._postings.setdefault(term, set()).add(ref_id)

    def remove(self, ref_id: str) -> None:
        terms = self._terms.pop(ref_id, None)
        if terms is None:
            return
        for term in terms:
            ids = self._postings.get(term)
            if ids is None:
                continue
            ids.discard(ref_id)
            if not ids:
                del self._postings[term]

    def put(self, ref_id: str, ref: SearchReference) -> None:
        if self.exists(ref_id):
            self.remove(ref_id)
        self.add(ref)

    def exists(self, ref_id: str) -> bool:
        return ref_id in self._terms

    def search(self, query: str) -> List[SearchReference]:
        terms = set(tokenize(query))
        if not terms:
            return []
        matches = set.intersection(*(self._postings.get(term, set()) for term in terms))
        # Insertion order, results are not ranked.
        return resolve_ids(self.cache, (ref_id for ref_id in self._terms if ref_id in matches))

    def serialize(self) -> bytes:
        payload = {"version": FORMAT_VERSION, "documents": self._terms}
        return json.dumps(payload, ensure_ascii=False).encode("utf-8")

    def deserialize(self, data: bytes) -> None:
        payload = json.loads(data.decode("utf-8"))
        if payload.get("version") != FORMAT_VERSION:
            raise ValueError(f"Unsupported index format version: {payload.get('version')}")
        self._terms = {}
        self._postings = {}
        for ref_id, terms in payload["documents"].items():
            self._insert(ref_id, list(terms))

    def load(self) -> None:
        data = read_index_file(self.index_path)
        if data is not None:
            self.deserialize(data)

    def dump(self) -> None:
        write_index_file(self.index_path, self.serialize())
