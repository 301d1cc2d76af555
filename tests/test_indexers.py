"""Tests for the indexer implementations."""

from __future__ import annotations

from pathlib import Path

import pytest

from librarian.cache.store import TextCache
from librarian.exceptions import DuplicateKeyError
from librarian.index import FTSIndexer, Indexer, MemoryIndexer, create_indexer
from librarian.models import InsertionReference


@pytest.fixture(params=["memory", "fts"])
def indexer(request, cache: TextCache, tmp_path: Path) -> Indexer:
    return create_indexer(request.param, cache, tmp_path / f"index-{request.param}")


def _cache_text(cache: TextCache, hash: str, path: str, content: str):
    return cache.set(
        InsertionReference(id=hash, title=path, content=content.encode(), mime_type="text/plain")
    )


def _index_all(indexer: Indexer, references) -> None:
    for reference in references:
        indexer.put(reference.id, reference)


class TestCreateIndexer:
    def test_backends(self, cache: TextCache, tmp_path: Path) -> None:
        assert isinstance(create_indexer("memory", cache, tmp_path / "i"), MemoryIndexer)
        assert isinstance(create_indexer("fts", cache, tmp_path / "i"), FTSIndexer)

    def test_unknown_backend(self, cache: TextCache, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="Unknown index backend"):
            create_indexer("lucene", cache, tmp_path / "i")  # type: ignore[arg-type]

    def test_implementations_satisfy_protocol(self, indexer: Indexer) -> None:
        assert isinstance(indexer, Indexer)


class TestIndexerOperations:
    """Behaviour shared by every backend."""

    def test_add_and_exists(self, indexer: Indexer, cache: TextCache) -> None:
        root = _cache_text(cache, "h1", "notes.txt", "quarterly report")[-1]

        assert not indexer.exists("h1")
        indexer.add(root)
        assert indexer.exists("h1")

    def test_add_duplicate_fails(self, indexer: Indexer, cache: TextCache) -> None:
        root = _cache_text(cache, "h1", "notes.txt", "quarterly report")[-1]
        indexer.add(root)

        with pytest.raises(DuplicateKeyError):
            indexer.add(root)

    def test_remove(self, indexer: Indexer, cache: TextCache) -> None:
        root = _cache_text(cache, "h1", "notes.txt", "quarterly report")[-1]
        indexer.add(root)

        indexer.remove("h1")

        assert not indexer.exists("h1")
        assert indexer.search("quarterly") == []

    def test_remove_missing_is_noop(self, indexer: Indexer) -> None:
        indexer.remove("never-added")
        assert not indexer.exists("never-added")

    def test_put_replaces(self, indexer: Indexer, cache: TextCache) -> None:
        old_root = _cache_text(cache, "h1", "notes.txt", "old words")[-1]
        indexer.put("h1", old_root)
        cache.unset_by_hash("h1")
        new_root = _cache_text(cache, "h1", "notes.txt", "fresh words")[-1]

        indexer.put("h1", new_root)

        assert indexer.search("old") == []
        assert [ref.id for ref in indexer.search("fresh")] == ["h1"]

    def test_search_requires_all_terms(self, indexer: Indexer, cache: TextCache) -> None:
        _index_all(indexer, _cache_text(cache, "h1", "a.txt", "red apple pie"))
        _index_all(indexer, _cache_text(cache, "h2", "b.txt", "green apple"))

        assert {ref.id for ref in indexer.search("apple")} == {"h1", "h2"}
        assert [ref.id for ref in indexer.search("APPLE pie")] == ["h1"]
        assert indexer.search("banana") == []

    def test_underscore_splits_words(self, indexer: Indexer, cache: TextCache) -> None:
        """Every backend finds the parts of an underscored word."""
        _index_all(indexer, _cache_text(cache, "h1", "a.txt", "call foo_bar now"))

        assert [ref.id for ref in indexer.search("foo")] == ["h1"]
        assert [ref.id for ref in indexer.search("foo_bar")] == ["h1"]

    def test_search_matches_titles(self, indexer: Indexer, cache: TextCache) -> None:
        _index_all(indexer, _cache_text(cache, "h1", "reports/budget.txt", "numbers"))
        assert [ref.title for ref in indexer.search("budget")] == ["reports/budget.txt"]

    def test_empty_query(self, indexer: Indexer, cache: TextCache) -> None:
        _index_all(indexer, _cache_text(cache, "h1", "a.txt", "text"))
        assert indexer.search("   ") == []
        assert indexer.search('"*') == []

    def test_search_resolves_pages(self, indexer: Indexer, cache: TextCache, make_pdf) -> None:
        references = cache.set(
            InsertionReference(
                id="P", title="book.pdf", content=make_pdf("intro chapter", "summary chapter"),
                mime_type="application/pdf",
            )
        )
        _index_all(indexer, references)

        results = indexer.search("summary")

        assert [(ref.id, ref.parent_id) for ref in results] == [("P-2", "P"), ("P", None)]
        assert results[0].content == "summary chapter"

    def test_search_skips_uncached_ids(self, indexer: Indexer, cache: TextCache) -> None:
        _index_all(indexer, _cache_text(cache, "h1", "a.txt", "orphan text"))
        cache.unset_by_hash("h1")

        assert indexer.search("orphan") == []


class TestIndexerPersistence:
    def test_load_without_file_starts_empty(self, indexer: Indexer) -> None:
        indexer.load()
        assert indexer.search("anything") == []

    def test_dump_and_load(self, indexer: Indexer, cache: TextCache, tmp_path: Path) -> None:
        _index_all(indexer, _cache_text(cache, "h1", "a.txt", "persistent words"))
        indexer.dump()

        restored = create_indexer(
            "memory" if isinstance(indexer, MemoryIndexer) else "fts", cache, indexer.index_path
        )
        restored.load()

        assert restored.exists("h1")
        assert [ref.id for ref in restored.search("persistent")] == ["h1"]

    def test_dump_creates_parent(self, cache: TextCache, tmp_path: Path) -> None:
        target = tmp_path / "nested" / "dir" / "index.json"
        indexer = MemoryIndexer(cache, target)
        indexer.dump()
        assert target.exists()

    def test_restored_index_is_writable(self, indexer: Indexer, cache: TextCache) -> None:
        _index_all(indexer, _cache_text(cache, "h1", "a.txt", "first"))
        data = indexer.serialize()
        _index_all(indexer, _cache_text(cache, "h2", "b.txt", "second"))

        indexer.deserialize(data)

        assert not indexer.exists("h2")
        root = cache.get_by_hash("h2")[-1]
        indexer.add(root)
        assert [ref.id for ref in indexer.search("second")] == ["h2"]


class TestMemoryIndexerFormat:
    def test_rejects_unknown_version(self, cache: TextCache, tmp_path: Path) -> None:
        indexer = MemoryIndexer(cache, tmp_path / "index.json")
        with pytest.raises(ValueError, match="version"):
            indexer.deserialize(b'{"version": 99, "documents": {}}')

    def test_len(self, cache: TextCache, tmp_path: Path) -> None:
        indexer = MemoryIndexer(cache, tmp_path / "index.json")
        _index_all(indexer, _cache_text(cache, "h1", "a.txt", "x"))
        # page and aggregate share the bare id for single-page files
        assert len(indexer) == 1
