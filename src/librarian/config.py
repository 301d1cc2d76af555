"""Application configuration defaults."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

IndexBackend = Literal["memory", "fts"]


def _get_default_data_dir() -> Path:
    """Prefer a local ``data/`` directory, fall back to the user's Documents."""
    local_dir = Path("data")
    if local_dir.is_dir():
        return local_dir
    return Path.home() / "Documents" / "Librarian"


@dataclass(slots=True)
class AppConfig:
    cache_path: Path | None = None
    index_path: Path | None = None
    index_backend: IndexBackend = "memory"
    update_path_on_hash_match: bool = True

    def __post_init__(self) -> None:
        if self.cache_path is None:
            self.cache_path = _get_default_data_dir() / "librarian-cache.db"
        if self.index_path is None:
            suffix = ".json" if self.index_backend == "memory" else ".db"
            self.index_path = Path(self.cache_path).with_name(f"librarian-index{suffix}")

    def resolve_cache_path(self, base_dir: Path | None = None) -> Path:
        return _resolve(Path(self.cache_path), base_dir)

    def resolve_index_path(self, base_dir: Path | None = None) -> Path:
        return _resolve(Path(self.index_path), base_dir)


def _resolve(path: Path, base_dir: Path | None) -> Path:
    if path.is_absolute() or base_dir is None:
        return path
    return base_dir / path
