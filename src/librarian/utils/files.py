"""Utility helpers for working with files."""

from __future__ import annotations

import hashlib
import mimetypes
from pathlib import Path
from typing import Iterable, Iterator

SUPPORTED_SUFFIXES = frozenset({".pdf", ".png", ".jpg", ".jpeg", ".txt", ".md"})

_FALLBACK_MIME_TYPE = "text/plain"


def iter_supported_paths(inputs: Iterable[Path]) -> Iterator[Path]:
    """Yield supported file paths from input paths, descending into directories."""
    for item in inputs:
        if item.is_dir():
            yield from iter_supported_paths(
                sorted(child for child in item.rglob("*") if child.is_file())
            )
        elif item.is_file() and item.suffix.lower() in SUPPORTED_SUFFIXES:
            yield item


def compute_sha256(path: Path) -> str:
    """Compute SHA256 hash for a file."""
    sha = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(1 << 20), b""):
            sha.update(chunk)
    return sha.hexdigest()


def guess_mime_type(path: Path) -> str:
    """Mime type from the file suffix, ``text/plain`` when unknown."""
    mime_type, _ = mimetypes.guess_type(path.name)
    return mime_type or _FALLBACK_MIME_TYPE
