"""Core Librarian data models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True, slots=True)
class Root:
    """Marks the aggregate reference of a document."""


@dataclass(frozen=True, slots=True)
class Child:
    """Marks a page reference belonging to the aggregate ``parent_id``."""

    parent_id: str


Parent = Union[Root, Child]


@dataclass(slots=True)
class CacheRecord:
    """Row of the ``files`` table.

    ``text_content`` is a JSON array of page strings for PDFs and the raw text
    for every other mime type.
    """

    path: str
    hash: str
    mime_type: str
    text_content: str
    id: Optional[int] = None


@dataclass(slots=True)
class InsertionReference:
    """A file presented for caching: ``id`` is its hash, ``title`` its path."""

    id: str
    title: str
    content: bytes
    mime_type: str


@dataclass(frozen=True, slots=True)
class SearchReference:
    """Searchable unit derived from a cache record."""

    id: str
    title: str
    content: str
    mime_type: str
    parent: Parent
    listable_content: str

    @property
    def parent_id(self) -> Optional[str]:
        if isinstance(self.parent, Child):
            return self.parent.parent_id
        return None

    @property
    def is_root(self) -> bool:
        return isinstance(self.parent, Root)
