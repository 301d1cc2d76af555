"""Errors raised by the cache, the extractors and the indexers."""

from __future__ import annotations


class LibrarianError(Exception):
    """Base class for Librarian errors."""


class DuplicateKeyError(LibrarianError):
    """A unique key (``path``, ``hash`` or an index id) already exists."""

    def __init__(self, field: str, value: str) -> None:
        super().__init__(f"Duplicate {field}: {value}")
        self.field = field
        self.value = value


class ExtractionError(LibrarianError):
    """Text could not be extracted from the supplied bytes."""

    def __init__(self, mime_type: str, message: str) -> None:
        super().__init__(f"Cannot extract {mime_type}: {message}")
        self.mime_type = mime_type
