"""Mapping between cache records and search references."""

from __future__ import annotations

import json
from typing import List

from librarian.ingestion.extractor import PDF_MIME_TYPE, ContentExtractor
from librarian.models import CacheRecord, Child, InsertionReference, Root, SearchReference
from librarian.utils.text import pages_to_plain_text


def _append_page_number(value: str, index: int, length: int) -> str:
    if length == 1:
        return value
    return f"{value}-{index + 1}"


def decode_pages(record: CacheRecord) -> List[str]:
    """Page texts stored in ``record.text_content``."""
    if record.mime_type == PDF_MIME_TYPE:
        return [str(page) for page in json.loads(record.text_content)]
    return [record.text_content]


def to_search_references(record: CacheRecord) -> List[SearchReference]:
    """One reference per page followed by the aggregate reference."""
    pages = decode_pages(record)
    length = len(pages)
    references = [
        SearchReference(
            id=_append_page_number(record.hash, index, length),
            title=_append_page_number(record.path, index, length),
            content=page,
            mime_type=record.mime_type,
            parent=Child(record.hash),
            listable_content=page,
        )
        for index, page in enumerate(pages)
    ]
    references.append(
        SearchReference(
            id=record.hash,
            title=record.path,
            content=pages_to_plain_text(pages),
            mime_type=record.mime_type,
            parent=Root(),
            listable_content=pages[0] if pages else "",
        )
    )
    return references


def to_cache_record(reference: InsertionReference, extractor: ContentExtractor) -> CacheRecord:
    """Extract the text of ``reference`` into a record without an id."""
    return CacheRecord(
        path=reference.title,
        hash=reference.id,
        mime_type=reference.mime_type,
        text_content=extractor.serialize(reference.content, reference.mime_type),
    )
