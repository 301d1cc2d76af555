"""Shared fixtures for Librarian tests."""

from __future__ import annotations

from pathlib import Path
from typing import Callable
from unittest.mock import MagicMock

import fitz
import pytest

from librarian.cache.store import TextCache
from librarian.ingestion.extractor import ContentExtractor
from librarian.ingestion.ocr import OcrEngine


@pytest.fixture
def make_pdf() -> Callable[..., bytes]:
    """Build a PDF with one line of text per page."""

    def _make_pdf(*pages: str) -> bytes:
        doc = fitz.open()
        for text in pages:
            page = doc.new_page()
            page.insert_text((72, 72), text)
        data = doc.tobytes()
        doc.close()
        return data

    return _make_pdf


@pytest.fixture
def fake_ocr() -> OcrEngine:
    """OCR engine whose RapidOCR instance always reads 'scanned text'."""
    engine = MagicMock(return_value=([[[0, 0], "scanned text", 0.99]], 0.1))
    return OcrEngine(factory=lambda: engine)


@pytest.fixture
def cache(tmp_path: Path, fake_ocr: OcrEngine):
    """Loaded cache without rename repair."""
    store = TextCache(tmp_path / "cache.db", extractor=ContentExtractor(fake_ocr))
    store.load()
    yield store
    store.unload()
