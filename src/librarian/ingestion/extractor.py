"""Text extraction from raw file bytes.

PDFs are read page by page with PyMuPDF (fitz), images go through the shared
OCR engine, everything else is decoded as UTF-8.
"""

from __future__ import annotations

import json
import logging
from typing import List, Optional, Union

import fitz  # PyMuPDF

from librarian.exceptions import ExtractionError
from librarian.ingestion.ocr import OcrEngine
from librarian.utils.text import normalize_whitespace

LOGGER = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
IMAGE_MIME_TYPES = frozenset({"image/jpeg", "image/png"})

ExtractedText = Union[str, List[str]]


def read_pdf_pages(data: bytes) -> List[str]:
    """Return the text of every page of a PDF, in page order."""
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except Exception as exc:
        raise ExtractionError(PDF_MIME_TYPE, str(exc)) from exc

    try:
        pages: List[str] = []
        for index in range(len(doc)):
            try:
                text = doc[index].get_text() or ""
            except Exception as exc:
                raise ExtractionError(PDF_MIME_TYPE, f"page {index + 1}: {exc}") from exc
            pages.append(normalize_whitespace(text.splitlines()))
        return pages
    finally:
        doc.close()


class ContentExtractor:
    """Turns file bytes plus a declared mime type into serialisable text."""

    def __init__(self, ocr: Optional[OcrEngine] = None) -> None:
        self.ocr = ocr

    def extract(self, data: bytes, mime_type: str) -> ExtractedText:
        if mime_type == PDF_MIME_TYPE:
            pages = read_pdf_pages(data)
            LOGGER.debug("Extracted %d PDF pages", len(pages))
            return pages
        if mime_type in IMAGE_MIME_TYPES:
            return self._recognize(data, mime_type)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ExtractionError(mime_type, str(exc)) from exc

    def serialize(self, data: bytes, mime_type: str) -> str:
        """Extract and encode for the ``textContent`` column."""
        extracted = self.extract(data, mime_type)
        if isinstance(extracted, list):
            return json.dumps(extracted, ensure_ascii=False)
        return extracted

    def _recognize(self, data: bytes, mime_type: str) -> str:
        if self.ocr is None:
            raise ExtractionError(mime_type, "no OCR engine configured")
        try:
            return self.ocr.recognize(data).text
        except Exception as exc:
            raise ExtractionError(mime_type, str(exc)) from exc
