"""OCR engine handle.

The recognition engine is expensive to build, so one ``OcrEngine`` is created
by the entry point and passed to every extractor that needs it. The underlying
RapidOCR instance is built on first use and reused until ``close()``.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class OcrResult:
    text: str


def _default_factory() -> Any:
    # RapidOCR (ONNX Runtime) is imported lazily, it pulls in onnxruntime.
    from rapidocr_onnxruntime import RapidOCR

    return RapidOCR()


class OcrEngine:
    """Lazily initialised, lock-guarded wrapper around RapidOCR.

    RapidOCR keeps per-call state on the instance, so ``recognize`` holds a lock
    for the whole recognition.
    """

    def __init__(self, factory: Optional[Callable[[], Any]] = None) -> None:
        self._factory = factory or _default_factory
        self._engine: Any = None
        self._lock = threading.Lock()

    @property
    def initialized(self) -> bool:
        return self._engine is not None

    def _ensure_engine(self) -> Any:
        if self._engine is None:
            LOGGER.info("Initialising OCR engine")
            self._engine = self._factory()
        return self._engine

    def recognize(self, image: bytes) -> OcrResult:
        """Return the text found in ``image`` (encoded PNG/JPEG bytes)."""
        with self._lock:
            engine = self._ensure_engine()
            # RapidOCR returns (result, elapsed); result is a list of [box, text, score]
            result, _ = engine(image)
        if not result:
            return OcrResult(text="")
        lines = [str(item[1]) for item in result if item and len(item) >= 2 and item[1]]
        return OcrResult(text="\n".join(lines).strip())

    def close(self) -> None:
        with self._lock:
            self._engine = None

    def __enter__(self) -> "OcrEngine":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
