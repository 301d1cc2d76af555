"""Text helpers for page normalisation and tokenisation."""

from __future__ import annotations

import re
from typing import Iterable, List

# Underscores separate words, matching the FTS5 unicode61 tokenizer.
_TOKEN_RE = re.compile(r"[^\W_]+", re.UNICODE)


def normalize_whitespace(lines: Iterable[str]) -> str:
    """Collapse whitespace and join lines."""
    return "\n".join(line.strip() for line in lines if line.strip())


def pages_to_plain_text(pages: Iterable[str]) -> str:
    """Join page texts into a single document text."""
    return "\n".join(pages)


def tokenize(text: str) -> List[str]:
    """Lower-cased word tokens of ``text``."""
    return [token.lower() for token in _TOKEN_RE.findall(text)]
