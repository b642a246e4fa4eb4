"""Shared helper utilities for cleaning LLM text."""

from __future__ import annotations

import re
from typing import Final, Optional

# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------

def strip_think_blocks(text: str) -> str:
    """Drop any reasoning preamble up to a closing </think> tag and code fences."""
    if not text:
        return text.strip()

    marker: Final[str] = "</think>"
    idx: int = text.rfind(marker)

    after: str = text if idx == -1 else text[idx + len(marker) :]
    cleaned: str = after.strip()

    if cleaned.startswith("```json"):
        cleaned = cleaned[len("```json") :].strip()
    if cleaned.startswith("```"):
        cleaned = cleaned[3:].strip()
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3].strip()

    return cleaned


def limit_words(text: str, max_words: int) -> str:
    """Return at most *max_words* whitespace-separated words of *text*."""
    words = text.split()
    if len(words) <= max_words:
        return text.strip()
    return " ".join(words[:max_words]).rstrip(",;:") + "…"


def sanitize_llm_text(
    text: str,
    *,
    remove_citations: bool = True,
    remove_markdown: bool = False,
    max_words: Optional[int] = None,
) -> str:
    """Standardise LLM prose before it is stored on a record.

    Parameters
    ----------
    text : str
        Raw LLM response.
    remove_citations : bool, default True
        Remove numeric (``[1]``) and textual (``[Reuters]``) citations.
    remove_markdown : bool, default False
        Strip headings, list bullets and emphasis.
    max_words : int, optional
        Hard cap on the number of words kept.
    """
    cleaned: str = strip_think_blocks(text)

    if remove_citations:
        cleaned = re.sub(r"\[\d+\]", "", cleaned)
        cleaned = re.sub(r"\[[A-Za-z][^\]]+\]", "", cleaned)

    if remove_markdown:
        cleaned = re.sub(r"^#{1,6}\s*", "", cleaned, flags=re.MULTILINE)
        cleaned = re.sub(r"^\s*[-*+]\s+", "", cleaned, flags=re.MULTILINE)
        cleaned = re.sub(r"^\s*\d+\.\s+", "", cleaned, flags=re.MULTILINE)
        cleaned = re.sub(r"(\*\*|__)", "", cleaned)

    cleaned = re.sub(r"[ \t]{2,}", " ", cleaned).strip()

    if max_words is not None:
        cleaned = limit_words(cleaned, max_words)

    return cleaned

__all__ = ["strip_think_blocks", "sanitize_llm_text", "limit_words"]
