"""Utility functions for the event intelligence pipeline.

Re-exports the text-cleaning, parsing and datetime helpers so that imports like
`from ..utils import sanitize_llm_text` work as expected.
"""

from .text_cleaning import strip_think_blocks, sanitize_llm_text, limit_words  # noqa: F401
from .datetime_utils import get_current_timestamp, utc_now_iso, days_since  # noqa: F401
from .llm_parsing import extract_structured_json, find_first_json_object  # noqa: F401

__all__ = [
    "strip_think_blocks",
    "sanitize_llm_text",
    "limit_words",
    "get_current_timestamp",
    "utc_now_iso",
    "days_since",
    "extract_structured_json",
    "find_first_json_object",
]
