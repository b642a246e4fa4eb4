"""Utilities for parsing structured outputs returned by LLM calls.

The inference service is asked for a single JSON object, but models still
occasionally wrap it in prose or code fences. The helpers here recover the
first object from such responses.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Optional

from .text_cleaning import strip_think_blocks

__all__ = ["extract_structured_json", "find_first_json_object"]


def find_first_json_object(text: str) -> Optional[str]:
    """Return the first balanced ``{...}`` snippet in *text*.

    Braces inside JSON string literals are ignored so that values such as
    ``"a {b} c"`` do not unbalance the scan.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for idx in range(start, len(text)):
            char = text[idx]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start : idx + 1]
        # unbalanced from this brace, try the next one
        start = text.find("{", start + 1)
    return None


def extract_structured_json(response_text: str) -> Dict[str, Any]:
    """Robustly extract a JSON object from an LLM response.

    Parameters
    ----------
    response_text
        The raw message content returned by the inference service.

    Returns
    -------
    dict[str, Any]
        The parsed JSON object.

    Raises
    ------
    ValueError
        If no JSON object can be located in *response_text*.
    """

    cleaned: str = strip_think_blocks(response_text or "").strip()

    # 1. Strict parse (fast path)
    try:
        parsed = json.loads(cleaned)
        if isinstance(parsed, dict):
            return parsed
    except json.JSONDecodeError:
        pass

    # 2. Fenced block, with or without explicit `json` label
    fenced = re.search(r"```(?:json)?\s*(\{.*?\})\s*```", cleaned, flags=re.DOTALL | re.IGNORECASE)
    if fenced:
        try:
            parsed = json.loads(fenced.group(1))
            if isinstance(parsed, dict):
                return parsed
        except json.JSONDecodeError:
            cleaned = fenced.group(1)  # Narrow search space.

    # 3. First balanced object embedded in prose
    snippet = find_first_json_object(cleaned)
    if snippet is not None:
        try:
            parsed = json.loads(snippet)
            if isinstance(parsed, dict):
                return parsed
        except json.JSONDecodeError:
            pass

    raise ValueError("Could not locate a JSON object in inference response")
