"""Fact extraction: raw content in, factual Event records out.

This is the only stage that receives the retrieval (Tavily) client. It
extracts who/what/where/when and nothing else: no impact, no horizon, no
importance filtering.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from tavily import AsyncTavilyClient

from ..models.envelope import Response, Stopwatch
from ..models.event import Event, ExtractionInput, Source, SourceMeta
from ..models.signal import clamp_score
from ..utils.datetime_utils import utc_now_iso
from ..utils.llm_parsing import extract_structured_json
from .inference import InferenceClient

# ---------------------------------------------------------------------------
# Local extraction + Tavily settings (only used by this stage)
# ---------------------------------------------------------------------------
MAX_CONTENT_CHARS: int = 20000
MAX_SNIPPET_CHARS: int = 2000
HEADLINE_MAX_CHARS: int = 200
DEFAULT_DATA_CONFIDENCE: float = 0.5

TAVILY_SEARCH_DEPTH: str = "advanced"
TAVILY_MAX_RESULTS: int = 50
# Tavily's own relevance score; a data-quality floor, not an importance filter
TAVILY_MIN_SCORE: float = 0.3

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a factual event extractor. Extract ONLY verifiable facts from raw content."
    " NO interpretation, NO scoring, NO business logic. Return ONLY valid JSON."
)

EXTRACTION_PROMPT = """You are a factual event extractor. Your task is to extract ONLY verifiable facts from raw content about a current event.

RULES (FACTS ONLY):
1. Return ONLY valid JSON, no markdown, no code blocks, no explanations
2. Use null (not "null" string) for unknown information
3. Summary must be max 2 sentences, factual only (who, what, where, when)
4. NO interpretation, NO impact assessment, NO priority scoring
5. actors must be an array (can be empty [])
6. If information is ambiguous or unverified, use null
7. confidence is ONLY about data quality (0.0-1.0), NOT about event importance

JSON Schema (return ONLY this structure):
{{
  "event_type": "Geopolitical | Industrial | SupplyChain | Regulatory | Security | Market",
  "event_subtype": "string|null",
  "summary": "max 2 sentences, factual description (who, what, where, when)",
  "country": "string|null",
  "region": "string|null",
  "sector": "string|null",
  "actors": ["string"],
  "confidence": 0.0
}}

Do NOT include impact_score, why_it_matters, first_order_effect or second_order_effect.

Raw Content:
{content}

Return ONLY the JSON object, nothing else."""


def _data_confidence(value: Any) -> float:
    try:
        conf = float(value)
    except (TypeError, ValueError):
        return DEFAULT_DATA_CONFIDENCE
    return max(0.0, min(1.0, conf))


def _as_list(value: Any) -> List[str]:
    """A bare string is one item; anything else that is not a list is dropped."""
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item]


def _build_event(extracted: Dict[str, Any], source: SourceMeta) -> Event:
    """Map the model's JSON onto a fact record."""
    summary: str = str(extracted["summary"]).strip()
    published = source.published_at or utc_now_iso()
    region = extracted.get("region") or None
    country = extracted.get("country") or None
    sector = extracted.get("sector") or None
    actors = _as_list(extracted.get("actors"))

    return Event(
        headline=summary[:HEADLINE_MAX_CHARS],
        description=summary,
        date=published,
        last_updated=published,
        event_type=str(extracted["event_type"]),
        event_subtype=extracted.get("event_subtype") or None,
        location=country or region,
        country=country,
        region=region,
        scope="regional" if region else "global",
        actors=actors,
        sectors=[sector] if sector else [],
        sources=[Source(name=source.name, url=source.url)],
        confidence=clamp_score(_data_confidence(extracted.get("confidence")) * 100),
        source_count=1,
    )


class FactExtractor:
    """Turns raw content into :class:`Event` records.

    Parameters
    ----------
    inference
        Client for the inference service; ``None`` makes every call fail with
        a configuration error.
    retrieval
        Tavily client used by :meth:`search_and_extract`. No other component
        is given this handle.
    """

    def __init__(
        self,
        inference: Optional[InferenceClient],
        retrieval: Optional[AsyncTavilyClient] = None,
    ) -> None:
        self._inference = inference
        self._retrieval = retrieval

    async def extract(self, item: ExtractionInput) -> Response[Event]:
        """Extract a single fact record; ``data`` is ``None`` on any failure."""
        timer = Stopwatch()

        if not item.raw_content or not item.raw_content.strip():
            return timer.response(error="Raw content is required")

        if self._inference is None:
            return timer.response(error="Inference client not configured")

        try:
            prompt = EXTRACTION_PROMPT.format(content=item.raw_content[:MAX_CONTENT_CHARS])
            completion = await self._inference.complete(
                prompt,
                SYSTEM_PROMPT,
                temperature=0.1,
                max_tokens=1000,
                json_output=True,
            )

            try:
                extracted = extract_structured_json(completion.text)
            except ValueError:
                logger.warning("Unparseable extraction response for source %s", item.source.url)
                return timer.response(error="Failed to parse inference response")

            if not extracted.get("event_type") or not extracted.get("summary"):
                return timer.response(error="Invalid event data: missing required fields")

            event = _build_event(extracted, item.source)
            logger.info("Extracted %s event %s from %s", event.event_type, event.id, item.source.name)
            return timer.response(
                event,
                tokens_used=completion.tokens_used,
                confidence=_data_confidence(extracted.get("confidence")),
            )
        except asyncio.TimeoutError:
            logger.error("Extraction timed out for source %s", item.source.url)
            return timer.response(error="Inference call timed out")
        except Exception as exc:
            logger.error("Extraction failed for source %s: %s", item.source.url, exc)
            return timer.response(error=str(exc) or "Failed to extract event")

    async def extract_many(self, items: Sequence[ExtractionInput]) -> Response[List[Event]]:
        """Extract every input concurrently; failures are reported, not raised."""
        timer = Stopwatch()

        results = await asyncio.gather(
            *(self.extract(item) for item in items),
            return_exceptions=True,
        )

        events: List[Event] = []
        errors: List[str] = []
        tokens = 0
        for index, result in enumerate(results):
            if isinstance(result, BaseException):
                errors.append(f"Input {index}: {result}")
                continue
            if result.data is not None:
                events.append(result.data)
            elif result.error:
                errors.append(f"Input {index}: {result.error}")
            tokens += result.metadata.tokens_used or 0

        logger.info("Extracted %d of %d inputs (%d failed)", len(events), len(items), len(errors))
        return timer.response(
            events,
            "; ".join(errors) if errors else None,
            tokens_used=tokens or None,
        )

    async def search_and_extract(
        self,
        query: str,
        *,
        max_results: int = TAVILY_MAX_RESULTS,
        min_score: float = TAVILY_MIN_SCORE,
    ) -> Response[List[Event]]:
        """Search Tavily for *query* and extract a fact record from every hit.

        Hits under *min_score* are dropped as low-quality data. Everything
        else is extracted regardless of perceived importance.
        """
        timer = Stopwatch()

        if self._retrieval is None:
            return timer.response([], "Retrieval client not configured")

        try:
            logger.info("Searching Tavily for: %s", query)
            tavily_resp = await self._retrieval.search(
                query=query,
                search_depth=TAVILY_SEARCH_DEPTH,
                max_results=max_results,
                include_answer=True,
                include_raw_content=True,
                include_images=False,
            )
            tavily_results = tavily_resp.get("results", [])

            if not tavily_results:
                logger.warning("Tavily returned no results for query: %s", query)
                return timer.response([], "No results from retrieval service")

            kept = [r for r in tavily_results if (r.get("score") or 0) >= min_score][:max_results]
            logger.info(
                "Tavily returned %d results, %d above score %.2f",
                len(tavily_results),
                len(kept),
                min_score,
            )

            answer: Optional[str] = tavily_resp.get("answer")
            inputs = [_result_to_input(result, answer) for result in kept]
            extracted = await self.extract_many(inputs)

            return timer.response(
                extracted.data or [],
                extracted.error,
                tokens_used=extracted.metadata.tokens_used,
            )
        except Exception as exc:
            logger.error("Search extraction failed for %r: %s", query, exc)
            return timer.response([], str(exc) or "Failed to search and extract events")


def _result_to_input(result: Dict[str, Any], answer: Optional[str]) -> ExtractionInput:
    published = result.get("published_date") or result.get("publishedDate")
    body = (result.get("content") or result.get("raw_content") or "")[:MAX_SNIPPET_CHARS]
    parts = []
    if answer:
        parts.append(f"Search summary:\n{answer}\n\n---")
    parts.append(
        f"Title: {result.get('title') or 'No title'}\n"
        f"Published: {published or 'Unknown date'}\n"
        f"URL: {result.get('url') or 'No URL'}\n"
        f"Content: {body}"
    )
    return ExtractionInput(
        raw_content="\n\n".join(parts),
        source=SourceMeta(
            name=result.get("title") or "Unknown Source",
            url=result.get("url") or "",
            published_at=published or utc_now_iso(),
        ),
        title=result.get("title"),
    )

__all__ = ["FactExtractor"]
