"""Fact records produced by the extraction stage and scored records consumed by synthesis."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional
from uuid import uuid4


def new_event_id() -> str:
    return f"event-{uuid4().hex[:12]}"


@dataclass(frozen=True, slots=True)
class Source:
    name: str
    url: str = ""


@dataclass(frozen=True, slots=True)
class SourceMeta:
    """Provenance of a piece of raw content."""

    name: str
    url: str = ""
    published_at: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ExtractionInput:
    raw_content: str
    source: SourceMeta
    title: Optional[str] = None
    author: Optional[str] = None
    language: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Event:
    """A factual, non-interpretive record extracted from raw content.

    ``impact`` and ``horizon`` cannot be passed to the constructor: they stay
    ``None`` on the fact record and are only ever derived on a Signal.
    """

    headline: str
    description: str
    date: str
    last_updated: str
    id: str = field(default_factory=new_event_id)
    type: str = "event"
    event_type: Optional[str] = None
    event_subtype: Optional[str] = None
    location: Optional[str] = None
    country: Optional[str] = None
    region: Optional[str] = None
    scope: str = "global"
    actors: List[str] = field(default_factory=list)
    sectors: List[str] = field(default_factory=list)
    sources: List[Source] = field(default_factory=list)
    confidence: int = 0  # data quality, 0-100
    source_count: int = 1
    impact: Optional[int] = field(default=None, init=False)
    horizon: Optional[str] = field(default=None, init=False)


@dataclass(frozen=True, slots=True)
class CausalChain:
    time_horizon: Optional[str] = None
    affected_sectors: List[str] = field(default_factory=list)
    affected_regions: List[str] = field(default_factory=list)


@dataclass(slots=True)
class ScoredEvent:
    """An event after downstream enrichment attached interpretive scores.

    Scores are on the 0-1 scale. This is what signal synthesis groups.
    """

    id: str
    summary: str
    event_type: Optional[str] = None
    sector: Optional[str] = None
    region: Optional[str] = None
    country: Optional[str] = None
    actors: List[str] = field(default_factory=list)
    why_it_matters: Optional[str] = None
    impact_score: Optional[float] = None
    confidence: Optional[float] = None
    created_at: Optional[str] = None
    causal_chains: List[CausalChain] = field(default_factory=list)

    @classmethod
    def from_document(cls, doc: dict) -> "ScoredEvent":
        """Build from a stored document, tolerating extra keys."""
        chains = [
            CausalChain(
                time_horizon=chain.get("time_horizon"),
                affected_sectors=list(chain.get("affected_sectors") or []),
                affected_regions=list(chain.get("affected_regions") or []),
            )
            for chain in doc.get("causal_chains") or []
        ]
        return cls(
            id=str(doc.get("id") or doc.get("_id")),
            summary=doc.get("summary") or "",
            event_type=doc.get("event_type"),
            sector=doc.get("sector"),
            region=doc.get("region"),
            country=doc.get("country"),
            actors=list(doc.get("actors") or []),
            why_it_matters=doc.get("why_it_matters"),
            impact_score=doc.get("impact_score"),
            confidence=doc.get("confidence"),
            created_at=doc.get("created_at"),
            causal_chains=chains,
        )

__all__ = [
    "Source",
    "SourceMeta",
    "ExtractionInput",
    "Event",
    "CausalChain",
    "ScoredEvent",
    "new_event_id",
]
