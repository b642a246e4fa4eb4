"""Signal records synthesized from scored events."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Literal, Optional
from uuid import uuid4

Scope = Literal["global", "regional", "sectorial", "asset", "actor"]
TimeHorizon = Literal["immediate", "short", "medium", "long"]

SUMMARY_MAX_CHARS = 300


def new_signal_id() -> str:
    return f"signal-{uuid4().hex[:12]}"


def clamp_score(value: float, low: int = 0, high: int = 100) -> int:
    """Round half up and clamp into ``[low, high]``."""
    return max(low, min(high, int(math.floor(value + 0.5))))


@dataclass(frozen=True, slots=True)
class Signal:
    title: str
    summary: str
    why_it_matters: str
    related_event_ids: List[str]
    impact_score: int
    confidence_score: int
    time_horizon: TimeHorizon = "medium"
    scope: Scope = "global"
    source_count: int = 1
    last_updated: Optional[str] = None
    id: str = field(default_factory=new_signal_id)
    type: str = "signal"

    def __post_init__(self) -> None:
        if not self.related_event_ids:
            raise ValueError("Signal requires at least one related event id")
        object.__setattr__(self, "impact_score", clamp_score(self.impact_score))
        object.__setattr__(self, "confidence_score", clamp_score(self.confidence_score))
        object.__setattr__(self, "summary", self.summary[:SUMMARY_MAX_CHARS])

    @property
    def priority(self) -> int:
        return self.impact_score * self.confidence_score


@dataclass(slots=True)
class SignalPreferences:
    """User preferences applied after synthesis.

    Minimum scores are on the 0-1 scale.
    """

    preferred_sectors: List[str] = field(default_factory=list)
    preferred_regions: List[str] = field(default_factory=list)
    preferred_event_types: List[str] = field(default_factory=list)
    min_impact_score: Optional[float] = None
    min_confidence_score: Optional[float] = None

__all__ = [
    "Signal",
    "SignalPreferences",
    "Scope",
    "TimeHorizon",
    "SUMMARY_MAX_CHARS",
    "clamp_score",
    "new_signal_id",
]
