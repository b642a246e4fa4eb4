"""Flat feature records for the feature store and relevance predictions."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, List, Literal, Optional

EntityType = Literal["event", "user", "event_user_pair", "query"]


@dataclass(slots=True)
class EventFeatures:
    event_type: str
    event_sector: Optional[str]
    event_region: Optional[str]
    event_country: Optional[str]
    event_impact_score: Optional[float]
    event_confidence: Optional[float]
    event_actors_count: int
    event_has_causal_chain: bool
    event_days_since_publication: int
    event_source_quality_score: Optional[float]
    has_first_order_effect: bool
    has_second_order_effect: bool
    affected_sectors_count: int
    affected_regions_count: int
    time_horizon_hours: Optional[int]


@dataclass(slots=True)
class UserFeatures:
    user_sector: Optional[str]
    user_professional_role: Optional[str]
    user_company: Optional[str]
    user_preferred_sectors_count: int
    user_preferred_regions_count: int
    user_preferred_event_types_count: int
    user_min_impact_score: Optional[float]
    user_min_confidence_score: Optional[float]
    user_account_age_days: int
    user_engagement_score: float
    user_total_clicks: int
    user_total_reads: int
    user_total_shares: int


@dataclass(slots=True)
class EventUserPairFeatures:
    sector_match: bool = False
    region_match: bool = False
    event_type_match: bool = False
    country_match: bool = False
    impact_score_above_threshold: bool = False
    confidence_above_threshold: bool = False
    historical_interaction_count: int = 0
    historical_click_rate: float = 0.0
    historical_read_rate: float = 0.0
    historical_share_rate: float = 0.0
    historical_avg_time_spent: float = 0.0
    # placeholders until real similarity is computed
    similarity_to_clicked_events: float = 0.5
    similarity_to_shared_events: float = 0.5

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "EventUserPairFeatures":
        """Rebuild from a cached feature document, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})

    def to_vector(self) -> List[float]:
        """Numeric vector fed to registered models."""
        return [
            float(self.sector_match),
            float(self.region_match),
            float(self.event_type_match),
            float(self.country_match),
            float(self.impact_score_above_threshold),
            float(self.confidence_above_threshold),
            float(self.historical_interaction_count),
            self.historical_click_rate,
            self.historical_read_rate,
            self.historical_share_rate,
            self.historical_avg_time_spent / 100,
            self.similarity_to_clicked_events,
            self.similarity_to_shared_events,
        ]

    @classmethod
    def names(cls) -> List[str]:
        return [f.name for f in fields(cls)]


@dataclass(slots=True)
class QueryFeatures:
    query_length: int
    query_keyword_count: int
    query_has_sector: bool
    query_has_region: bool
    query_has_temporal_indicator: bool
    query_has_event_type: bool


@dataclass(slots=True)
class RelevancePrediction:
    relevance_score: float
    confidence: float
    model_version: Optional[int] = None
    features_used: List[str] = field(default_factory=list)
    reasoning: str = ""

__all__ = [
    "EntityType",
    "EventFeatures",
    "UserFeatures",
    "EventUserPairFeatures",
    "QueryFeatures",
    "RelevancePrediction",
]
