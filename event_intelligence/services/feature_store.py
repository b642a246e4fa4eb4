"""Feature extraction and the MongoDB-backed feature store.

Records are keyed by ``(entity_type, entity_id)``; a save overwrites the
previous record for that key (last write wins).
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict
from typing import Any, Dict, List, Optional, Union

from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.database import AsyncDatabase

from ..config import FEATURE_SET_VERSION
from ..models.features import (
    EntityType,
    EventFeatures,
    EventUserPairFeatures,
    QueryFeatures,
    UserFeatures,
)
from ..utils.datetime_utils import days_since, get_current_timestamp

FeatureRecord = Union[EventFeatures, UserFeatures, EventUserPairFeatures, QueryFeatures]

# ---------------------------------------------------------------------------
# Collections read by the extractor
# ---------------------------------------------------------------------------
EVENTS_COLLECTION: str = "enriched_events"
USERS_COLLECTION: str = "users"
PREFERENCES_COLLECTION: str = "user_preferences"
ACTIONS_COLLECTION: str = "user_actions"
FEATURES_COLLECTION: str = "ml_features"

# time horizon label → approximate hours
HORIZON_HOURS = (("hour", 12), ("day", 24), ("week", 168), ("month", 720))

QUERY_SECTORS = ("energy", "technology", "finance", "healthcare", "manufacturing", "agriculture", "mining")
QUERY_REGIONS = ("europe", "asia", "america", "africa", "middle east", "china", "usa", "russia")
QUERY_TEMPORAL = ("recent", "latest", "new", "today", "yesterday", "week", "month", "2025", "2026")
QUERY_EVENT_TYPES = ("geopolitical", "regulatory", "industrial", "market", "supply chain", "security")

logger = logging.getLogger(__name__)


def pair_id(event_id: str, user_id: str) -> str:
    return f"{event_id}:{user_id}"


class FeatureStore:
    """Cache of extracted features in the ``ml_features`` collection."""

    def __init__(self, collection: AsyncCollection) -> None:
        self._collection = collection

    async def save(
        self,
        entity_type: EntityType,
        entity_id: str,
        features: FeatureRecord,
        version: int = FEATURE_SET_VERSION,
    ) -> bool:
        """Upsert *features*; returns ``False`` when the write fails."""
        values = asdict(features)
        try:
            await self._collection.update_one(
                {"entity_type": entity_type, "entity_id": entity_id},
                {
                    "$set": {
                        "entity_type": entity_type,
                        "entity_id": entity_id,
                        "feature_set_version": version,
                        "extracted_at": get_current_timestamp(),
                        "all_features": values,
                    }
                },
                upsert=True,
            )
            logger.debug("Stored %s features for %s (v%d)", entity_type, entity_id, version)
            return True
        except Exception as exc:
            logger.error("Error saving %s features for %s: %s", entity_type, entity_id, exc)
            return False

    async def get(
        self,
        entity_type: EntityType,
        entity_id: str,
        version: Optional[int] = None,
    ) -> Optional[Dict[str, Any]]:
        """Return the cached feature mapping, or ``None`` on a miss or read error."""
        query: Dict[str, Any] = {"entity_type": entity_type, "entity_id": entity_id}
        if version is not None:
            query["feature_set_version"] = version
        try:
            doc = await self._collection.find_one(query, sort=[("extracted_at", -1)])
        except Exception as exc:
            logger.error("Error reading %s features for %s: %s", entity_type, entity_id, exc)
            return None
        if not doc:
            return None
        return doc.get("all_features")


def extract_query_features(query: str) -> QueryFeatures:
    """Pure keyword features of a search query."""
    lowered = query.lower()
    return QueryFeatures(
        query_length=len(query),
        query_keyword_count=len(query.split()),
        query_has_sector=any(term in lowered for term in QUERY_SECTORS),
        query_has_region=any(term in lowered for term in QUERY_REGIONS),
        query_has_temporal_indicator=any(term in lowered for term in QUERY_TEMPORAL),
        query_has_event_type=any(term in lowered for term in QUERY_EVENT_TYPES),
    )


def _horizon_hours(label: Optional[str]) -> Optional[int]:
    if not label:
        return None
    lowered = label.lower()
    for needle, hours in HORIZON_HOURS:
        if needle in lowered:
            return hours
    return None


def _lower_set(values: Optional[List[str]]) -> set:
    return {str(v).lower() for v in values or []}


def _as_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class FeatureExtractor:
    """Builds feature records from the events/users/actions collections."""

    def __init__(self, db: AsyncDatabase) -> None:
        self._events = db[EVENTS_COLLECTION]
        self._users = db[USERS_COLLECTION]
        self._preferences = db[PREFERENCES_COLLECTION]
        self._actions = db[ACTIONS_COLLECTION]

    async def extract_event_features(self, event_id: str) -> Optional[EventFeatures]:
        try:
            event = await self._events.find_one({"id": event_id})
        except Exception as exc:
            logger.error("Error fetching event %s: %s", event_id, exc)
            return None
        if not event:
            logger.warning("Event %s not found", event_id)
            return None

        chains = event.get("causal_chains") or []
        first_chain = chains[0] if chains else {}

        return EventFeatures(
            event_type=event.get("event_type") or "",
            event_sector=event.get("sector"),
            event_region=event.get("region"),
            event_country=event.get("country"),
            event_impact_score=_as_float(event.get("impact_score")),
            event_confidence=_as_float(event.get("confidence")),
            event_actors_count=len(event.get("actors") or []),
            event_has_causal_chain=bool(chains),
            event_days_since_publication=days_since(event.get("published_at") or event.get("created_at")),
            event_source_quality_score=_as_float(event.get("source_quality_score")),
            has_first_order_effect=bool(event.get("first_order_effect")),
            has_second_order_effect=bool(event.get("second_order_effect")),
            affected_sectors_count=len(first_chain.get("affected_sectors") or []),
            affected_regions_count=len(first_chain.get("affected_regions") or []),
            time_horizon_hours=_horizon_hours(first_chain.get("time_horizon")),
        )

    async def extract_user_features(self, user_id: str) -> Optional[UserFeatures]:
        try:
            profile, prefs, actions = await asyncio.gather(
                self._users.find_one({"id": user_id}),
                self._preferences.find_one({"user_id": user_id}),
                self._actions.find({"user_id": user_id}).to_list(length=None),
            )
        except Exception as exc:
            logger.error("Error fetching user %s: %s", user_id, exc)
            return None
        if not profile:
            logger.warning("User %s not found", user_id)
            return None

        prefs = prefs or {}
        clicks = sum(1 for a in actions if a.get("action_type") == "click")
        reads = sum(1 for a in actions if a.get("action_type") == "read")
        shares = sum(1 for a in actions if a.get("action_type") == "share")
        time_spent = sum(a.get("time_spent_seconds") or 0 for a in actions)

        engagement = min(1.0, (clicks * 1.0 + reads * 2.0 + shares * 3.0 + (1.0 if time_spent > 0 else 0.0)) / 10.0)

        return UserFeatures(
            user_sector=profile.get("sector"),
            user_professional_role=profile.get("professional_role"),
            user_company=profile.get("company"),
            user_preferred_sectors_count=len(prefs.get("preferred_sectors") or []),
            user_preferred_regions_count=len(prefs.get("preferred_regions") or []),
            user_preferred_event_types_count=len(prefs.get("preferred_event_types") or []),
            user_min_impact_score=_as_float(prefs.get("min_impact_score")),
            user_min_confidence_score=_as_float(prefs.get("min_confidence_score")),
            user_account_age_days=days_since(profile.get("created_at")),
            user_engagement_score=engagement,
            user_total_clicks=clicks,
            user_total_reads=reads,
            user_total_shares=shares,
        )

    async def extract_event_user_pair_features(
        self, event_id: str, user_id: str
    ) -> Optional[EventUserPairFeatures]:
        try:
            event_features, user_features, prefs, actions = await asyncio.gather(
                self.extract_event_features(event_id),
                self.extract_user_features(user_id),
                self._preferences.find_one({"user_id": user_id}),
                self._actions.find({"user_id": user_id, "event_id": {"$ne": None}}).to_list(length=None),
            )
        except Exception as exc:
            logger.error("Error extracting pair features for %s: %s", pair_id(event_id, user_id), exc)
            return None

        if event_features is None or user_features is None:
            return None

        prefs = prefs or {}
        preferred_regions = _lower_set(prefs.get("preferred_regions"))
        preferred_types = _lower_set(prefs.get("preferred_event_types"))

        sector_match = bool(
            event_features.event_sector
            and user_features.user_sector
            and event_features.event_sector.lower() == user_features.user_sector.lower()
        )
        region_match = bool(event_features.event_region and event_features.event_region.lower() in preferred_regions)
        country_match = bool(
            event_features.event_country and event_features.event_country.lower() in preferred_regions
        )
        event_type_match = event_features.event_type.lower() in preferred_types

        min_impact = user_features.user_min_impact_score
        min_conf = user_features.user_min_confidence_score
        impact_ok = min_impact is None or (
            event_features.event_impact_score is not None and event_features.event_impact_score >= min_impact
        )
        conf_ok = min_conf is None or (
            event_features.event_confidence is not None and event_features.event_confidence >= min_conf
        )

        total = len(actions)
        clicks = [a for a in actions if a.get("action_type") == "click"]
        reads = [a for a in actions if a.get("action_type") == "read"]
        shares = [a for a in actions if a.get("action_type") == "share"]

        return EventUserPairFeatures(
            sector_match=sector_match,
            region_match=region_match,
            event_type_match=event_type_match,
            country_match=country_match,
            impact_score_above_threshold=impact_ok,
            confidence_above_threshold=conf_ok,
            historical_interaction_count=sum(1 for a in actions if a.get("event_id") == event_id),
            historical_click_rate=len(clicks) / total if total else 0.0,
            historical_read_rate=len(reads) / total if total else 0.0,
            historical_share_rate=len(shares) / total if total else 0.0,
            historical_avg_time_spent=(
                sum(a.get("time_spent_seconds") or 0 for a in reads) / len(reads) if reads else 0.0
            ),
        )

    @staticmethod
    def extract_query_features(query: str) -> QueryFeatures:
        return extract_query_features(query)

__all__ = [
    "FeatureStore",
    "FeatureExtractor",
    "extract_query_features",
    "pair_id",
    "FEATURES_COLLECTION",
]
