"""Persistence layer: MongoDB upserts for pipeline records."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Dict, Iterable, List

from pymongo import UpdateOne
from pymongo.asynchronous.database import AsyncDatabase

from ..models.alert import AlertResult
from ..models.event import Event, ScoredEvent
from ..models.pressure import PressureFeatures
from ..models.signal import Signal
from ..utils.datetime_utils import get_current_timestamp

EVENTS_COLLECTION: str = "events"
SCORED_EVENTS_COLLECTION: str = "enriched_events"
SIGNALS_COLLECTION: str = "signals"
ALERTS_COLLECTION: str = "alerts"
PRESSURE_COLLECTION: str = "pressure_features"

logger = logging.getLogger(__name__)


class PipelineStore:
    """Upsert-on-conflict storage keyed by each record's ``id``."""

    def __init__(self, db: AsyncDatabase) -> None:
        self._db = db

    async def _upsert(self, collection: str, docs: Iterable[Dict[str, Any]]) -> int:
        ops = [UpdateOne({"id": doc["id"]}, {"$set": doc}, upsert=True) for doc in docs]
        if not ops:
            return 0
        result = await self._db[collection].bulk_write(ops, ordered=False)
        written = result.upserted_count + result.modified_count
        logger.info("Stored %d documents in %s", written, collection)
        return written

    async def store_events(self, events: Iterable[Event]) -> int:
        return await self._upsert(EVENTS_COLLECTION, (asdict(e) for e in events))

    async def store_signals(self, signals: Iterable[Signal]) -> int:
        return await self._upsert(SIGNALS_COLLECTION, (asdict(s) for s in signals))

    async def store_alerts(self, results: Iterable[AlertResult]) -> int:
        docs = []
        for result in results:
            doc = asdict(result.alert)
            doc.update(
                explanation=result.explanation,
                context=result.context,
                recommended_action=result.recommended_action,
            )
            docs.append(doc)
        return await self._upsert(ALERTS_COLLECTION, docs)

    async def store_pressure_features(self, signal_id: str, features: PressureFeatures) -> int:
        doc = features.model_dump()
        doc.update(id=signal_id, signal_id=signal_id, extracted_at=get_current_timestamp())
        return await self._upsert(PRESSURE_COLLECTION, [doc])

    async def load_scored_events(self, limit: int = 200) -> List[ScoredEvent]:
        """Most recent enriched events, newest first."""
        cursor = self._db[SCORED_EVENTS_COLLECTION].find({}).sort("created_at", -1).limit(limit)
        docs = await cursor.to_list(length=limit)
        return [ScoredEvent.from_document(doc) for doc in docs]

__all__ = ["PipelineStore"]
