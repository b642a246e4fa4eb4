"""End-to-end run: extract facts, synthesize signals, raise alerts, extract pressure."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..logging_config import logging as _  # noqa: F401  # ensure config applied early
from ..clients.mongodb_client import create_mongo_client
from ..clients.openai_client import create_openai
from ..clients.tavily_client import create_tavily_client
from ..config import PipelineConfig
from ..models.alert import AlertThresholds
from ..models.event import ScoredEvent
from ..models.signal import Signal, SignalPreferences
from ..services.alerts import AlertDetector
from ..services.extraction import FactExtractor
from ..services.inference import InferenceClient
from ..services.pressure import PressureExtractor, RelatedEvent
from ..services.storage import PipelineStore
from ..services.synthesis import SignalSynthesizer

# signals that get pressure features, highest priority first
PRESSURE_TOP_N: int = 5
SCORED_EVENT_WINDOW: int = 200

logger = logging.getLogger(__name__)


@dataclass
class RunStats:
    events_extracted: int = 0
    extraction_failed: bool = False
    events_scored: int = 0
    signals: int = 0
    alerts: int = 0
    pressure_features: int = 0


@dataclass
class Pipeline:
    """The stages of one run, each holding only the clients it may use."""

    extractor: FactExtractor
    synthesizer: SignalSynthesizer
    alerts: AlertDetector
    pressure: PressureExtractor
    store: PipelineStore


def build_pipeline(config: PipelineConfig) -> Pipeline:
    """Construct clients from *config* and wire them into the stages."""
    openai_client = create_openai(config)
    inference = InferenceClient.from_config(openai_client, config) if openai_client else None
    if inference is None:
        logger.warning("OPENAI_API_KEY not configured; inference-backed stages will degrade")

    retrieval = create_tavily_client(config)
    if retrieval is None:
        logger.warning("TAVILY_API_KEY not configured; search extraction disabled")

    db = create_mongo_client(config)[config.mongodb_database]

    return Pipeline(
        extractor=FactExtractor(inference, retrieval),
        synthesizer=SignalSynthesizer(),
        alerts=AlertDetector(inference),
        pressure=PressureExtractor(inference),
        store=PipelineStore(db),
    )


async def run(
    query: str,
    config: Optional[PipelineConfig] = None,
    *,
    pipeline: Optional[Pipeline] = None,
    preferences: Optional[SignalPreferences] = None,
    thresholds: Optional[AlertThresholds] = None,
) -> RunStats:
    """Execute the full pipeline once for *query*."""
    logger.info("Starting intelligence pipeline for query: %s", query)
    pipeline = pipeline or build_pipeline(config or PipelineConfig.from_env())
    stats = RunStats()

    # 1. Facts
    extracted = await pipeline.extractor.search_and_extract(query)
    events = extracted.data or []
    stats.events_extracted = len(events)
    if extracted.error:
        stats.extraction_failed = True
        logger.warning("Extraction reported errors: %s", extracted.error)
    if events:
        await pipeline.store.store_events(events)

    # 2. Signals from events already scored by enrichment
    scored = await pipeline.store.load_scored_events(SCORED_EVENT_WINDOW)
    stats.events_scored = len(scored)
    synthesized = pipeline.synthesizer.synthesize(scored, preferences)
    signals = synthesized.data or []
    stats.signals = len(signals)

    if not signals:
        logger.info("No signals synthesized - nothing further to process.")
        _log_stats(stats)
        return stats

    await pipeline.store.store_signals(signals)

    # 3. Alerts
    detected = await pipeline.alerts.detect_alerts(signals, thresholds)
    alert_results = detected.data or []
    stats.alerts = len(alert_results)
    if alert_results:
        await pipeline.store.store_alerts(alert_results)

    # 4. Pressure features for the top signals
    for signal in signals[:PRESSURE_TOP_N]:
        features = await pipeline.pressure.extract(signal, related_events(signal, scored))
        if features is not None:
            await pipeline.store.store_pressure_features(signal.id, features)
            stats.pressure_features += 1

    _log_stats(stats)
    return stats


def related_events(signal: Signal, scored: Sequence[ScoredEvent]) -> List[RelatedEvent]:
    ids = set(signal.related_event_ids)
    return [RelatedEvent(summary=e.summary) for e in scored if e.id in ids]


def _log_stats(stats: RunStats) -> None:
    logger.info("=== Intelligence Pipeline Statistics ===")
    logger.info("Events extracted: %d", stats.events_extracted)
    logger.info("Extraction errors reported: %s", "yes" if stats.extraction_failed else "no")
    logger.info("Scored events considered: %d", stats.events_scored)
    logger.info("Signals synthesized: %d", stats.signals)
    logger.info("Alerts raised: %d", stats.alerts)
    logger.info("Pressure feature sets: %d", stats.pressure_features)
    logger.info("========================================")

__all__ = ["run", "build_pipeline", "related_events", "Pipeline", "RunStats"]
