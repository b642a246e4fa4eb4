"""Similarity grouping and signal synthesis.

Pure transformation over already-scored events. This module never talks to
the retrieval or inference services.
"""

from __future__ import annotations

import logging
from statistics import fmean
from typing import Dict, List, Optional, Sequence, Tuple

from ..models.envelope import Response, Stopwatch
from ..models.event import ScoredEvent
from ..models.signal import Scope, Signal, SignalPreferences, TimeHorizon
from ..utils.datetime_utils import utc_now_iso

# Placeholder for a missing grouping field. Events missing the same fields
# share a bucket, so two unrelated "unknown" events can be merged.
UNGROUPED: str = "unknown"

PROMOTION_MIN_IMPACT: float = 0.7
PROMOTION_MIN_CONFIDENCE: float = 0.7

REGIONAL_SCOPES = frozenset({"US", "EU", "China", "Asia"})

HORIZON_BY_LABEL: Dict[str, TimeHorizon] = {
    "hours": "immediate",
    "days": "short",
    "weeks": "medium",
}

GroupKey = Tuple[str, str, str]

logger = logging.getLogger(__name__)


def group_key(event: ScoredEvent) -> GroupKey:
    return (
        event.sector or UNGROUPED,
        event.region or UNGROUPED,
        event.event_type or UNGROUPED,
    )


def group_events(events: Sequence[ScoredEvent]) -> Dict[GroupKey, List[ScoredEvent]]:
    """Bucket events by ``(sector, region, event_type)``, keeping encounter order."""
    groups: Dict[GroupKey, List[ScoredEvent]] = {}
    for event in events:
        groups.setdefault(group_key(event), []).append(event)
    return groups


def derive_horizon(event: ScoredEvent) -> TimeHorizon:
    if not event.causal_chains:
        return "medium"
    label = (event.causal_chains[0].time_horizon or "").lower()
    return HORIZON_BY_LABEL.get(label, "long")


def derive_scope(event: ScoredEvent) -> Scope:
    if event.sector:
        return "sectorial"
    if event.region in REGIONAL_SCOPES:
        return "regional"
    return "global"


class SignalSynthesizer:
    """Groups scored events and turns each group into at most one Signal."""

    def synthesize(
        self,
        events: Sequence[ScoredEvent],
        preferences: Optional[SignalPreferences] = None,
    ) -> Response[List[Signal]]:
        """Return signals ordered by ``impact_score * confidence_score``."""
        timer = Stopwatch()

        if not events:
            return timer.response([])

        try:
            signals: List[Signal] = []
            for key, members in group_events(events).items():
                signal = self._signal_from_group(members)
                if signal is not None:
                    signals.append(signal)
                else:
                    logger.debug("Group %s produced no signal", "::".join(key))

            filtered = apply_preferences(signals, preferences)
            # sorted() is stable, so equal priorities keep encounter order
            ranked = sorted(filtered, key=lambda s: s.priority, reverse=True)

            logger.info(
                "Synthesized %d signals from %d events (%d after preferences)",
                len(signals),
                len(events),
                len(ranked),
            )
            return timer.response(
                ranked,
                confidence=ranked[0].confidence_score / 100 if ranked else 0.0,
            )
        except Exception as exc:
            logger.error("Signal synthesis failed: %s", exc)
            return timer.response([], str(exc) or "Failed to generate signals")

    def generate_signal(
        self,
        events: Sequence[ScoredEvent],
        preferences: Optional[SignalPreferences] = None,
    ) -> Response[Signal]:
        """Return only the highest-priority signal."""
        timer = Stopwatch()

        if not events:
            return timer.response(error="No events provided")

        result = self.synthesize(events, preferences)
        if not result.data:
            return timer.response(error=result.error or "No signals generated")

        top = result.data[0]
        return timer.response(top, confidence=top.confidence_score / 100)

    def _signal_from_group(self, members: List[ScoredEvent]) -> Optional[Signal]:
        if not members:
            return None
        if len(members) == 1:
            event = members[0]
            if (event.impact_score or 0) >= PROMOTION_MIN_IMPACT and (
                event.confidence or 0
            ) >= PROMOTION_MIN_CONFIDENCE:
                return _promote(event)
            return None
        return _merge(members)


def _merge(members: List[ScoredEvent]) -> Signal:
    first = members[0]
    avg_impact = fmean(e.impact_score or 0 for e in members)
    avg_confidence = fmean(e.confidence or 0 for e in members)

    kind = first.event_type.lower() if first.event_type else "events"
    detail = first.why_it_matters or first.summary[:100]
    summary = (
        f"{len(members)} related {kind} detected in "
        f"{first.sector or 'multiple sectors'}. {detail}"
    )

    return Signal(
        title=f"{first.sector or 'Global'} {first.event_type or 'Event'} Activity",
        summary=summary,
        why_it_matters=first.why_it_matters
        or f"Multiple related events indicate significant activity in {first.sector or 'this sector'}.",
        related_event_ids=[e.id for e in members],
        impact_score=avg_impact * 100,
        confidence_score=avg_confidence * 100,
        time_horizon=derive_horizon(first),
        scope=derive_scope(first),
        source_count=len(members),
        last_updated=first.created_at or utc_now_iso(),
    )


def _promote(event: ScoredEvent) -> Signal:
    return Signal(
        title=f"{event.sector or 'Global'} {event.event_type or 'Event'}",
        summary=event.summary,
        why_it_matters=event.why_it_matters or f"High-impact event in {event.sector or 'this sector'}.",
        related_event_ids=[event.id],
        impact_score=(event.impact_score or 0) * 100,
        confidence_score=(event.confidence or 0) * 100,
        time_horizon=derive_horizon(event),
        scope=derive_scope(event),
        source_count=1,
        last_updated=event.created_at or utc_now_iso(),
    )


def apply_preferences(
    signals: List[Signal],
    preferences: Optional[SignalPreferences],
) -> List[Signal]:
    """Drop signals under the user's minimum impact/confidence (0-1 scale)."""
    if preferences is None:
        return signals

    kept = []
    for signal in signals:
        if (
            preferences.min_impact_score is not None
            and signal.impact_score < preferences.min_impact_score * 100
        ):
            continue
        if (
            preferences.min_confidence_score is not None
            and signal.confidence_score < preferences.min_confidence_score * 100
        ):
            continue
        kept.append(signal)
    return kept

__all__ = [
    "SignalSynthesizer",
    "UNGROUPED",
    "group_events",
    "group_key",
    "derive_horizon",
    "derive_scope",
    "apply_preferences",
]
