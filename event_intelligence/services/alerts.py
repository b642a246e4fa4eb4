"""Alert detection with natural-language explanations.

Severity is decided here from the numbers; the inference service only writes
the explanation and context. Nothing in this module raises to the caller: a
failed explanation degrades to a generic string.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence, Tuple

from ..models.alert import (
    SEVERITY_RANK,
    Alert,
    AlertEvent,
    AlertResult,
    AlertThresholds,
    AlertType,
    PreviousState,
    Severity,
)
from ..models.envelope import Response, Stopwatch
from ..models.signal import Signal, clamp_score
from ..utils.datetime_utils import utc_now_iso
from ..utils.text_cleaning import sanitize_llm_text
from .inference import InferenceClient

# ---------------------------------------------------------------------------
# Local settings
# ---------------------------------------------------------------------------
EXPLANATION_MAX_WORDS: int = 100
CONTEXT_MAX_WORDS: int = 80
EXPLANATION_MAX_TOKENS: int = 200
CONTEXT_MAX_TOKENS: int = 150
ALERT_TEMPERATURE: float = 0.3

CRITICAL_LEVEL: int = 90
HIGH_LEVEL: int = 80

FALLBACK_EXPLANATION = "Unable to generate alert explanation."
FALLBACK_TRIGGER = "Alert triggered."

SYSTEM_PROMPT = "You explain alerts so users trust them. Be concise, factual, and actionable."

RECOMMENDED_ACTIONS = {
    "signal_threshold": "Review signal details and related events to understand the full context.",
    "critical_event": "Review event details and assess immediate implications for your interests.",
    "trajectory_change": "Compare current signal state with previous state to understand the change.",
}

logger = logging.getLogger(__name__)


def classify_severity(impact: int, confidence: int = 0) -> Severity:
    """``critical`` at 90+, ``high`` at 80+, otherwise ``moderate``."""
    if impact >= CRITICAL_LEVEL or confidence >= CRITICAL_LEVEL:
        return "critical"
    if impact >= HIGH_LEVEL or confidence >= HIGH_LEVEL:
        return "high"
    return "moderate"


def crosses_thresholds(signal: Signal, thresholds: AlertThresholds) -> bool:
    return (
        signal.impact_score >= thresholds.impact_threshold
        and signal.confidence_score >= thresholds.confidence_threshold
    )


def _build_prompts(
    alert_type: AlertType,
    signal: Optional[Signal],
    event: Optional[AlertEvent],
    previous: Optional[PreviousState],
    thresholds: AlertThresholds,
) -> Optional[Tuple[str, str]]:
    """Return ``(explanation_prompt, context_prompt)`` or ``None`` for unusable input."""
    if alert_type == "signal_threshold" and signal is not None:
        explanation = (
            "Signal threshold alert:\n"
            f"Signal: {signal.title}\n"
            f"Current Impact: {signal.impact_score}/100\n"
            f"Current Confidence: {signal.confidence_score}/100\n"
            f"Threshold: Impact >= {thresholds.impact_threshold}, "
            f"Confidence >= {thresholds.confidence_threshold}\n\n"
            "Explain why this alert was triggered and why it matters.\n"
            f"Max {EXPLANATION_MAX_WORDS} words."
        )
        context = (
            f"Provide additional context about this signal ({signal.title}):\n"
            "- Why is this threshold crossing significant?\n"
            "- What should the user watch for?\n"
            "- What makes this different from normal fluctuations?\n"
            f"Max {CONTEXT_MAX_WORDS} words."
        )
        return explanation, context

    if alert_type == "critical_event" and event is not None:
        lines = [
            "Critical event alert:",
            f"Event: {event.title}",
            f"Summary: {event.summary}",
            f"Impact Score: {event.impact_score or 0}/100",
        ]
        if event.sector:
            lines.append(f"Sector: {event.sector}")
        if event.region:
            lines.append(f"Region: {event.region}")
        explanation = "\n".join(lines) + (
            "\n\nExplain why this event is critical and requires immediate attention.\n"
            f"Max {EXPLANATION_MAX_WORDS} words."
        )
        context = (
            f"Provide context about this critical event ({event.title}):\n"
            "- What are the immediate implications?\n"
            "- What should be monitored?\n"
            "- Why is this more significant than typical events?\n"
            f"Max {CONTEXT_MAX_WORDS} words."
        )
        return explanation, context

    if alert_type == "trajectory_change" and signal is not None and previous is not None:
        explanation = (
            "Trajectory change alert:\n"
            f"Signal: {signal.title}\n"
            f"Previous Impact: {previous.impact_score or 0}/100\n"
            f"Current Impact: {signal.impact_score}/100\n"
            f"Previous Confidence: {previous.confidence_score or 0}/100\n"
            f"Current Confidence: {signal.confidence_score}/100\n"
            f"Previous Trend: {previous.trend or 'unknown'}\n\n"
            "Explain why this trajectory change is significant.\n"
            f"Max {EXPLANATION_MAX_WORDS} words."
        )
        context = (
            f"Provide context about this trajectory change ({signal.title}):\n"
            "- What does this change indicate?\n"
            "- What factors might have caused it?\n"
            "- What should be monitored going forward?\n"
            f"Max {CONTEXT_MAX_WORDS} words."
        )
        return explanation, context

    return None


class AlertDetector:
    """Builds alerts for signals and events that cross a threshold."""

    def __init__(self, inference: Optional[InferenceClient]) -> None:
        self._inference = inference

    async def generate_alert(
        self,
        alert_type: AlertType,
        *,
        signal: Optional[Signal] = None,
        event: Optional[AlertEvent] = None,
        previous_state: Optional[PreviousState] = None,
        thresholds: Optional[AlertThresholds] = None,
    ) -> AlertResult:
        """Return an alert with explanation; never raises."""
        thresholds = thresholds or AlertThresholds()
        try:
            prompts = _build_prompts(alert_type, signal, event, previous_state, thresholds)
            if prompts is None:
                logger.warning("Alert type %s lacks the input it needs; using fallback", alert_type)
                return self._fallback(signal, event, title="Alert", impact=0, confidence=0)

            explanation, context = await asyncio.gather(
                self._ask(prompts[0], EXPLANATION_MAX_TOKENS, EXPLANATION_MAX_WORDS, FALLBACK_TRIGGER),
                self._ask(prompts[1], CONTEXT_MAX_TOKENS, CONTEXT_MAX_WORDS, ""),
            )

            if signal is not None:
                impact = signal.impact_score
                confidence = signal.confidence_score
            else:
                impact = clamp_score(event.impact_score or 0)
                confidence = 0

            alert = Alert(
                title=(signal.title if signal else event.title) or "Alert",
                trigger_reason=explanation,
                threshold_exceeded=_threshold_text(alert_type, signal, thresholds),
                severity=classify_severity(impact, confidence),
                impact=impact,
                confidence=confidence,
                related_signal_ids=[signal.id] if signal else [],
                related_event_ids=_related_event_ids(signal, event),
                last_updated=utc_now_iso(),
            )
            logger.info("Raised %s alert %s (%s)", alert.severity, alert.id, alert_type)
            return AlertResult(
                alert=alert,
                explanation=explanation,
                context=context,
                recommended_action=RECOMMENDED_ACTIONS.get(alert_type),
            )
        except Exception as exc:
            logger.error("Alert generation failed: %s", exc)
            return self._fallback(
                signal,
                event,
                title=(signal.title if signal else event.title if event else None) or "Alert",
                impact=signal.impact_score if signal else clamp_score((event.impact_score or 0) if event else 0),
                confidence=signal.confidence_score if signal else 0,
            )

    async def detect_alerts(
        self,
        signals: Sequence[Signal],
        thresholds: Optional[AlertThresholds] = None,
    ) -> Response[List[AlertResult]]:
        """Raise a ``signal_threshold`` alert for every signal over the thresholds."""
        timer = Stopwatch()
        thresholds = thresholds or AlertThresholds()

        triggering = [s for s in signals if crosses_thresholds(s, thresholds)]
        results = await asyncio.gather(
            *(self.generate_alert("signal_threshold", signal=s, thresholds=thresholds) for s in triggering)
        )

        if thresholds.severity_level is not None:
            floor = SEVERITY_RANK[thresholds.severity_level]
            results = [r for r in results if SEVERITY_RANK[r.alert.severity] >= floor]

        logger.info("%d of %d signals raised alerts", len(results), len(signals))
        return timer.response(list(results))

    async def _ask(self, prompt: str, max_tokens: int, max_words: int, fallback: str) -> str:
        if self._inference is None:
            return fallback
        try:
            completion = await self._inference.complete(
                prompt,
                SYSTEM_PROMPT,
                max_tokens=max_tokens,
                temperature=ALERT_TEMPERATURE,
            )
            return sanitize_llm_text(completion.text, remove_markdown=True, max_words=max_words) or fallback
        except Exception as exc:
            logger.warning("Alert explanation call failed: %s", exc)
            return fallback

    @staticmethod
    def _fallback(
        signal: Optional[Signal],
        event: Optional[AlertEvent],
        *,
        title: str,
        impact: int,
        confidence: int,
    ) -> AlertResult:
        alert = Alert(
            title=title,
            trigger_reason=FALLBACK_TRIGGER,
            threshold_exceeded="Unknown",
            severity="moderate",
            impact=impact,
            confidence=confidence,
            related_signal_ids=[signal.id] if signal else [],
            related_event_ids=_related_event_ids(signal, event),
            last_updated=utc_now_iso(),
        )
        return AlertResult(alert=alert, explanation=FALLBACK_EXPLANATION, context="")


def _threshold_text(alert_type: AlertType, signal: Optional[Signal], thresholds: AlertThresholds) -> str:
    if alert_type == "signal_threshold":
        return (
            f"Impact: {signal.impact_score if signal else 0}% >= {thresholds.impact_threshold}%, "
            f"Confidence: {signal.confidence_score if signal else 0}% >= {thresholds.confidence_threshold}%"
        )
    if alert_type == "critical_event":
        return "Critical event detected"
    return "Trajectory change detected"


def _related_event_ids(signal: Optional[Signal], event: Optional[AlertEvent]) -> List[str]:
    if event is not None:
        return [event.id]
    if signal is not None:
        return list(signal.related_event_ids)
    return []

__all__ = ["AlertDetector", "classify_severity", "crosses_thresholds"]
