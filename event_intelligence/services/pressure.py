"""Pressure feature extraction with schema validation and one repair retry."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from ..models.pressure import PressureFeatures, format_validation_errors
from ..models.signal import Signal
from .inference import InferenceClient

# ---------------------------------------------------------------------------
# Local settings
# ---------------------------------------------------------------------------
MAX_RELATED_EVENTS: int = 5
FIRST_PASS_TEMPERATURE: float = 0.3
REPAIR_TEMPERATURE: float = 0.2
# keys models tend to nest the object under
WRAPPER_KEYS: Tuple[str, ...] = ("pressure_features", "features", "result", "data")

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a pressure extraction engine. You classify geopolitical and economic signals into structured pressure features. You output STRICT JSON only. You do NOT compute scores, only features.

Output a single JSON object with exactly these fields:
- system: one of "Security", "Maritime", "Energy", "Industrial", "Monetary"
- pressure_vector: short snake_case label (e.g. "freight_rate_shock", "sanctions_escalation")
- impact_order: 1 (direct), 2 (second-order), or 3 (third-order)
- time_horizon_days: integer 1-365, estimated days until impact materializes
- evidence_strength: 0-1 float, how strong the factual evidence is
- novelty: 0-1 float, how new/unexpected this pressure is
- transmission_channels: 1-5 strings describing how pressure propagates (e.g. "supply_chain", "currency_markets")
- exposed_entities: up to 10 strings of affected entities (companies, countries, sectors)
- uncertainties: 1-3 strings describing key unknowns
- citations: array of source URLs or references if available"""


@dataclass(frozen=True, slots=True)
class RelatedEvent:
    summary: str
    sources: List[str] = field(default_factory=list)


def build_user_prompt(signal: Signal, related: Sequence[RelatedEvent]) -> str:
    parts = [f"SIGNAL TITLE: {signal.title}", f"SUMMARY: {signal.summary}"]
    if signal.why_it_matters:
        parts.append(f"WHY IT MATTERS: {signal.why_it_matters}")

    if related:
        parts.append("\nRELATED EVENTS:")
        for evt in related[:MAX_RELATED_EVENTS]:
            parts.append(f"- {evt.summary}")
            if evt.sources:
                parts.append(f"  Sources: {', '.join(evt.sources)}")

    parts.append("\nExtract pressure features as JSON.")
    return "\n".join(parts)


def unwrap(raw: Any) -> Any:
    """Return the nested feature object when the model wrapped it in a parent key."""
    if isinstance(raw, dict) and "system" not in raw:
        for key in WRAPPER_KEYS:
            inner = raw.get(key)
            if isinstance(inner, dict):
                return inner
    return raw


def validate(raw: Any) -> Tuple[Optional[PressureFeatures], List[str]]:
    """Unwrap then validate; returns the model or the list of ``path: message`` errors."""
    try:
        return PressureFeatures.model_validate(unwrap(raw)), []
    except ValidationError as exc:
        return None, format_validation_errors(exc)


def _check(raw: Optional[Dict[str, Any]]) -> Tuple[Optional[PressureFeatures], List[str]]:
    if raw is None:
        return None, ["(root): response was not a JSON object"]
    return validate(raw)


class PressureExtractor:
    """Converts a signal into :class:`PressureFeatures`, or ``None``."""

    def __init__(self, inference: Optional[InferenceClient]) -> None:
        self._inference = inference

    async def extract(
        self,
        signal: Signal,
        related_events: Sequence[RelatedEvent] = (),
    ) -> Optional[PressureFeatures]:
        if self._inference is None:
            logger.error("Pressure extraction skipped: inference client not configured")
            return None

        user_prompt = build_user_prompt(signal, related_events)

        try:
            raw = await self._request(user_prompt, FIRST_PASS_TEMPERATURE)
            features, issues = _check(raw)
            if features is not None:
                return features

            logger.warning("Pressure features failed validation, retrying once: %s", "; ".join(issues))

            repair_prompt = (
                "The previous JSON had validation errors:\n"
                + "\n".join(f"- {issue}" for issue in issues)
                + f"\n\nFix the JSON and output a corrected version. Original input:\n{user_prompt}"
            )
            retry_raw = await self._request(repair_prompt, REPAIR_TEMPERATURE)
            retry_features, retry_issues = _check(retry_raw)
            if retry_features is not None:
                return retry_features

            logger.error("Pressure extraction retry also failed for %s: %s", signal.id, "; ".join(retry_issues))
            return None
        except Exception as exc:
            logger.error("Pressure extraction failed for %s: %s", signal.id, exc)
            return None

    async def _request(self, prompt: str, temperature: float) -> Optional[Dict[str, Any]]:
        """One inference call; ``None`` when the response holds no JSON object."""
        try:
            data, _ = await self._inference.complete_json(prompt, SYSTEM_PROMPT, temperature=temperature)
        except ValueError:
            return None
        return data

__all__ = ["PressureExtractor", "RelatedEvent", "build_user_prompt", "unwrap", "validate"]
