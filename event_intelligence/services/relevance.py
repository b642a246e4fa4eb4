"""Event relevance prediction for a user.

A registered model is tried first. Without one, or when it fails, a fixed
weighted sum over the same pair features is used. Confidence reports which
path produced the score, not statistical certainty.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from ..models.features import EventUserPairFeatures, RelevancePrediction
from .feature_store import FeatureExtractor, FeatureStore, pair_id

# ---------------------------------------------------------------------------
# Local settings
# ---------------------------------------------------------------------------
MODEL_CONFIDENCE: float = 0.8
RULE_CONFIDENCE: float = 0.6
NEUTRAL_SCORE: float = 0.5
DEFAULT_BATCH_SIZE: int = 10

logger = logging.getLogger(__name__)


class RelevanceModel(Protocol):
    version: int

    def predict(self, vector: Sequence[float]) -> float:
        ...


@dataclass
class LinearRelevanceModel:
    """Bias plus a weight per entry of :meth:`EventUserPairFeatures.to_vector`."""

    version: int
    weights: List[float] = field(
        default_factory=lambda: [0.2, 0.15, 0.15, 0.0, 0.1, 0.1, 0.05, 0.1, 0.1, 0.15, 0.0, 0.1, 0.1]
    )
    bias: float = 0.5

    def predict(self, vector: Sequence[float]) -> float:
        if len(vector) != len(self.weights):
            raise ValueError(f"expected {len(self.weights)} features, got {len(vector)}")
        return self.bias + sum(w * x for w, x in zip(self.weights, vector))


class ModelRegistry:
    """Holds pluggable relevance models; at most one is active."""

    def __init__(self) -> None:
        self._models: Dict[int, RelevanceModel] = {}
        self._active: Optional[int] = None

    def register(self, model: RelevanceModel, *, activate: bool = False) -> None:
        self._models[model.version] = model
        if activate:
            self.activate(model.version)

    def activate(self, version: int) -> None:
        if version not in self._models:
            raise KeyError(f"No relevance model registered with version {version}")
        self._active = version

    def deactivate(self) -> None:
        self._active = None

    def active(self) -> Optional[RelevanceModel]:
        return self._models.get(self._active) if self._active is not None else None


def clamp_unit(value: float) -> float:
    return min(1.0, max(0.0, value))


def predict_with_rules(features: EventUserPairFeatures) -> RelevancePrediction:
    """Deterministic weighted sum used when no model can score the pair."""
    score = NEUTRAL_SCORE
    reasons: List[str] = []

    if features.sector_match:
        score += 0.2
        reasons.append("Sector match")
    if features.region_match:
        score += 0.15
        reasons.append("Region match")
    if features.event_type_match:
        score += 0.15
        reasons.append("Event type match")

    if features.impact_score_above_threshold:
        score += 0.1
        reasons.append("Impact above threshold")
    if features.confidence_above_threshold:
        score += 0.1
        reasons.append("Confidence above threshold")

    if features.historical_interaction_count > 0:
        score += min(0.15, features.historical_interaction_count * 0.05)
        reasons.append(f"Historical interaction ({features.historical_interaction_count})")

    if features.historical_click_rate > 0.1:
        score += features.historical_click_rate * 0.1
    if features.historical_read_rate > 0.1:
        score += features.historical_read_rate * 0.1
    if features.historical_share_rate > 0.05:
        score += features.historical_share_rate * 0.15

    score += features.similarity_to_clicked_events * 0.05
    score += features.similarity_to_shared_events * 0.05

    return RelevancePrediction(
        relevance_score=clamp_unit(score),
        confidence=RULE_CONFIDENCE,
        model_version=None,
        features_used=EventUserPairFeatures.names(),
        reasoning=", ".join(reasons) or "No strong signals",
    )


class RelevancePredictor:
    def __init__(
        self,
        extractor: FeatureExtractor,
        store: FeatureStore,
        registry: Optional[ModelRegistry] = None,
    ) -> None:
        self._extractor = extractor
        self._store = store
        self._registry = registry or ModelRegistry()

    async def predict_relevance(
        self,
        event_id: str,
        user_id: str,
        use_cache: bool = True,
    ) -> RelevancePrediction:
        key = pair_id(event_id, user_id)
        features: Optional[EventUserPairFeatures] = None

        if use_cache:
            cached = await self._store.get("event_user_pair", key)
            if cached:
                features = EventUserPairFeatures.from_mapping(cached)

        if features is None:
            features = await self._extractor.extract_event_user_pair_features(event_id, user_id)
            if features is not None:
                await self._store.save("event_user_pair", key, features)

        if features is None:
            return RelevancePrediction(
                relevance_score=NEUTRAL_SCORE,
                confidence=0.0,
                reasoning="Could not extract features",
            )

        model = self._registry.active()
        if model is not None:
            try:
                score = model.predict(features.to_vector())
                return RelevancePrediction(
                    relevance_score=clamp_unit(score),
                    confidence=MODEL_CONFIDENCE,
                    model_version=model.version,
                    features_used=EventUserPairFeatures.names(),
                    reasoning=f"Model prediction (v{model.version})",
                )
            except Exception as exc:
                logger.warning("Relevance model v%s failed, using rules: %s", model.version, exc)

        return predict_with_rules(features)

    async def batch_predict_relevance(
        self,
        pairs: Iterable[Tuple[str, str]],
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> Dict[str, RelevancePrediction]:
        """Predict ``(event_id, user_id)`` pairs, at most *batch_size* at a time."""
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")
        pending = list(pairs)
        predictions: Dict[str, RelevancePrediction] = {}

        for start in range(0, len(pending), batch_size):
            window = pending[start : start + batch_size]
            results = await asyncio.gather(
                *(self.predict_relevance(event_id, user_id) for event_id, user_id in window),
                return_exceptions=True,
            )
            for (event_id, user_id), result in zip(window, results):
                key = pair_id(event_id, user_id)
                if isinstance(result, BaseException):
                    logger.error("Relevance prediction failed for %s: %s", key, result)
                    continue
                predictions[key] = result

        logger.info("Predicted relevance for %d of %d pairs", len(predictions), len(pending))
        return predictions

__all__ = [
    "RelevancePredictor",
    "RelevanceModel",
    "LinearRelevanceModel",
    "ModelRegistry",
    "predict_with_rules",
]
