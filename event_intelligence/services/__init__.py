"""Service layer modules grouping business logic by pipeline stage.

This module provides convenience re-exports so that callers can simply do for
example `from event_intelligence.services import SignalSynthesizer` without
having to know which underlying module provides the symbol.
"""

from .inference import InferenceClient, InferenceError  # noqa: F401
from .extraction import FactExtractor  # noqa: F401
from .synthesis import SignalSynthesizer  # noqa: F401
from .alerts import AlertDetector, classify_severity  # noqa: F401
from .pressure import PressureExtractor, RelatedEvent  # noqa: F401
from .feature_store import FeatureExtractor, FeatureStore, extract_query_features  # noqa: F401
from .relevance import LinearRelevanceModel, ModelRegistry, RelevancePredictor, predict_with_rules  # noqa: F401
from .storage import PipelineStore  # noqa: F401

__all__ = [
    "InferenceClient",
    "InferenceError",
    "FactExtractor",
    "SignalSynthesizer",
    "AlertDetector",
    "classify_severity",
    "PressureExtractor",
    "RelatedEvent",
    "FeatureExtractor",
    "FeatureStore",
    "extract_query_features",
    "LinearRelevanceModel",
    "ModelRegistry",
    "RelevancePredictor",
    "predict_with_rules",
    "PipelineStore",
]
