"""Domain models used across the pipeline."""

from .envelope import Response, ResponseMetadata, Stopwatch  # noqa: F401
from .event import CausalChain, Event, ExtractionInput, ScoredEvent, Source, SourceMeta  # noqa: F401
from .signal import Signal, SignalPreferences  # noqa: F401
from .alert import Alert, AlertEvent, AlertResult, AlertThresholds, PreviousState  # noqa: F401
from .pressure import PressureFeatures  # noqa: F401
from .features import (  # noqa: F401
    EventFeatures,
    EventUserPairFeatures,
    QueryFeatures,
    RelevancePrediction,
    UserFeatures,
)

__all__ = [
    "Response",
    "ResponseMetadata",
    "Stopwatch",
    "CausalChain",
    "Event",
    "ExtractionInput",
    "ScoredEvent",
    "Source",
    "SourceMeta",
    "Signal",
    "SignalPreferences",
    "Alert",
    "AlertEvent",
    "AlertResult",
    "AlertThresholds",
    "PreviousState",
    "PressureFeatures",
    "EventFeatures",
    "EventUserPairFeatures",
    "QueryFeatures",
    "RelevancePrediction",
    "UserFeatures",
]
