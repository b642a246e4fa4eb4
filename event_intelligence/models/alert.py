"""Alert records and the inputs of alert detection."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Optional
from uuid import uuid4

AlertType = Literal["signal_threshold", "critical_event", "trajectory_change"]
Severity = Literal["moderate", "high", "critical"]

SEVERITY_RANK = {"moderate": 0, "high": 1, "critical": 2}

DEFAULT_IMPACT_THRESHOLD = 70
DEFAULT_CONFIDENCE_THRESHOLD = 60


def new_alert_id() -> str:
    return f"alert-{uuid4().hex[:12]}"


@dataclass(frozen=True, slots=True)
class AlertEvent:
    """The slice of an event an alert is raised about. ``impact_score`` is 0-100."""

    id: str
    title: str
    summary: str
    impact_score: Optional[int] = None
    sector: Optional[str] = None
    region: Optional[str] = None


@dataclass(frozen=True, slots=True)
class PreviousState:
    impact_score: Optional[int] = None
    confidence_score: Optional[int] = None
    trend: Optional[str] = None


@dataclass(frozen=True, slots=True)
class AlertThresholds:
    impact_threshold: int = DEFAULT_IMPACT_THRESHOLD
    confidence_threshold: int = DEFAULT_CONFIDENCE_THRESHOLD
    severity_level: Optional[Severity] = None


@dataclass(frozen=True, slots=True)
class Alert:
    title: str
    trigger_reason: str
    threshold_exceeded: str
    severity: Severity
    impact: int
    confidence: int
    last_updated: str
    related_signal_ids: List[str] = field(default_factory=list)
    related_event_ids: List[str] = field(default_factory=list)
    id: str = field(default_factory=new_alert_id)
    type: str = "alert"


@dataclass(frozen=True, slots=True)
class AlertResult:
    alert: Alert
    explanation: str
    context: str
    recommended_action: Optional[str] = None

__all__ = [
    "Alert",
    "AlertEvent",
    "AlertResult",
    "AlertThresholds",
    "AlertType",
    "PreviousState",
    "Severity",
    "SEVERITY_RANK",
    "DEFAULT_IMPACT_THRESHOLD",
    "DEFAULT_CONFIDENCE_THRESHOLD",
    "new_alert_id",
]
