"""Schema for structured pressure features extracted from a signal."""

from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

PressureSystem = Literal["Security", "Maritime", "Energy", "Industrial", "Monetary"]


class PressureFeatures(BaseModel):
    """Pressure/risk dimension of a signal. Only built from validated output."""

    # strict: no bool-to-int or numeric-string coercion
    model_config = ConfigDict(extra="ignore", frozen=True, strict=True)

    system: PressureSystem
    pressure_vector: str = Field(min_length=3, max_length=60)
    impact_order: Literal[1, 2, 3]
    time_horizon_days: int = Field(ge=1, le=365)
    evidence_strength: float = Field(ge=0, le=1)
    novelty: float = Field(ge=0, le=1)
    transmission_channels: List[str] = Field(min_length=1, max_length=5)
    exposed_entities: List[str] = Field(max_length=10)
    uncertainties: List[str] = Field(min_length=1, max_length=3)
    citations: List[str]


def format_validation_errors(exc: ValidationError) -> List[str]:
    """Render each error as ``"path: message"``."""
    issues = []
    for err in exc.errors():
        path = ".".join(str(part) for part in err["loc"]) or "(root)"
        issues.append(f"{path}: {err['msg']}")
    return issues

__all__ = ["PressureFeatures", "PressureSystem", "format_validation_errors"]
