"""The response envelope returned by every public pipeline operation."""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field, is_dataclass
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(slots=True)
class ResponseMetadata:
    processing_time_ms: int = 0
    tokens_used: Optional[int] = None
    confidence: Optional[float] = None


@dataclass(slots=True)
class Response(Generic[T]):
    """Uniform ``{data, error?, metadata}`` wrapper.

    ``data is None`` with ``error`` set is a failure; ``data is None`` without
    ``error`` means "no result". An empty list is a successful result.
    """

    data: Optional[T] = None
    error: Optional[str] = None
    metadata: ResponseMetadata = field(default_factory=ResponseMetadata)

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": _plain(self.data),
            "error": self.error,
            "metadata": asdict(self.metadata),
        }


class Stopwatch:
    """Measures wall time for ``processing_time_ms``."""

    def __init__(self) -> None:
        self._start = time.perf_counter()

    def elapsed_ms(self) -> int:
        return int((time.perf_counter() - self._start) * 1000)

    def response(
        self,
        data: Optional[T] = None,
        error: Optional[str] = None,
        *,
        tokens_used: Optional[int] = None,
        confidence: Optional[float] = None,
    ) -> Response[T]:
        return Response(
            data=data,
            error=error,
            metadata=ResponseMetadata(
                processing_time_ms=self.elapsed_ms(),
                tokens_used=tokens_used,
                confidence=confidence,
            ),
        )


def _plain(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if hasattr(value, "model_dump"):
        return value.model_dump()
    if isinstance(value, list):
        return [_plain(item) for item in value]
    return value

__all__ = ["Response", "ResponseMetadata", "Stopwatch"]
