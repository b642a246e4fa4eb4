"""Utility functions for working with dates and times."""

from datetime import datetime, timezone

__all__ = [
    "get_current_timestamp",
    "utc_now_iso",
    "days_since",
]


def get_current_timestamp() -> datetime:
    """Return the current UTC datetime.

    MongoDB stores this directly as a BSON Date, which keeps ``extracted_at``
    sortable in the feature store.
    """
    return datetime.now(tz=timezone.utc)


def utc_now_iso() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return get_current_timestamp().isoformat()


def days_since(value: str | datetime | None) -> int:
    """Whole days elapsed since *value*; ``0`` when it is missing or unparseable."""
    if value is None:
        return 0
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return 0
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return max(0, (get_current_timestamp() - value).days)
