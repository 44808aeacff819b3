"""Timestamp helpers shared by the store, the digest and the scheduler."""
from datetime import datetime, timezone
from typing import Optional


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalise a timestamp to an aware UTC datetime.

    Naive values are taken to already be in UTC, which is how SQLite hands
    back what was written as UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(raw: str) -> datetime:
    """
    Parse an ISO-8601 / RFC 3339 timestamp into an aware UTC datetime.

    Raises:
        ValueError: If the text is not a valid date/time.
    """
    if not isinstance(raw, str) or not raw.strip():
        raise ValueError("Timestamp is empty")
    text = raw.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return as_utc(datetime.fromisoformat(text))


def start_of_day(now: datetime) -> datetime:
    """Midnight UTC of the day ``now`` falls on."""
    now = as_utc(now)
    return now.replace(hour=0, minute=0, second=0, microsecond=0)
