"""Wall-clock source and timestamp helpers for attempt timing."""
import math
from datetime import datetime, timezone


class SystemClock:
    """UTC wall clock. Attempt start timestamps are anchored to this."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


def parse_timestamp(value) -> datetime:
    """Parse a persisted timestamp (ISO-8601, 'Z' suffix allowed). Naive values are UTC."""
    if isinstance(value, datetime):
        ts = value
    else:
        ts = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def format_timestamp(value: datetime) -> str:
    return parse_timestamp(value).isoformat()


def elapsed_seconds(start: datetime, now: datetime) -> int:
    """Whole seconds between start and now, floored. A start in the future counts as 0."""
    return max(0, math.floor((now - start).total_seconds()))
