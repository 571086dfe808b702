from __future__ import annotations

from enum import Enum


class Granularity(str, Enum):
    MINUTE = "minute"
    HOUR = "hour"
    DAY = "day"


_GRANULARITY_SECONDS = {
    Granularity.MINUTE: 60,
    Granularity.HOUR: 3_600,
    Granularity.DAY: 86_400,
}


def granularity_to_s(g: Granularity | str) -> int:
    try:
        return _GRANULARITY_SECONDS[Granularity(g)]
    except ValueError:
        raise ValueError(f"Invalid granularity: {g!r} (expected 'minute', 'hour' or 'day')") from None


def to_bucket_index(ts_s: int, g: Granularity | str) -> int:
    """
    Unix seconds -> discrete bucket index at granularity g.

    Example (hour):
      ts = 7_199 -> 1
      ts = 7_200 -> 2
    """
    return int(ts_s) // granularity_to_s(g)


def from_bucket_index(bucket_index: int, g: Granularity | str) -> int:
    """Bucket index -> slot start in Unix seconds."""
    return int(bucket_index) * granularity_to_s(g)
