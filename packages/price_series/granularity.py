from __future__ import annotations

import math

from packages.common.constants import (
    ALL_TIME_HOUR_MAX_AGE_S,
    ALL_TIME_MINUTE_MAX_AGE_S,
    MAX_ALL_TIME_DAY_BUCKETS,
)
from packages.common.timeframes import Granularity, granularity_to_s, to_bucket_index
from packages.price_series.catalog import get_timeframe_spec
from packages.price_series.types import BucketWindow, GranularitySelection, TimeframeId


def _all_time_granularity(age_s: int) -> Granularity:
    if age_s < ALL_TIME_MINUTE_MAX_AGE_S:
        return Granularity.MINUTE
    if age_s < ALL_TIME_HOUR_MAX_AGE_S:
        return Granularity.HOUR
    return Granularity.DAY


def select_granularity(
    timeframe: TimeframeId | str,
    *,
    created_at_s: int,
    now_s: int,
    max_day_buckets: int = MAX_ALL_TIME_DAY_BUCKETS,
) -> GranularitySelection:
    """
    Fixed timeframes return their catalog granularity/window unchanged.

    The all-time timeframe picks the coarsest granularity that still gives a
    usable density for the asset's age:
      age < 1h  -> minute
      age < 7d  -> hour
      otherwise -> day (window clamped to max_day_buckets)
    """
    spec = get_timeframe_spec(timeframe)
    if not spec.adaptive:
        return GranularitySelection(granularity=spec.granularity, window_buckets=spec.window_buckets)

    age_s = max(0, int(now_s) - int(created_at_s))
    g = _all_time_granularity(age_s)

    window = math.ceil(age_s / granularity_to_s(g)) + 1
    if g is Granularity.DAY:
        window = min(window, max(1, int(max_day_buckets)))

    return GranularitySelection(granularity=g, window_buckets=max(1, window))


def bucket_window(
    selection: GranularitySelection,
    *,
    now_s: int,
    created_at_s: int | None = None,
) -> BucketWindow:
    """
    Window of `window_buckets` buckets ending at now's bucket (inclusive).

    When created_at_s is given the window start is clamped to the creation
    bucket, which drops every pre-creation slot.
    """
    end = to_bucket_index(now_s, selection.granularity)
    start = end - selection.window_buckets + 1
    if created_at_s is not None:
        start = max(start, min(end, to_bucket_index(created_at_s, selection.granularity)))
    return BucketWindow(granularity=selection.granularity, start_index=start, end_index=end)
