from __future__ import annotations

# Synthetic price used before an asset existed or before its first trade.
# Must stay > 0: percentage displays divide by it.
BASELINE_PRICE: float = 0.00001

# Upper bound on day buckets requested for the all-time view.
MAX_ALL_TIME_DAY_BUCKETS: int = 365

# All-time granularity thresholds (asset age in seconds).
ALL_TIME_MINUTE_MAX_AGE_S: int = 3_600
ALL_TIME_HOUR_MAX_AGE_S: int = 7 * 86_400
