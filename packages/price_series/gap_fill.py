from __future__ import annotations

import math
from typing import Dict, Iterable, List

from packages.common.constants import BASELINE_PRICE
from packages.common.timeframes import from_bucket_index, to_bucket_index
from packages.price_series.types import BucketWindow, DenseSlot, SeriesContext, TimeBucketRecord


def make_synthetic_slot(*, bucket_index: int, timestamp_s: int, market_price: float, floor_price: float, pre_creation: bool = False) -> DenseSlot:
    # volume is never forward-filled
    return DenseSlot(
        bucket_index=int(bucket_index),
        timestamp_s=int(timestamp_s),
        market_price=float(market_price),
        floor_price=float(floor_price),
        volume=0.0,
        synthetic=True,
        pre_creation=pre_creation,
    )


def index_records(records: Iterable[TimeBucketRecord], window: BucketWindow) -> Dict[int, TimeBucketRecord]:
    """
    Key records by bucket index, keeping only in-window records with finite
    prices and volume. On duplicate indices the last record wins.
    """
    out: Dict[int, TimeBucketRecord] = {}
    for r in records:
        idx = int(r.bucket_index)
        if idx not in window:
            continue
        if not (math.isfinite(r.market_price) and math.isfinite(r.floor_price) and math.isfinite(r.volume)):
            continue
        out[idx] = r
    return out


def fill_gaps(
    *,
    window: BucketWindow,
    records: Iterable[TimeBucketRecord],
    ctx: SeriesContext,
    baseline_price: float = BASELINE_PRICE,
) -> List[DenseSlot]:
    """
    Given sparse bucket records, return one slot per index in
    [window.start_index .. window.end_index], oldest first.

    Rules:
    - buckets before the creation bucket emit the baseline and never update the carry
    - a real record is emitted as-is and becomes the new carry
    - a missing bucket after creation carries the last real prices forward,
      or the baseline if nothing real has been seen yet
    - synthetic slots always have volume=0
    """
    g = window.granularity
    by_index = index_records(records, window)
    created_index = to_bucket_index(ctx.created_at_s, g)

    last_market = float(baseline_price)
    last_floor = float(baseline_price)
    have_anchor = False

    out: List[DenseSlot] = []
    for idx in range(window.start_index, window.end_index + 1):
        ts_s = from_bucket_index(idx, g)

        # the creation bucket itself is post-creation so its first trade is kept
        if idx < created_index:
            out.append(make_synthetic_slot(
                bucket_index=idx,
                timestamp_s=ts_s,
                market_price=baseline_price,
                floor_price=baseline_price,
                pre_creation=True,
            ))
            continue

        rec = by_index.get(idx)
        if rec is not None:
            last_market = float(rec.market_price)
            last_floor = float(rec.floor_price)
            have_anchor = True
            out.append(DenseSlot(
                bucket_index=idx,
                timestamp_s=ts_s,
                market_price=last_market,
                floor_price=last_floor,
                volume=float(rec.volume),
                synthetic=False,
            ))
            continue

        if have_anchor:
            out.append(make_synthetic_slot(bucket_index=idx, timestamp_s=ts_s, market_price=last_market, floor_price=last_floor))
        else:
            out.append(make_synthetic_slot(bucket_index=idx, timestamp_s=ts_s, market_price=baseline_price, floor_price=baseline_price))

    return out


def real_slot_count(slots: Iterable[DenseSlot]) -> int:
    return sum(1 for s in slots if not s.synthetic)
