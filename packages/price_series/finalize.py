from __future__ import annotations

from dataclasses import replace
from typing import Callable, List, Sequence

from packages.price_series.types import PricePoint, SeriesContext


def degenerate_series(ctx: SeriesContext, *, duration_s: int) -> List[PricePoint]:
    """
    No real record anywhere in the window: a two-point line at the live price
    spanning the timeframe's nominal duration.
    """
    end_ms = int(ctx.now_s) * 1000
    start_ms = end_ms - max(0, int(duration_s)) * 1000
    return [
        PricePoint(timestamp_ms=start_ms, market_price=ctx.current_market_price, floor_price=ctx.current_floor_price),
        PricePoint(timestamp_ms=end_ms, market_price=ctx.current_market_price, floor_price=ctx.current_floor_price),
    ]


def tail_is_stale(points: Sequence[PricePoint], *, now_s: int, bucket_s: int) -> bool:
    if not points:
        return True
    return (int(now_s) * 1000 - points[-1].timestamp_ms) > bucket_s * 1000


def anchor_series(
    points: Sequence[PricePoint],
    ctx: SeriesContext,
    *,
    bucket_s: int,
    resample_short: Callable[[], List[PricePoint]],
) -> List[PricePoint]:
    """
    Force the series to end at the live price.

    - tail within one bucket of now: overwrite the last point's prices
    - tail older than that: take one point less from `resample_short` and
      append a fresh point at now, so the output length is unchanged
    """
    if not tail_is_stale(points, now_s=ctx.now_s, bucket_s=bucket_s):
        out = list(points)
        out[-1] = replace(
            out[-1],
            market_price=ctx.current_market_price,
            floor_price=ctx.current_floor_price,
        )
        return out

    out = list(resample_short())
    out.append(PricePoint(
        timestamp_ms=int(ctx.now_s) * 1000,
        market_price=ctx.current_market_price,
        floor_price=ctx.current_floor_price,
        volume=0.0,
    ))
    return out
