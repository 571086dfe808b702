from __future__ import annotations

import math
from typing import List, Sequence

from packages.price_series.types import DenseSlot, PricePoint, SamplingRegime


def choose_regime(*, dense_len: int, real_count: int, target_points: int) -> SamplingRegime:
    """
    - no real record in the window           -> DEGENERATE (two-point series)
    - window longer than target, or dense
      with real data                         -> BLOCK
    - otherwise real data is too sparse and
      the window cannot be reduced any more  -> INTERPOLATE
    """
    if real_count <= 0:
        return SamplingRegime.DEGENERATE
    if dense_len > target_points or real_count >= target_points:
        return SamplingRegime.BLOCK
    return SamplingRegime.INTERPOLATE


def sample_interval(dense_len: int, target_points: int) -> int:
    return math.ceil(dense_len / target_points)


def _slot_point(s: DenseSlot) -> PricePoint:
    return PricePoint(
        timestamp_ms=s.timestamp_ms,
        market_price=s.market_price,
        floor_price=s.floor_price,
        volume=s.volume,
    )


def block_sample(slots: Sequence[DenseSlot], target_points: int) -> List[PricePoint]:
    """
    Reduce a dense slot sequence to exactly `target_points` points.

    The sequence is cut into `target_points` contiguous blocks
    [i*n//target .. (i+1)*n//target), so block sizes differ by at most one and
    never exceed sample_interval(n, target). Each block emits its first real
    slot; a block without one emits its first slot, which already holds the
    price carried into the block.

    Requires len(slots) >= target_points.
    """
    n = len(slots)
    if target_points <= 0:
        raise ValueError("target_points must be > 0")
    if n < target_points:
        raise ValueError(f"block_sample needs at least target_points slots (n={n} target={target_points})")

    out: List[PricePoint] = []
    for i in range(target_points):
        lo = (i * n) // target_points
        hi = ((i + 1) * n) // target_points

        chosen = slots[lo]
        for j in range(lo, hi):
            if not slots[j].synthetic:
                chosen = slots[j]
                break
        out.append(_slot_point(chosen))
    return out


def _lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def interpolate_sample(slots: Sequence[DenseSlot], target_points: int, *, end_s: int) -> List[PricePoint]:
    """
    Expand sparse real data to exactly `target_points` evenly spaced points.

    Anchors are the real slots. Timestamps run from the first anchor to the
    last (or to end_s when there is a single anchor); prices are linearly
    interpolated between the bracketing anchors. Volume is only attached to
    a point that lands exactly on an anchor.
    """
    if target_points <= 0:
        raise ValueError("target_points must be > 0")

    anchors = [s for s in slots if not s.synthetic]
    if not anchors:
        raise ValueError("interpolate_sample needs at least one real slot")

    first_ms = anchors[0].timestamp_ms
    last_ms = anchors[-1].timestamp_ms
    if len(anchors) == 1:
        last_ms = max(first_ms, int(end_s) * 1000)

    if target_points == 1:
        a = anchors[-1]
        return [PricePoint(timestamp_ms=a.timestamp_ms, market_price=a.market_price, floor_price=a.floor_price, volume=a.volume)]

    span = last_ms - first_ms
    by_ts = {a.timestamp_ms: a for a in anchors}

    out: List[PricePoint] = []
    k = 0  # anchors[k] is the left bracket
    for i in range(target_points):
        ts = first_ms + (span * i) // (target_points - 1)

        while k < len(anchors) - 1 and anchors[k + 1].timestamp_ms <= ts:
            k += 1

        left = anchors[k]
        if k == len(anchors) - 1:
            market, floor = left.market_price, left.floor_price
        else:
            right = anchors[k + 1]
            t = (ts - left.timestamp_ms) / (right.timestamp_ms - left.timestamp_ms)
            market = _lerp(left.market_price, right.market_price, t)
            floor = _lerp(left.floor_price, right.floor_price, t)

        hit = by_ts.get(ts)
        out.append(PricePoint(
            timestamp_ms=ts,
            market_price=hit.market_price if hit is not None else market,
            floor_price=hit.floor_price if hit is not None else floor,
            volume=hit.volume if hit is not None else 0.0,
        ))
    return out


def sample(slots: Sequence[DenseSlot], target_points: int, *, regime: SamplingRegime, end_s: int) -> List[PricePoint]:
    if regime is SamplingRegime.BLOCK:
        return block_sample(slots, target_points)
    if regime is SamplingRegime.INTERPOLATE:
        return interpolate_sample(slots, target_points, end_s=end_s)
    raise ValueError(f"regime {regime.value!r} does not sample")
