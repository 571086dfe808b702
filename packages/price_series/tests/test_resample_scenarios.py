# packages/price_series/tests/test_resample_scenarios.py

from __future__ import annotations

from typing import List

import pytest

from packages.common.config import SeriesEngineConfig
from packages.common.constants import BASELINE_PRICE
from packages.common.exceptions import UnknownTimeframeError
from packages.common.timeframes import Granularity, from_bucket_index, to_bucket_index
from packages.price_series.catalog import get_timeframe_spec
from packages.price_series.engine import resample, resample_detailed
from packages.price_series.granularity import bucket_window, select_granularity
from packages.price_series.types import (
    SamplingRegime,
    SeriesContext,
    StageMetrics,
    TimeBucketRecord,
    TimeframeId,
)

NOW = 1_760_013_015  # 2025-10-09T12:30:15Z
DAY = 86_400


def _ctx(*, age_s: int, price: float = 2.0, floor: float = 1.5) -> SeriesContext:
    return SeriesContext(
        asset_id="0xcontent",
        created_at_s=NOW - age_s,
        current_market_price=price,
        current_floor_price=floor,
        now_s=NOW,
    )


def _window_indices(tf: str, ctx: SeriesContext) -> List[int]:
    sel = select_granularity(tf, created_at_s=ctx.created_at_s, now_s=ctx.now_s)
    return bucket_window(sel, now_s=ctx.now_s).indices()


def _records(indices, *, price_of=lambda i: 1.0 + (i % 13) / 10) -> List[TimeBucketRecord]:
    return [
        TimeBucketRecord(bucket_index=i, market_price=price_of(i), floor_price=price_of(i) * 0.9, volume=3.0)
        for i in indices
    ]


def test_new_asset_live_without_records_is_two_points_at_current_price():
    ctx = _ctx(age_s=30 * 60, price=0.00042, floor=0.0004)
    pts = resample("LIVE", [], ctx)

    assert len(pts) == 2
    assert [p.market_price for p in pts] == [0.00042, 0.00042]
    assert [p.floor_price for p in pts] == [0.0004, 0.0004]
    assert pts[0].timestamp_ms == (NOW - 60 * 60) * 1000
    assert pts[1].timestamp_ms == NOW * 1000
    assert all(p.volume == 0.0 for p in pts)


@pytest.mark.parametrize("tf, span_s", [("4H", 240 * 60), ("1D", DAY), ("1W", 7 * DAY), ("1M", 30 * DAY)])
def test_empty_history_spans_nominal_duration(tf, span_s):
    pts = resample(tf, [], _ctx(age_s=400 * DAY))

    assert len(pts) == 2
    assert pts[1].timestamp_ms - pts[0].timestamp_ms == span_s * 1000
    assert pts[0].market_price == pts[1].market_price == 2.0


def test_records_outside_window_count_as_empty_history():
    ctx = _ctx(age_s=400 * DAY)
    idx = _window_indices("1D", ctx)
    stale = _records([idx[0] - 50, idx[0] - 1, idx[-1] + 5])

    result = resample_detailed("1D", stale, ctx)

    assert result.regime is SamplingRegime.DEGENERATE
    assert len(result.points) == 2


def test_week_view_with_only_recent_hours():
    ctx = _ctx(age_s=10 * DAY, price=2.0)
    idx = _window_indices("1W", ctx)
    assert len(idx) == 168

    recent = idx[-6:]
    prices = {i: 1.0 + n / 10 for n, i in enumerate(recent)}
    records = _records(recent, price_of=lambda i: prices[i])

    result = resample_detailed("1W", records, ctx)
    pts = result.points

    assert result.regime is SamplingRegime.BLOCK
    assert result.real_points == 6
    assert len(pts) == 42

    # pre-data (not pre-creation): the asset is older than the window.
    # 41 blocks over 168 hours; only the last two reach the real hours
    assert all(p.market_price == BASELINE_PRICE for p in pts[:39])
    assert all(p.volume == 0.0 for p in pts[:39])
    assert pts[39].market_price != BASELINE_PRICE

    # the tail block was hours old, so the last point is appended at now
    assert pts[-1].timestamp_ms == NOW * 1000
    assert pts[-1].market_price == 2.0
    assert pts[-1].floor_price == 1.5

    # real hours surface ahead of synthetic ones
    assert pts[-3].timestamp_ms == from_bucket_index(recent[0], Granularity.HOUR) * 1000
    assert pts[-3].market_price == prices[recent[0]]
    assert pts[-2].market_price == prices[recent[1]]
    assert pts[-3].volume == 3.0


def test_month_view_with_three_day_records_interpolates():
    ctx = _ctx(age_s=60 * DAY, price=2.5, floor=2.0)
    idx = _window_indices("1M", ctx)
    anchors = {idx[4]: 1.0, idx[17]: 3.0, idx[28]: 2.0}
    records = _records(anchors, price_of=lambda i: anchors[i])

    result = resample_detailed("1M", records, ctx)
    pts = result.points

    assert result.regime is SamplingRegime.INTERPOLATE
    assert len(pts) == 30

    anchor_ms = {from_bucket_index(i, Granularity.DAY) * 1000 for i in anchors}
    assert pts[0].timestamp_ms == min(anchor_ms)
    assert pts[0].market_price == 1.0

    # last anchor is yesterday -> stale tail -> live point appended
    assert pts[-2].timestamp_ms == max(anchor_ms)
    assert pts[-2].market_price == 2.0
    assert pts[-1].timestamp_ms == NOW * 1000
    assert pts[-1].market_price == 2.5

    peak_ms = from_bucket_index(idx[17], Granularity.DAY) * 1000
    body = pts[:-1]
    rising = [p.market_price for p in body if p.timestamp_ms <= peak_ms]
    falling = [p.market_price for p in body if p.timestamp_ms >= peak_ms]
    assert rising == sorted(rising)
    assert falling == sorted(falling, reverse=True)

    # volume only on points coincident with a real record
    assert all(p.timestamp_ms in anchor_ms for p in pts if p.volume > 0)
    assert sum(1 for p in pts if p.volume > 0) >= 2


def test_fresh_tail_is_overwritten_not_appended():
    ctx = _ctx(age_s=10 * DAY, price=7.0, floor=6.0)
    idx = _window_indices("LIVE", ctx)
    pts = resample("LIVE", _records(idx), ctx)

    assert len(pts) == 60
    last_bucket_ms = from_bucket_index(to_bucket_index(NOW, Granularity.MINUTE), Granularity.MINUTE) * 1000
    assert pts[-1].timestamp_ms == last_bucket_ms
    assert pts[-1].market_price == 7.0
    assert pts[-1].floor_price == 6.0
    assert pts[-1].volume == 3.0
    assert pts[-2].market_price != 7.0


def test_all_time_young_asset_interpolates_to_target():
    ctx = _ctx(age_s=3 * 3_600, price=5.0)
    idx = _window_indices("MAX", ctx)
    assert len(idx) == 4

    result = resample_detailed("MAX", _records([idx[0], idx[-1]]), ctx)

    assert result.granularity is Granularity.HOUR
    assert result.regime is SamplingRegime.INTERPOLATE
    assert len(result.points) == 100
    assert result.points[-1].market_price == 5.0


def test_all_time_old_asset_uses_clamped_daily_window():
    ctx = _ctx(age_s=1_000 * DAY)
    idx = _window_indices("MAX", ctx)
    result = resample_detailed("MAX", _records(idx[::3]), ctx)

    assert result.granularity is Granularity.DAY
    assert len(result.window) == 365
    assert result.regime is SamplingRegime.BLOCK
    assert len(result.points) == 100


ALL_TIMEFRAMES = ["LIVE", "4H", "1D", "1W", "1M", "MAX"]


@pytest.mark.parametrize("tf", ALL_TIMEFRAMES)
@pytest.mark.parametrize("every", [1, 2, 7, 29])
@pytest.mark.parametrize("age_s", [45 * 60, 2 * DAY, 900 * DAY])
def test_output_invariants(tf, every, age_s):
    ctx = _ctx(age_s=age_s, price=0.0123, floor=0.01)
    idx = _window_indices(tf, ctx)
    # records before creation are ignored, so a very young asset may end up empty
    result = resample_detailed(tf, _records(idx[::every]), ctx)
    pts = result.points

    if result.regime is SamplingRegime.DEGENERATE:
        assert result.real_points == 0
        assert len(pts) == 2
    else:
        assert len(pts) == get_timeframe_spec(tf).target_points
    ts = [p.timestamp_ms for p in pts]
    assert ts == sorted(ts)
    assert pts[-1].market_price == 0.0123
    assert pts[-1].floor_price == 0.01
    assert ts[-1] <= NOW * 1000


def test_resample_is_deterministic():
    ctx = _ctx(age_s=20 * DAY)
    idx = _window_indices("1W", ctx)
    records = _records(idx[::5])

    assert resample("1W", records, ctx) == resample("1W", list(reversed(records)), ctx)


def test_configurable_baseline_price():
    ctx = _ctx(age_s=10 * DAY)
    idx = _window_indices("1W", ctx)
    cfg = SeriesEngineConfig(baseline_price=0.5)

    pts = resample("1W", _records(idx[-2:]), ctx, config=cfg)

    assert pts[0].market_price == 0.5


def test_clamp_policy_drops_pre_creation_buckets():
    ctx = _ctx(age_s=2 * DAY)
    idx = _window_indices("1W", ctx)
    created_idx = to_bucket_index(ctx.created_at_s, Granularity.HOUR)
    records = _records([i for i in idx if i >= created_idx][::2])

    baseline = resample_detailed("1W", records, ctx)
    clamped = resample_detailed("1W", records, ctx, config=SeriesEngineConfig(pre_creation_policy="clamp"))

    assert len(baseline.window) == 168
    assert clamped.window.start_index == created_idx
    assert len(clamped.window) == 49
    assert len(clamped.points) == 42
    assert clamped.points[0].timestamp_ms >= ctx.created_at_s // 3_600 * 3_600 * 1000
    assert baseline.points[0].market_price == BASELINE_PRICE


def test_stage_hook_receives_each_stage():
    seen: List[StageMetrics] = []
    ctx = _ctx(age_s=10 * DAY)
    idx = _window_indices("1D", ctx)

    resample("1D", _records(idx), ctx, on_stage=seen.append)

    assert [m.stage for m in seen] == ["select", "gap_fill", "sample", "anchor", "quality"]
    assert all(m.timeframe is TimeframeId.D1 and m.asset_id == "0xcontent" for m in seen)
    assert seen[0].values["granularity"] == "hour"
    assert seen[1].values["real"] == 24
    assert seen[2].values["regime"] == "block"


def test_stage_hook_degenerate_has_no_anchor_stage():
    seen: List[StageMetrics] = []
    resample("LIVE", [], _ctx(age_s=600), on_stage=seen.append)

    assert [m.stage for m in seen] == ["select", "gap_fill", "sample", "quality"]
    assert seen[2].values["regime"] == "degenerate"


def test_unknown_timeframe_raises():
    with pytest.raises(UnknownTimeframeError):
        resample("3D", [], _ctx(age_s=DAY))
