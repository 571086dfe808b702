from __future__ import annotations

from typing import Callable, Iterable, List, Optional

from loguru import logger

from packages.common.config import SeriesEngineConfig
from packages.common.timeframes import granularity_to_s
from packages.price_series.catalog import get_timeframe_spec, nominal_duration_s
from packages.price_series.finalize import anchor_series, degenerate_series
from packages.price_series.gap_fill import fill_gaps, real_slot_count
from packages.price_series.granularity import bucket_window, select_granularity
from packages.price_series.quality import assess_quality
from packages.price_series.sampler import choose_regime, sample, sample_interval
from packages.price_series.types import (
    PricePoint,
    SamplingRegime,
    SeriesContext,
    SeriesResult,
    StageMetrics,
    TimeBucketRecord,
    TimeframeId,
)


StageHook = Callable[[StageMetrics], None]


def log_stage_metrics(m: StageMetrics) -> None:
    logger.debug("price_series stage={} tf={} asset={} {}", m.stage, m.timeframe.value, m.asset_id, m.values)


def resample_detailed(
    timeframe: TimeframeId | str,
    records: Iterable[TimeBucketRecord],
    ctx: SeriesContext,
    *,
    config: SeriesEngineConfig | None = None,
    on_stage: Optional[StageHook] = None,
) -> SeriesResult:
    """
    Sparse bucket records -> chart-ready series for one timeframe.

    Pure: no I/O, no shared state. Output has exactly the timeframe's target_points
    points (2 when the window holds no real record), ascending by time, and
    always ends at ctx.current_market_price / ctx.current_floor_price.
    """
    cfg = config or SeriesEngineConfig()
    spec = get_timeframe_spec(timeframe)

    def emit(stage: str, **values) -> None:
        if on_stage is not None:
            on_stage(StageMetrics(stage=stage, timeframe=spec.id, asset_id=ctx.asset_id, values=values))

    # 1) granularity + window
    selection = select_granularity(
        spec.id,
        created_at_s=ctx.created_at_s,
        now_s=ctx.now_s,
        max_day_buckets=cfg.max_all_time_day_buckets,
    )
    window = bucket_window(
        selection,
        now_s=ctx.now_s,
        created_at_s=ctx.created_at_s if cfg.pre_creation_policy == "clamp" else None,
    )
    bucket_s = granularity_to_s(selection.granularity)
    emit(
        "select",
        granularity=selection.granularity.value,
        window_buckets=selection.window_buckets,
        start_index=window.start_index,
        end_index=window.end_index,
    )

    # 2) gap fill
    slots = fill_gaps(window=window, records=records, ctx=ctx, baseline_price=cfg.baseline_price)
    real = real_slot_count(slots)
    emit(
        "gap_fill",
        slots=len(slots),
        real=real,
        pre_creation=sum(1 for s in slots if s.pre_creation),
    )

    # 3) sample + anchor
    regime = choose_regime(dense_len=len(slots), real_count=real, target_points=spec.target_points)
    if regime is SamplingRegime.DEGENERATE:
        points = degenerate_series(ctx, duration_s=nominal_duration_s(selection))
        emit("sample", regime=regime.value, points=len(points))
    else:
        sampled = sample(slots, spec.target_points, regime=regime, end_s=ctx.now_s)
        emit(
            "sample",
            regime=regime.value,
            points=len(sampled),
            sample_interval=sample_interval(len(slots), spec.target_points),
        )

        points = anchor_series(
            sampled,
            ctx,
            bucket_s=bucket_s,
            resample_short=lambda: sample(slots, spec.target_points - 1, regime=regime, end_s=ctx.now_s),
        )
        emit("anchor", appended=points[-1].timestamp_ms != sampled[-1].timestamp_ms, points=len(points))

    quality = assess_quality(slots)
    emit("quality", quality=quality.value)

    return SeriesResult(
        timeframe=spec.id,
        granularity=selection.granularity,
        regime=regime,
        quality=quality,
        real_points=real,
        window=window,
        points=points,
    )


def resample(
    timeframe: TimeframeId | str,
    records: Iterable[TimeBucketRecord],
    ctx: SeriesContext,
    *,
    config: SeriesEngineConfig | None = None,
    on_stage: Optional[StageHook] = None,
) -> List[PricePoint]:
    return resample_detailed(timeframe, records, ctx, config=config, on_stage=on_stage).points
