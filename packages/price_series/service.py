from __future__ import annotations

import asyncio
from typing import Any, Dict, Mapping, Optional, Protocol, Sequence

from loguru import logger

from packages.common.config import SeriesEngineConfig
from packages.common.datetime_utils import now_s as _now_s
from packages.common.timeframes import Granularity
from packages.price_series.catalog import get_timeframe_spec
from packages.price_series.engine import StageHook, log_stage_metrics, resample_detailed
from packages.price_series.granularity import bucket_window, select_granularity
from packages.price_series.records import coerce_records
from packages.price_series.types import AssetMeta, SeriesContext, SeriesResult, TimeBucketRecord, TimeframeId


class SeriesDataSource(Protocol):
    async def fetch_asset_meta(self, asset_id: str) -> AssetMeta:
        """Raise AssetNotFoundError for an unknown asset."""
        ...

    async def fetch_bucket_records(
        self,
        asset_id: str,
        granularity: Granularity,
        bucket_indices: Sequence[int],
    ) -> Sequence[TimeBucketRecord | Mapping[str, Any]]:
        """
        Return whichever requested buckets exist (sparse, any order).
        Raise SeriesTransportError on network/service failure.
        """
        ...


class SeriesService:
    """
    Fetch -> resample for chart series.

    Source errors (AssetNotFoundError, SeriesTransportError) propagate as-is:
    a failed fetch is never resampled as an empty history.
    """

    def __init__(
        self,
        source: SeriesDataSource,
        cfg: SeriesEngineConfig | None = None,
        *,
        on_stage: Optional[StageHook] = None,
    ):
        self._source = source
        self.cfg = cfg or SeriesEngineConfig()
        if on_stage is None and self.cfg.log_stage_metrics:
            on_stage = log_stage_metrics
        self._on_stage = on_stage

    async def build_series(
        self,
        asset_id: str,
        timeframe: TimeframeId | str,
        *,
        now_s: int | None = None,
    ) -> SeriesResult:
        meta = await self._source.fetch_asset_meta(asset_id)
        ctx = SeriesContext.from_meta(meta, now_s=_now_s() if now_s is None else now_s)
        return await self._build(ctx, timeframe)

    async def build_many(
        self,
        asset_id: str,
        timeframes: Sequence[TimeframeId | str],
        *,
        now_s: int | None = None,
    ) -> Dict[TimeframeId, SeriesResult]:
        specs = [get_timeframe_spec(tf) for tf in timeframes]

        meta = await self._source.fetch_asset_meta(asset_id)
        ctx = SeriesContext.from_meta(meta, now_s=_now_s() if now_s is None else now_s)

        tasks = [asyncio.create_task(self._build(ctx, s.id)) for s in specs]
        try:
            results = await asyncio.gather(*tasks)
        except Exception:
            for t in tasks:
                t.cancel()
            # reap siblings so their errors are not left unretrieved
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return {r.timeframe: r for r in results}

    async def _build(self, ctx: SeriesContext, timeframe: TimeframeId | str) -> SeriesResult:
        spec = get_timeframe_spec(timeframe)

        selection = select_granularity(
            spec.id,
            created_at_s=ctx.created_at_s,
            now_s=ctx.now_s,
            max_day_buckets=self.cfg.max_all_time_day_buckets,
        )
        window = bucket_window(
            selection,
            now_s=ctx.now_s,
            created_at_s=ctx.created_at_s if self.cfg.pre_creation_policy == "clamp" else None,
        )

        logger.info(
            "SeriesService.build asset={} tf={} granularity={} buckets=[{}..{}] ({})",
            ctx.asset_id,
            spec.id.value,
            selection.granularity.value,
            window.start_index,
            window.end_index,
            len(window),
        )

        raw = await self._source.fetch_bucket_records(ctx.asset_id, selection.granularity, window.indices())
        records = coerce_records(raw, selection.granularity)

        if len(records) < len(raw):
            logger.warning(
                "Dropped {} malformed rows asset={} tf={}",
                len(raw) - len(records),
                ctx.asset_id,
                spec.id.value,
            )

        result = resample_detailed(spec.id, records, ctx, config=self.cfg, on_stage=self._on_stage)

        logger.info(
            "Series built asset={} tf={} regime={} real={} points={} quality={}",
            ctx.asset_id,
            spec.id.value,
            result.regime.value,
            result.real_points,
            len(result.points),
            result.quality.value,
        )
        return result
