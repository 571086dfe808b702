from __future__ import annotations

import math
from typing import Any, Iterable, List, Mapping, Optional

from loguru import logger
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from packages.common.timeframes import Granularity, to_bucket_index
from packages.price_series.types import TimeBucketRecord


class RawBucketRow(BaseModel):
    """
    One row as returned by the indexing service. Numeric fields usually arrive
    as strings (e.g. {"timestamp": "1724025600", "marketPrice": "0.00042"}).
    Either a bucket index or a bucket timestamp (seconds) must be present.
    """
    model_config = ConfigDict(extra="ignore")

    bucket_index: Optional[int] = Field(default=None, validation_alias=AliasChoices("bucketIndex", "bucket_index"))
    timestamp: Optional[int] = Field(default=None, validation_alias=AliasChoices("timestamp", "timestamp_s"))
    market_price: float = Field(validation_alias=AliasChoices("marketPrice", "market_price"))
    floor_price: float = Field(validation_alias=AliasChoices("floorPrice", "floor_price"))
    volume: float = 0.0

    @field_validator("market_price", "floor_price", "volume")
    @classmethod
    def _finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("must be finite")
        return v

    @field_validator("volume", mode="before")
    @classmethod
    def _missing_volume(cls, v: Any) -> Any:
        return 0.0 if v is None else v

    @model_validator(mode="after")
    def _has_position(self) -> "RawBucketRow":
        if self.bucket_index is None and self.timestamp is None:
            raise ValueError("row needs either bucketIndex or timestamp")
        return self


def parse_bucket_record(raw: Mapping[str, Any], granularity: Granularity) -> TimeBucketRecord | None:
    """
    Raw indexer row -> TimeBucketRecord.

    Malformed rows (unparsable or non-finite price/volume, no position) return
    None: the bucket is then treated as absent, never as a zero price.
    """
    try:
        row = RawBucketRow.model_validate(raw)
    except ValidationError as e:
        logger.warning("Dropping malformed bucket row granularity={} errors={} row={}", granularity.value, e.error_count(), dict(raw))
        return None

    idx = row.bucket_index if row.bucket_index is not None else to_bucket_index(row.timestamp, granularity)
    return TimeBucketRecord(
        bucket_index=int(idx),
        market_price=row.market_price,
        floor_price=row.floor_price,
        volume=row.volume,
    )


def coerce_records(items: Iterable[TimeBucketRecord | Mapping[str, Any]], granularity: Granularity) -> List[TimeBucketRecord]:
    out: List[TimeBucketRecord] = []
    for item in items:
        if isinstance(item, TimeBucketRecord):
            out.append(item)
            continue
        rec = parse_bucket_record(item, granularity)
        if rec is not None:
            out.append(rec)
    return out
