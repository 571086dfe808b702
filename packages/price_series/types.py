from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from packages.common.timeframes import Granularity


class TimeframeId(str, Enum):
    LIVE = "LIVE"
    H4 = "4H"
    D1 = "1D"
    W1 = "1W"
    M1 = "1M"
    MAX = "MAX"


class SamplingRegime(str, Enum):
    BLOCK = "block"
    INTERPOLATE = "interpolate"
    DEGENERATE = "degenerate"


class SeriesQuality(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


@dataclass(frozen=True)
class TimeframeSpec:
    """
    Catalog entry. granularity/window_buckets are None for the adaptive
    (all-time) timeframe; they are derived from asset age at selection time.
    """
    id: TimeframeId
    granularity: Optional[Granularity]
    window_buckets: Optional[int]
    target_points: int

    @property
    def adaptive(self) -> bool:
        return self.granularity is None


@dataclass(frozen=True)
class GranularitySelection:
    granularity: Granularity
    window_buckets: int


@dataclass(frozen=True)
class BucketWindow:
    """Inclusive bucket range [start_index .. end_index]."""
    granularity: Granularity
    start_index: int
    end_index: int

    def __len__(self) -> int:
        return max(0, self.end_index - self.start_index + 1)

    def indices(self) -> List[int]:
        return list(range(self.start_index, self.end_index + 1))

    def __contains__(self, bucket_index: object) -> bool:
        return isinstance(bucket_index, int) and self.start_index <= bucket_index <= self.end_index


@dataclass(frozen=True)
class TimeBucketRecord:
    bucket_index: int
    market_price: float
    floor_price: float
    volume: float = 0.0


@dataclass(frozen=True)
class AssetMeta:
    asset_id: str
    created_at_s: int
    current_market_price: float
    current_floor_price: float


@dataclass(frozen=True)
class SeriesContext:
    asset_id: str
    created_at_s: int
    current_market_price: float
    current_floor_price: float
    now_s: int

    @classmethod
    def from_meta(cls, meta: AssetMeta, *, now_s: int) -> "SeriesContext":
        return cls(
            asset_id=meta.asset_id,
            created_at_s=int(meta.created_at_s),
            current_market_price=float(meta.current_market_price),
            current_floor_price=float(meta.current_floor_price),
            now_s=int(now_s),
        )


@dataclass(frozen=True)
class DenseSlot:
    """
    One gap-filled bucket.
    - `synthetic` is True when no real record backed this slot (forward-fill or baseline)
    - `pre_creation` is True when the bucket precedes the asset's creation bucket
    """
    bucket_index: int
    timestamp_s: int
    market_price: float
    floor_price: float
    volume: float
    synthetic: bool
    pre_creation: bool = False

    @property
    def timestamp_ms(self) -> int:
        return self.timestamp_s * 1000


@dataclass(frozen=True)
class PricePoint:
    timestamp_ms: int
    market_price: float
    floor_price: float
    volume: float = 0.0


@dataclass(frozen=True)
class StageMetrics:
    stage: str
    timeframe: TimeframeId
    asset_id: str
    values: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SeriesResult:
    timeframe: TimeframeId
    granularity: Granularity
    regime: SamplingRegime
    quality: SeriesQuality
    real_points: int
    window: BucketWindow
    points: List[PricePoint]
