from __future__ import annotations

from types import MappingProxyType
from typing import List, Mapping

from packages.common.exceptions import UnknownTimeframeError
from packages.common.timeframes import Granularity, granularity_to_s
from packages.price_series.types import GranularitySelection, TimeframeId, TimeframeSpec


# Menu order. MAX has no fixed granularity/window: see granularity.select_granularity.
_CATALOG: Mapping[TimeframeId, TimeframeSpec] = MappingProxyType({
    TimeframeId.LIVE: TimeframeSpec(TimeframeId.LIVE, Granularity.MINUTE, 60, 60),
    TimeframeId.H4: TimeframeSpec(TimeframeId.H4, Granularity.MINUTE, 240, 60),
    TimeframeId.D1: TimeframeSpec(TimeframeId.D1, Granularity.HOUR, 24, 24),
    TimeframeId.W1: TimeframeSpec(TimeframeId.W1, Granularity.HOUR, 168, 42),
    TimeframeId.M1: TimeframeSpec(TimeframeId.M1, Granularity.DAY, 30, 30),
    TimeframeId.MAX: TimeframeSpec(TimeframeId.MAX, None, None, 100),
})


def parse_timeframe_id(timeframe: TimeframeId | str) -> TimeframeId:
    if isinstance(timeframe, TimeframeId):
        return timeframe
    try:
        return TimeframeId(str(timeframe).strip().upper())
    except ValueError:
        raise UnknownTimeframeError(timeframe) from None


def get_timeframe_spec(timeframe: TimeframeId | str) -> TimeframeSpec:
    return _CATALOG[parse_timeframe_id(timeframe)]


def list_timeframes() -> List[TimeframeSpec]:
    return list(_CATALOG.values())


def nominal_duration_s(selection: GranularitySelection) -> int:
    return selection.window_buckets * granularity_to_s(selection.granularity)
