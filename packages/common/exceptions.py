from __future__ import annotations


class PriceSeriesError(Exception):
    """
    Base class for price series exceptions
    """


class UnknownTimeframeError(PriceSeriesError, ValueError):
    def __init__(self, timeframe: object):
        super().__init__(f"Unknown timeframe: {timeframe!r} (expected one of LIVE, 4H, 1D, 1W, 1M, MAX)")
        self.timeframe = timeframe


class SeriesSourceError(PriceSeriesError):
    """
    Raised by data sources; never produced by the resampling engine itself.
    """


class AssetNotFoundError(SeriesSourceError):
    def __init__(self, asset_id: str):
        super().__init__(f"Asset not found: {asset_id!r}")
        self.asset_id = asset_id


class SeriesTransportError(SeriesSourceError):
    pass
