from __future__ import annotations

from typing import Sequence

from packages.price_series.types import DenseSlot, SeriesQuality


def has_gaps(slots: Sequence[DenseSlot], *, max_gap_buckets: int = 2) -> bool:
    prev = None
    for s in slots:
        if s.synthetic:
            continue
        if prev is not None and (s.bucket_index - prev) > max_gap_buckets:
            return True
        prev = s.bucket_index
    return False


def assess_quality(slots: Sequence[DenseSlot]) -> SeriesQuality:
    """
    Grade how much of the window is backed by real records.

      coverage >= 0.9 and no gaps -> EXCELLENT
      coverage >= 0.7 and no gaps -> GOOD
      coverage >= 0.5             -> FAIR
      otherwise                   -> POOR
    """
    if not slots:
        return SeriesQuality.POOR

    real = sum(1 for s in slots if not s.synthetic)
    coverage = real / len(slots)
    gaps = has_gaps(slots)

    if coverage >= 0.9 and not gaps:
        return SeriesQuality.EXCELLENT
    if coverage >= 0.7 and not gaps:
        return SeriesQuality.GOOD
    if coverage >= 0.5:
        return SeriesQuality.FAIR
    return SeriesQuality.POOR
