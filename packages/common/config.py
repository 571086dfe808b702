from __future__ import annotations

import math
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator

from .constants import BASELINE_PRICE, MAX_ALL_TIME_DAY_BUCKETS


PreCreationPolicy = Literal["baseline", "clamp"]


class SeriesEngineConfig(BaseModel):
    # Price emitted before the asset existed / before its first record.
    baseline_price: float = BASELINE_PRICE

    # "baseline": pre-creation buckets are emitted at baseline_price
    # "clamp":    the window starts at the creation bucket (no pre-creation slots)
    pre_creation_policy: PreCreationPolicy = "baseline"

    max_all_time_day_buckets: int = Field(default=MAX_ALL_TIME_DAY_BUCKETS, ge=1)

    # When true, SeriesService wires log_stage_metrics as the stage hook.
    log_stage_metrics: bool = False

    @field_validator("baseline_price")
    @classmethod
    def _validate_baseline(cls, v: float) -> float:
        if not math.isfinite(v) or v <= 0:
            raise ValueError(f"baseline_price must be a finite value > 0 (got {v!r})")
        return v


def _maybe_load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    data = yaml.safe_load(path.read_text())
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML structure in {path}")
    return data


def load_series_config(path: Path = Path("config/series.yaml")) -> SeriesEngineConfig:
    raw = _maybe_load_yaml(path)

    # Accept either a flat file or one nested under "series:"
    if "series" in raw and isinstance(raw["series"], dict):
        raw = raw["series"]

    return SeriesEngineConfig.model_validate(raw) if raw else SeriesEngineConfig()
