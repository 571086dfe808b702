from __future__ import annotations

from datetime import datetime, timezone


def now_s() -> int:
    return int(datetime.now(tz=timezone.utc).timestamp())
