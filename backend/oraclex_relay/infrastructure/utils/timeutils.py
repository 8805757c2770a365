from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Callable, Optional

Clock = Callable[[], float]


def epoch_now() -> float:
    return time.time()


def epoch_ms(ts: float) -> int:
    return int(ts * 1000)


def iso_from_epoch(ts: Optional[float]) -> Optional[str]:
    """Epoch seconds -> ISO-8601 UTC string (None stays None)."""
    if ts is None:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()
