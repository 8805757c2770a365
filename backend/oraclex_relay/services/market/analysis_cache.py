"""Latest per-symbol analysis snapshot from the analysis engine."""

from __future__ import annotations

import threading
from typing import Any, Dict, Optional

from oraclex_relay.infrastructure.logging.logging import get_logger
from oraclex_relay.infrastructure.utils.timeutils import Clock, epoch_ms, epoch_now
from oraclex_relay.models.analysis_models import AnalysisSnapshot
from oraclex_relay.services.market.payloads import parse_batch


class AnalysisCache:
    def __init__(self, clock: Clock = epoch_now) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._snapshots: Dict[str, AnalysisSnapshot] = {}
        self._log = get_logger("analysis_cache")

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._snapshots)

    def put(self, batch: Any) -> int:
        """Replace the cached record of every symbol in the batch. Returns the count cached."""
        snapshots = parse_batch(batch, AnalysisSnapshot)

        with self._lock:
            stamp = epoch_ms(self._clock())
            for snap in snapshots:
                self._snapshots[snap.symbol] = snap.model_copy(update={"last_update": stamp})

        if snapshots:
            first = snapshots[0]
            self._log.info(
                "analysis_cached",
                symbols=len(snapshots),
                first=first.symbol,
                green=first.green_indicators(),
                confidence=first.confidence,
            )
        return len(snapshots)

    def get(self, symbol: str) -> Optional[AnalysisSnapshot]:
        # stored snapshots are never mutated, only replaced
        with self._lock:
            return self._snapshots.get(symbol)
