"""Latest per-symbol price/technical snapshot from the price feed."""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional, Tuple

from oraclex_relay.infrastructure.logging.logging import get_logger
from oraclex_relay.infrastructure.utils.timeutils import Clock, epoch_now
from oraclex_relay.models.market_models import SymbolSnapshot, SymbolUpdate
from oraclex_relay.services.market.payloads import parse_batch


class SymbolStore:
    """Keyed by symbol. Updates are sticky-merged, never wholesale replaced.

    `last_batch_time` is store-wide: stamped once per upsert call.
    """

    def __init__(self, clock: Clock = epoch_now) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._snapshots: Dict[str, SymbolSnapshot] = {}
        self._last_batch_time: Optional[float] = None
        self._log = get_logger("symbol_store")

    @property
    def last_batch_time(self) -> Optional[float]:
        with self._lock:
            return self._last_batch_time

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._snapshots)

    def upsert(self, batch: Any) -> int:
        """Merge a batch of partial records. Returns the number of symbols held."""
        updates = parse_batch(batch, SymbolUpdate)

        with self._lock:
            now = self._clock()
            for update in updates:
                existing = self._snapshots.get(update.symbol)
                if existing is None:
                    self._snapshots[update.symbol] = SymbolSnapshot.from_update(update)
                else:
                    existing.merge(update)
            self._last_batch_time = now
            total = len(self._snapshots)

        self._log.debug("prices_merged", received=len(updates), symbols=total)
        return total

    def replace_all(self, batch: Any) -> int:
        """Legacy bulk replace: the batch becomes the whole store."""
        updates = parse_batch(batch, SymbolUpdate)

        with self._lock:
            now = self._clock()
            fresh: Dict[str, SymbolSnapshot] = {}
            for update in updates:
                if update.symbol in fresh:
                    fresh[update.symbol].merge(update)
                else:
                    fresh[update.symbol] = SymbolSnapshot.from_update(update)
            self._snapshots = fresh
            self._last_batch_time = now
            total = len(fresh)

        self._log.info("prices_replaced", symbols=total)
        return total

    def touch_if_unset(self) -> None:
        with self._lock:
            if self._last_batch_time is None:
                self._last_batch_time = self._clock()

    def get(self, symbol: str) -> Optional[SymbolSnapshot]:
        with self._lock:
            snap = self._snapshots.get(symbol)
            return snap.copy() if snap is not None else None

    def all_snapshots(self) -> List[SymbolSnapshot]:
        with self._lock:
            return [s.copy() for s in self._snapshots.values()]

    def snapshot(self) -> Tuple[List[SymbolSnapshot], Optional[float]]:
        """Records and the batch time they belong to, read under one lock."""
        with self._lock:
            return [s.copy() for s in self._snapshots.values()], self._last_batch_time
