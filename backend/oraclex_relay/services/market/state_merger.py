"""Dashboard view: price snapshots joined with analysis snapshots.

Price presence gates inclusion. A symbol the analysis engine knows but the
price feed has never reported is not served.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from oraclex_relay.infrastructure.utils.timeutils import Clock, epoch_ms, epoch_now, iso_from_epoch
from oraclex_relay.models.analysis_models import AnalysisSnapshot
from oraclex_relay.models.market_models import SymbolSnapshot
from oraclex_relay.services.market.analysis_cache import AnalysisCache
from oraclex_relay.services.market.symbol_store import SymbolStore

JsonDict = Dict[str, Any]

_PRICE_FIELDS = (
    "bid",
    "ask",
    "price_change_1h",
    "h1_high",
    "h1_low",
    "m5_high",
    "m5_low",
    "spread_points",
)
_SERIES_FIELDS = ("ohlcv_micro", "ohlcv_macro", "open_trades", "pending_orders")
DEFAULT_DIGITS = 5


@dataclass
class MergedView:
    market_data: List[JsonDict] = field(default_factory=list)
    timestamp: Optional[int] = None  # epoch ms of the last price batch
    data_age_sec: int = 0
    symbols_count: int = 0
    last_update: str = ""

    def to_dict(self) -> JsonDict:
        return {
            "market_data": self.market_data,
            "timestamp": self.timestamp,
            "data_age_sec": self.data_age_sec,
            "symbols_count": self.symbols_count,
            "last_update": self.last_update,
        }


def merge_symbol(price: SymbolSnapshot, analysis: Optional[AnalysisSnapshot]) -> JsonDict:
    """One dashboard record. Missing analysis falls back to the documented defaults."""
    enrichment = analysis if analysis is not None else AnalysisSnapshot(symbol=price.symbol)

    out: JsonDict = {
        "symbol": price.symbol,
        "price": price.price or price.ask or 0,
    }
    for name in _PRICE_FIELDS:
        out[name] = getattr(price, name) or 0

    out.update(enrichment.model_dump(mode="json", exclude={"symbol", "last_update"}))
    if analysis is None and price.indicators:
        out["indicators"] = price.indicators

    out["digits"] = price.digits or DEFAULT_DIGITS
    for name in _SERIES_FIELDS:
        out[name] = getattr(price, name) or []

    out["last_update_mql5"] = price.last_update
    out["last_update_python"] = analysis.last_update if analysis is not None else None
    out["data_source"] = "merged"
    return out


class StateMerger:
    def __init__(self, store: SymbolStore, cache: AnalysisCache, clock: Clock = epoch_now) -> None:
        self._store = store
        self._cache = cache
        self._clock = clock

    def build_view(self) -> MergedView:
        snapshots, last_batch = self._store.snapshot()
        merged = [merge_symbol(s, self._cache.get(s.symbol)) for s in snapshots]

        now = self._clock()
        return MergedView(
            market_data=merged,
            timestamp=epoch_ms(last_batch) if last_batch is not None else None,
            data_age_sec=max(0, int(now - last_batch)) if last_batch is not None else 0,
            symbols_count=len(merged),
            last_update=iso_from_epoch(now) or "",
        )
