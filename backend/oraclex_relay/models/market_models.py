"""Price-feed domain models.

The price producer sends fragments: a `SymbolUpdate` only carries the
fields that changed, and `SymbolSnapshot.merge` keeps every field the
update leaves out (sticky merge).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from oraclex_relay.errors import ValidationError

# indicator name -> [state glyph, value, label], e.g. {"RSI": ["🟢", 61.2, "Bullish"]}
IndicatorMap = Dict[str, List[Any]]


class SymbolUpdate(BaseModel):
    """Partial price record. Every field except `symbol` may be absent."""

    model_config = ConfigDict(extra="ignore")

    symbol: Optional[str] = None

    price: Optional[float] = None
    bid: Optional[float] = None
    ask: Optional[float] = None
    price_change_1h: Optional[float] = None
    h1_high: Optional[float] = None
    h1_low: Optional[float] = None
    m5_high: Optional[float] = None
    m5_low: Optional[float] = None
    spread_points: Optional[float] = None
    digits: Optional[int] = None

    ohlcv_micro: Optional[List[Any]] = None
    ohlcv_macro: Optional[List[Any]] = None
    open_trades: Optional[List[Any]] = None
    pending_orders: Optional[List[Any]] = None
    indicators: Optional[IndicatorMap] = None

    last_update: Optional[Any] = None

    @field_validator("symbol")
    @classmethod
    def strip_symbol(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return str(v).strip() or None

    def present_fields(self) -> Dict[str, Any]:
        """Fields carried by this update (None means absent)."""
        return self.model_dump(exclude_none=True, exclude={"symbol"})


@dataclass
class SymbolSnapshot:
    symbol: str

    price: Optional[float] = None
    bid: Optional[float] = None
    ask: Optional[float] = None
    price_change_1h: Optional[float] = None
    h1_high: Optional[float] = None
    h1_low: Optional[float] = None
    m5_high: Optional[float] = None
    m5_low: Optional[float] = None
    spread_points: Optional[float] = None
    digits: Optional[int] = None

    ohlcv_micro: Optional[List[Any]] = None
    ohlcv_macro: Optional[List[Any]] = None
    open_trades: Optional[List[Any]] = None
    pending_orders: Optional[List[Any]] = None
    indicators: Optional[IndicatorMap] = None

    last_update: Optional[Any] = None

    @classmethod
    def from_update(cls, update: SymbolUpdate) -> "SymbolSnapshot":
        if not update.symbol:
            raise ValidationError("symbol is required")
        return cls(symbol=update.symbol, **update.present_fields())

    def merge(self, update: SymbolUpdate) -> None:
        for name, value in update.present_fields().items():
            setattr(self, name, value)

    def copy(self) -> "SymbolSnapshot":
        return replace(self)
