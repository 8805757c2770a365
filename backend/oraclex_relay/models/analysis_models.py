"""Analysis-engine domain models.

The analysis engine recomputes everything per symbol on each post, so an
`AnalysisSnapshot` is a full record: whatever the engine leaves out (or
sends as null) takes the default below, never the previous value.

Engine rounding is tolerated: a numeric `confidence` is clamped into
0..100 and a numeric `green_count` is rounded and floored at 0. A value
of the wrong type still rejects the whole batch.
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from oraclex_relay.models.market_models import IndicatorMap


class _DropNulls(BaseModel):
    model_config = ConfigDict(extra="allow")

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class MarketRegime(_DropNulls):
    trend: str = "Unknown"
    volatility: str = "Normal"
    structure: str = "Choppy"


class BiasStability(_DropNulls):
    active_since_minutes: float = 0
    last_flip_minutes_ago: Optional[float] = None


class ConfluenceComponent(_DropNulls):
    active: float = 0
    weight: float = 0
    name: str = ""


def default_confluence_breakdown() -> Dict[str, ConfluenceComponent]:
    """Four components weighted 40/30/20/10."""
    return {
        "ema_trend": ConfluenceComponent(active=0, weight=40, name="EMA Trend"),
        "momentum": ConfluenceComponent(active=0, weight=30, name="Momentum"),
        "structure": ConfluenceComponent(active=0, weight=20, name="Structure"),
        "filters": ConfluenceComponent(active=0, weight=10, name="Filters"),
    }


class StateStatistics(_DropNulls):
    continuation: float = 50
    reversal: float = 25
    consolidation: float = 25
    best_session: str = "Unknown"


class SessionIntelligence(_DropNulls):
    volatility: str = "Medium"
    best_setup: str = "Mixed"


class Confluence(_DropNulls):
    total: float = 0
    consensus: str = "0/4"


class AnalysisSnapshot(_DropNulls):
    """Full analysis record for one symbol."""

    model_config = ConfigDict(extra="ignore")

    symbol: str

    bias: str = "NEUTRAL"
    green_count: int = Field(default=0, ge=0)
    confidence: float = Field(default=0, ge=0, le=100)
    insight: str = "Analyzing..."
    indicators: IndicatorMap = Field(default_factory=dict)

    market_regime: MarketRegime = Field(default_factory=MarketRegime)
    bias_stability: BiasStability = Field(default_factory=BiasStability)
    confluence_breakdown: Dict[str, ConfluenceComponent] = Field(default_factory=default_confluence_breakdown)
    context_history: List[Dict[str, Any]] = Field(default_factory=list)
    state_statistics: StateStatistics = Field(default_factory=StateStatistics)
    current_session: str = "Unknown"
    session_intelligence: SessionIntelligence = Field(default_factory=SessionIntelligence)

    strategies: List[Any] = Field(default_factory=list)
    confluence: Confluence = Field(default_factory=Confluence)

    # epoch ms, stamped by the cache on arrival
    last_update: Optional[int] = None

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return min(100.0, max(0.0, float(v)))
        return v

    @field_validator("green_count", mode="before")
    @classmethod
    def round_green_count(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool) and math.isfinite(v):
            return max(0, int(round(v)))
        return v

    def green_indicators(self) -> int:
        return sum(1 for v in self.indicators.values() if v and v[0] == "🟢")
