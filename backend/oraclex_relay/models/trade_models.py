from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class SignalStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"


class TradeSignal(BaseModel):
    """Signal payload as posted by the analysis engine.

    symbol/action are optional here so the workflow can reject a missing
    one with its own error instead of a schema error.
    """

    model_config = ConfigDict(extra="allow")

    cmd_id: Optional[str] = None
    symbol: Optional[str] = None
    action: Optional[str] = None  # "BUY" | "SELL"
    lot: Optional[float] = Field(default=None, gt=0)
    entry: Optional[float] = None
    sl: Optional[float] = None
    tp: Optional[float] = None
    price: Optional[float] = None
    confidence: Optional[float] = None
    green_count: Optional[int] = None
    current_session: Optional[str] = None
    comment: Optional[str] = None


@dataclass
class PendingSignal:
    cmd_id: str
    signal: TradeSignal
    created_at: int  # epoch seconds
    status: SignalStatus = SignalStatus.PENDING
    approved_at: Optional[int] = None


@dataclass(frozen=True)
class QueuedCommand:
    cmd_id: str
    symbol: str
    action: str
    lot: float
    sl: Optional[float] = None
    tp: Optional[float] = None
    price: Optional[float] = None
    comment: str = "ORACLEX"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SubmitResult:
    cmd_id: str
    auto_approve_in_sec: int
    status: str = "PENDING_APPROVAL"


@dataclass(frozen=True)
class PendingSummary:
    cmd_id: str
    symbol: str
    action: str
    status: SignalStatus
    created_at: int
    auto_approve_in_sec: int


class ExecutionReceipt(BaseModel):
    """Outcome reported by the execution agent. Unknown fields are kept."""

    model_config = ConfigDict(extra="allow")

    cmd_id: Optional[str] = None
    symbol: Optional[str] = None
    action: Optional[str] = None
    retcode: Optional[int] = None
    dashboard_context: Optional[Dict[str, Any]] = None
    received_at: Optional[int] = None  # epoch seconds, stamped by the log
