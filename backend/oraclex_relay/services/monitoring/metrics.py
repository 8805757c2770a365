"""In-memory status snapshot for /status."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional

from oraclex_relay.infrastructure.utils.timeutils import iso_from_epoch

if TYPE_CHECKING:
    from oraclex_relay.api.state import AppState


@dataclass
class RelayStatus:
    status: str = "running"
    relay_active: bool = True
    symbols_count: int = 0
    cache_size: int = 0
    queue_size: int = 0
    pending_approvals: int = 0
    receipts_count: int = 0
    last_update: Optional[str] = None
    data_age_sec: Optional[int] = None
    uptime_sec: int = 0
    timestamp: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def build_status(state: "AppState") -> RelayStatus:
    now = state.clock()
    last_batch = state.store.last_batch_time
    return RelayStatus(
        symbols_count=state.store.size,
        cache_size=state.cache.size,
        queue_size=state.queue.size,
        pending_approvals=state.workflow.size,
        receipts_count=state.receipts.size,
        last_update=iso_from_epoch(last_batch),
        data_age_sec=max(0, int(now - last_batch)) if last_batch is not None else None,
        uptime_sec=max(0, int(now - state.started_at)),
        timestamp=iso_from_epoch(now) or "",
    )
