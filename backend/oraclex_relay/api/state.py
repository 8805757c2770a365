from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from oraclex_relay.infrastructure.utils.config import RelayConfig
from oraclex_relay.infrastructure.utils.timeutils import Clock, epoch_now
from oraclex_relay.services.execution.approval_workflow import ApprovalWorkflow
from oraclex_relay.services.execution.command_queue import CommandQueue
from oraclex_relay.services.execution.receipt_log import ReceiptLog
from oraclex_relay.services.market.analysis_cache import AnalysisCache
from oraclex_relay.services.market.state_merger import StateMerger
from oraclex_relay.services.market.symbol_store import SymbolStore


@dataclass
class AppState:
    """Every piece of mutable relay state. One instance per process."""

    store: SymbolStore
    cache: AnalysisCache
    merger: StateMerger
    queue: CommandQueue
    workflow: ApprovalWorkflow
    receipts: ReceiptLog
    clock: Clock = epoch_now
    started_at: float = field(default=0.0)


def build_state(config: Optional[RelayConfig] = None, *, clock: Clock = epoch_now) -> AppState:
    config = config or RelayConfig()

    store = SymbolStore(clock=clock)
    cache = AnalysisCache(clock=clock)
    queue = CommandQueue()
    workflow = ApprovalWorkflow(
        queue,
        clock=clock,
        auto_approve_window_sec=config.approval.auto_approve_window_sec,
        default_lot=config.approval.default_lot,
        default_comment=config.approval.default_comment,
        cmd_id_prefix=config.approval.cmd_id_prefix,
    )
    return AppState(
        store=store,
        cache=cache,
        merger=StateMerger(store, cache, clock=clock),
        queue=queue,
        workflow=workflow,
        receipts=ReceiptLog(workflow, clock=clock, max_retained=config.receipts.max_retained),
        clock=clock,
        started_at=clock(),
    )
