"""Signal approval workflow.

States per signal: PENDING -> APPROVED. A receipt from the execution agent
retires the signal in either state; there is no rejected state.

The auto-approval window is advisory: `auto_approve_in_sec` is reported to
the dashboard but nothing promotes a signal on its own. Approval always
comes from an explicit `approve` call.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from oraclex_relay.errors import AlreadyApprovedError, NotFoundError, ValidationError
from oraclex_relay.infrastructure.logging.logging import get_logger
from oraclex_relay.infrastructure.utils.timeutils import Clock, epoch_ms, epoch_now
from oraclex_relay.models.trade_models import (
    PendingSignal,
    PendingSummary,
    QueuedCommand,
    SignalStatus,
    SubmitResult,
    TradeSignal,
)
from oraclex_relay.services.execution.command_queue import CommandQueue


class ApprovalWorkflow:
    def __init__(
        self,
        queue: CommandQueue,
        *,
        clock: Clock = epoch_now,
        auto_approve_window_sec: int = 30,
        default_lot: float = 0.1,
        default_comment: str = "ORACLEX",
        cmd_id_prefix: str = "OX_",
    ) -> None:
        self._queue = queue
        self._clock = clock
        self.auto_approve_window_sec = auto_approve_window_sec
        self.default_lot = default_lot
        self.default_comment = default_comment
        self.cmd_id_prefix = cmd_id_prefix

        self._lock = threading.Lock()
        self._signals: Dict[str, PendingSignal] = {}
        self._log = get_logger("approval_workflow")

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._signals)

    def _now_sec(self) -> int:
        return int(self._clock())

    def _countdown(self, created_at: int, now: int) -> int:
        return max(0, self.auto_approve_window_sec - (now - created_at))

    def _new_cmd_id(self) -> str:
        # caller holds the lock
        stamp = epoch_ms(self._clock())
        cmd_id = f"{self.cmd_id_prefix}{stamp}"
        while cmd_id in self._signals:
            stamp += 1
            cmd_id = f"{self.cmd_id_prefix}{stamp}"
        return cmd_id

    def submit(self, signal: Union[TradeSignal, Mapping[str, Any]]) -> SubmitResult:
        if not isinstance(signal, TradeSignal):
            if not isinstance(signal, Mapping):
                raise ValidationError("Signal must be an object")
            try:
                signal = TradeSignal.model_validate(dict(signal))
            except PydanticValidationError as e:
                raise ValidationError(f"Invalid signal: {e.errors(include_url=False)}")

        if not signal.symbol or not signal.action:
            raise ValidationError("Missing symbol or action")

        with self._lock:
            cmd_id = signal.cmd_id or self._new_cmd_id()
            existing = self._signals.get(cmd_id)
            if existing is not None and existing.status is SignalStatus.APPROVED:
                raise AlreadyApprovedError(f"Signal already approved: {cmd_id}")
            replaced = existing is not None
            now = self._now_sec()
            self._signals[cmd_id] = PendingSignal(cmd_id=cmd_id, signal=signal, created_at=now)

        if replaced:
            self._log.warning("signal_resubmitted", cmd_id=cmd_id)
        self._log.info(
            "signal_submitted",
            cmd_id=cmd_id,
            symbol=signal.symbol,
            action=signal.action,
            green_count=signal.green_count or 0,
            confidence=signal.confidence or 0,
            session=signal.current_session or "Unknown",
        )
        return SubmitResult(cmd_id=cmd_id, auto_approve_in_sec=self.auto_approve_window_sec)

    def approve(self, cmd_id: Optional[str], lot: Optional[float] = None) -> QueuedCommand:
        """Approve a pending signal and queue it for the execution agent.

        Unknown ids raise NotFoundError; a second approval raises
        AlreadyApprovedError so the same command is never queued twice.
        """
        if lot is not None and lot <= 0:
            raise ValidationError("lot must be positive")

        with self._lock:
            pending = self._signals.get(cmd_id) if cmd_id else None
            if pending is None:
                raise NotFoundError(f"Signal not found: {cmd_id}")
            if pending.status is SignalStatus.APPROVED:
                raise AlreadyApprovedError(f"Signal already approved: {cmd_id}")

            sig = pending.signal
            cmd = QueuedCommand(
                cmd_id=pending.cmd_id,
                symbol=sig.symbol or "",
                action=sig.action or "",
                lot=lot or sig.lot or self.default_lot,
                sl=sig.sl,
                tp=sig.tp,
                price=sig.price,
                comment=sig.comment or self.default_comment,
            )
            pending.status = SignalStatus.APPROVED
            pending.approved_at = self._now_sec()
            self._queue.push(cmd)

        self._log.info("signal_approved", cmd_id=cmd.cmd_id, symbol=cmd.symbol, action=cmd.action, lot=cmd.lot)
        return cmd

    def list_pending(self) -> List[PendingSummary]:
        with self._lock:
            now = self._now_sec()
            return [
                PendingSummary(
                    cmd_id=p.cmd_id,
                    symbol=p.signal.symbol or "",
                    action=p.signal.action or "",
                    status=p.status,
                    created_at=p.created_at,
                    auto_approve_in_sec=self._countdown(p.created_at, now),
                )
                for p in self._signals.values()
            ]

    def get(self, cmd_id: str) -> Optional[PendingSignal]:
        with self._lock:
            return self._signals.get(cmd_id)

    def retire(self, cmd_id: str) -> bool:
        with self._lock:
            return self._signals.pop(cmd_id, None) is not None
