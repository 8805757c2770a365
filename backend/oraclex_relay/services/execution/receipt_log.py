"""Execution outcomes reported by the execution agent."""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Mapping
from typing import Any, Deque, List, Union

from pydantic import ValidationError as PydanticValidationError

from oraclex_relay.errors import ValidationError
from oraclex_relay.infrastructure.logging.logging import get_logger
from oraclex_relay.infrastructure.utils.timeutils import Clock, epoch_now
from oraclex_relay.models.trade_models import ExecutionReceipt
from oraclex_relay.services.execution.approval_workflow import ApprovalWorkflow


class ReceiptLog:
    """Append-only, bounded to the newest `max_retained` receipts.

    Recording a receipt retires its signal from the workflow, whether it
    was still PENDING or already APPROVED.
    """

    def __init__(self, workflow: ApprovalWorkflow, *, clock: Clock = epoch_now, max_retained: int = 1000) -> None:
        self._workflow = workflow
        self._clock = clock
        self._lock = threading.Lock()
        self._receipts: Deque[ExecutionReceipt] = deque(maxlen=max_retained)
        self._log = get_logger("receipt_log")

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._receipts)

    def record(self, receipt: Union[ExecutionReceipt, Mapping[str, Any]]) -> ExecutionReceipt:
        if not isinstance(receipt, ExecutionReceipt):
            if not isinstance(receipt, Mapping):
                raise ValidationError("Receipt must be an object")
            try:
                receipt = ExecutionReceipt.model_validate(dict(receipt))
            except PydanticValidationError as e:
                raise ValidationError(f"Invalid receipt: {e.errors(include_url=False)}")

        stored = receipt.model_copy(update={"received_at": int(self._clock())})
        with self._lock:
            self._receipts.append(stored)
            retired = self._workflow.retire(stored.cmd_id) if stored.cmd_id else False

        ctx = stored.dashboard_context or {}
        self._log.info(
            "receipt_recorded",
            cmd_id=stored.cmd_id,
            symbol=stored.symbol,
            action=stored.action,
            retcode=stored.retcode,
            retired=retired,
            regime=ctx.get("market_regime_trend"),
            session=ctx.get("current_session"),
        )
        return stored

    def recent(self, limit: int = 100) -> List[ExecutionReceipt]:
        """Newest first."""
        with self._lock:
            items = list(self._receipts)
        items.reverse()
        return items[: max(0, limit)]
