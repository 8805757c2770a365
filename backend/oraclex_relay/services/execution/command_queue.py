"""Outbound commands for the execution agent (FIFO, destructive poll)."""

from __future__ import annotations

import threading
from collections import deque
from typing import Deque, Optional

from oraclex_relay.infrastructure.logging.logging import get_logger
from oraclex_relay.models.trade_models import QueuedCommand


class CommandQueue:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: Deque[QueuedCommand] = deque()
        self._log = get_logger("command_queue")

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._items)

    def push(self, cmd: QueuedCommand) -> None:
        with self._lock:
            self._items.append(cmd)

    def pop_next(self) -> Optional[QueuedCommand]:
        """Remove and return the oldest command, or None when there is nothing to do."""
        with self._lock:
            if not self._items:
                return None
            cmd = self._items.popleft()
        self._log.info("command_polled", cmd_id=cmd.cmd_id, symbol=cmd.symbol, action=cmd.action, lot=cmd.lot)
        return cmd

    def flush(self) -> int:
        with self._lock:
            dropped = len(self._items)
            self._items.clear()
        self._log.warning("queue_flushed", dropped=dropped)
        return dropped
