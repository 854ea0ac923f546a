"""Lifecycle state and in-flight bookkeeping for the daemon.

The daemon moves through INITIALIZING -> LISTENING -> SHUTTING_DOWN -> STOPPED
and never goes back. Connection tasks are tracked so shutdown can give them a
bounded grace period instead of dropping them outright.
"""

import asyncio
import time
from enum import Enum
from typing import Any, Dict, Set


class ServiceState(Enum):
    INITIALIZING = "initializing"
    LISTENING = "listening"
    SHUTTING_DOWN = "shutting_down"
    STOPPED = "stopped"


class ConnectionTracker:
    """
    Tracks connection tasks spawned by the accept loop.

    Only touched from the event loop thread, so no locking is needed.
    """

    def __init__(self):
        self.start_time = time.time()
        self.accepted = 0
        self._tasks: Set[asyncio.Task] = set()

    def track(self, task: asyncio.Task) -> None:
        self.accepted += 1
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def drain(self, grace_period: float) -> int:
        """
        Wait up to `grace_period` seconds for in-flight tasks, then cancel
        whatever is left.

        Returns:
            Number of tasks that had to be cancelled
        """
        if not self._tasks:
            return 0

        pending = set(self._tasks)
        if grace_period > 0:
            _, pending = await asyncio.wait(pending, timeout=grace_period)

        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        return len(pending)

    def get_stats(self) -> Dict[str, Any]:
        """Get daemon statistics for the shutdown log line."""
        return {
            "uptime_seconds": time.time() - self.start_time,
            "connections_accepted": self.accepted,
            "in_flight": self.in_flight,
        }
