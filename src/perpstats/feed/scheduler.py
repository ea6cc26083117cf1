"""Deferred execution for feed callbacks.

The charting widget calls into the feed during its own initialisation and
does not tolerate re-entrant callbacks, so every protocol callback is handed
to a scheduler and runs on a later turn, even when the answer is already
known.
"""

import asyncio
from collections import deque
from typing import Any, Callable, Protocol


class Scheduler(Protocol):
    """Runs a callback on a later turn of the host's loop."""

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> None: ...


class AsyncioScheduler:
    """Defers callbacks to the next iteration of an asyncio event loop.

    Args:
        loop: Loop to schedule on. Defaults to the running loop at call time.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> None:
        loop = self._loop or asyncio.get_running_loop()
        loop.call_soon(callback, *args)


class TaskQueueScheduler:
    """FIFO task queue drained explicitly by the host.

    For hosts without an asyncio loop: callbacks queue up and run when the
    host calls run_pending(), never inside call_soon().
    """

    def __init__(self) -> None:
        self._queue: deque[tuple[Callable[..., Any], tuple[Any, ...]]] = deque()

    def __len__(self) -> int:
        return len(self._queue)

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> None:
        self._queue.append((callback, args))

    def run_pending(self) -> int:
        """Run the callbacks queued so far; ones they enqueue wait for the next call."""
        count = len(self._queue)
        for _ in range(count):
            callback, args = self._queue.popleft()
            callback(*args)
        return count
