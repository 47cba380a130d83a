"""Cosmetic countdown timers.

Timers never drive phase transitions. They only re-render values that are
recomputed from authoritative timestamps, so a late or skipped tick costs a
stale display for at most one interval.

Callbacks fire only from ``run_due``; the engine calls it through its intake
so a timer callback never interleaves with an event handler.
"""

import heapq
import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class TimerHandle:
    id: int
    due: float
    callback: Callable[[], None] = field(repr=False)
    interval: Optional[float] = None
    name: str = ''
    cancelled: bool = False

    @property
    def repeating(self) -> bool:
        return self.interval is not None


class TimerService:
    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        self._heap: List[Tuple[float, int, TimerHandle]] = []
        self._ids = itertools.count(1)
        self._live = {}

    @property
    def pending(self) -> int:
        return len(self._live)

    def next_due(self) -> Optional[float]:
        self._discard_cancelled()
        return self._heap[0][0] if self._heap else None

    def schedule(self, delay_ms: float, callback: Callable[[], None], name: str = '') -> TimerHandle:
        return self._add(delay_ms, callback, None, name)

    def schedule_repeating(self, interval_ms: float, callback: Callable[[], None], name: str = '') -> TimerHandle:
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        return self._add(interval_ms, callback, interval_ms / 1000.0, name)

    def cancel(self, handle: Optional[TimerHandle]) -> None:
        if handle is None or handle.cancelled:
            return
        handle.cancelled = True
        self._live.pop(handle.id, None)
        logger.debug(f"[timer-cancel] id={handle.id} name={handle.name}")

    def cancel_all(self) -> int:
        count = len(self._live)
        for handle in self._live.values():
            handle.cancelled = True
        self._live.clear()
        self._heap.clear()
        if count:
            logger.debug(f"[timer-cancel-all] cancelled={count}")
        return count

    def run_due(self, now: Optional[float] = None) -> int:
        """Fire every timer due at ``now``. Returns the number of callbacks run."""
        now = self.clock() if now is None else now
        fired = 0
        while self._heap and self._heap[0][0] <= now:
            due, _, handle = heapq.heappop(self._heap)
            if handle.cancelled:
                continue
            if handle.repeating:
                next_due = due + handle.interval
                if next_due <= now:
                    # fell behind; resume from now rather than firing a burst
                    next_due = now + handle.interval
                handle.due = next_due
                heapq.heappush(self._heap, (next_due, handle.id, handle))
            else:
                self._live.pop(handle.id, None)
                handle.cancelled = True
            fired += 1
            handle.callback()
        return fired

    def _add(self, delay_ms, callback, interval, name) -> TimerHandle:
        if delay_ms < 0:
            raise ValueError("delay_ms must not be negative")
        due = self.clock() + delay_ms / 1000.0
        handle = TimerHandle(id=next(self._ids), due=due, callback=callback, interval=interval, name=name)
        heapq.heappush(self._heap, (due, handle.id, handle))
        self._live[handle.id] = handle
        logger.debug(f"[timer-set] id={handle.id} name={name} due={due:.3f} repeating={handle.repeating}")
        return handle

    def _discard_cancelled(self) -> None:
        while self._heap and self._heap[0][2].cancelled:
            heapq.heappop(self._heap)
