"""
Delayed callbacks for the computed opponent and the coach's correction.

The delay is pacing for a human watching the board, not a concurrency tool.
Controllers only rely on `call_later(delay, callback)` returning a handle
with `cancel()`.
"""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Callable, List


class Scheduler:
    def call_later(self, delay: float, callback: Callable[[], None]):
        raise NotImplementedError


class ThreadScheduler(Scheduler):
    """Runs callbacks on daemon timer threads."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(max(0.0, delay), callback)
        timer.daemon = True
        timer.start()
        return timer


@dataclass
class _Done:
    def cancel(self) -> None:
        pass


class ImmediateScheduler(Scheduler):
    """Sleeps for the delay on the calling thread, then runs the callback inline."""

    def __init__(self, sleep: Callable[[float], None] = time.sleep):
        self._sleep = sleep

    def call_later(self, delay: float, callback: Callable[[], None]) -> _Done:
        if delay > 0:
            self._sleep(delay)
        callback()
        return _Done()


@dataclass
class PendingCall:
    delay: float
    callback: Callable[[], None]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class ManualScheduler(Scheduler):
    """Queues callbacks until run_pending() is called. Used by tests and step-through UIs."""

    pending: List[PendingCall] = field(default_factory=list)

    def call_later(self, delay: float, callback: Callable[[], None]) -> PendingCall:
        call = PendingCall(delay, callback)
        self.pending.append(call)
        return call

    def run_pending(self) -> int:
        """Run queued callbacks (including ones they queue) in order; return how many ran."""
        ran = 0
        while self.pending:
            call = self.pending.pop(0)
            if call.cancelled:
                continue
            call.callback()
            ran += 1
        return ran

    def run_next(self) -> bool:
        while self.pending:
            call = self.pending.pop(0)
            if not call.cancelled:
                call.callback()
                return True
        return False

    @property
    def waiting(self) -> int:
        return sum(1 for c in self.pending if not c.cancelled)
