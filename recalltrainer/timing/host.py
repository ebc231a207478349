from __future__ import annotations

"""Timer host: the clock and one-shot timers schedulers run on.

Schedulers never call `time` or `threading` directly, so tests can swap
in a virtual clock and fire callbacks by hand.
"""

import threading
import time
from typing import Any, Callable, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class TimerHost:
    """Abstract-like host interface."""

    def now(self) -> float:
        """Current instant in seconds (monotonic)."""
        raise NotImplementedError

    def call_later(self, delay_s: float, fn: Callable[..., Any], *args: Any) -> TimerHandle:
        """Run `fn(*args)` once after `delay_s` seconds."""
        raise NotImplementedError


class ThreadingTimerHost(TimerHost):
    """Daemon `threading.Timer` per callback and a monotonic clock."""

    def now(self) -> float:
        return time.monotonic()

    def call_later(self, delay_s: float, fn: Callable[..., Any], *args: Any) -> TimerHandle:
        t = threading.Timer(max(0.0, float(delay_s)), fn, args=args)
        t.daemon = True
        t.start()
        return t
