from __future__ import annotations

"""Presentation schedulers: one interface, three strategies.

- CountdownScheduler: one-second ticks down to zero, then completion.
- PacedScheduler: reveals items at a fixed nominal pace, correcting each
  delay for the drift observed on the previous callback.
- SpokenScheduler: paced reveal that also enqueues one utterance per step.

A scheduler holds at most one pending timer. Every arm captures the
current epoch; `stop()` bumps it, so a callback that already fired but
has not yet run finds a mismatched epoch and does nothing.
"""

import threading
from dataclasses import dataclass
from typing import Callable, List, Literal, Optional, Tuple

from ..app.explain import trace as xtrace
from .host import TimerHandle, TimerHost
from .speech_queue import UtteranceQueue

Mode = Literal["manual", "countdown", "paced", "spoken"]


@dataclass(frozen=True)
class PresentationPlan:
    """What the scheduler needs to drive one presentation phase."""

    mode: Mode
    steps: int = 0
    pace_ms: int = 1000
    seconds: int = 0
    lead_in_ms: int = 0
    grace_ms: int = 0
    utterances: Tuple[str, ...] = ()


class Scheduler:
    """Base scheduler: start/stop lifecycle, epoch guard, completion callback."""

    def __init__(
        self,
        host: TimerHost,
        on_complete: Callable[[], None],
        on_tick: Optional[Callable[[int], None]] = None,
        lock: Optional[threading.RLock] = None,
    ) -> None:
        self.host = host
        self.on_complete = on_complete
        self.on_tick = on_tick or (lambda _v: None)
        self._lock = lock or threading.RLock()
        self._epoch = 0
        self._running = False
        self._handle: Optional[TimerHandle] = None

    def start(self, plan: PresentationPlan) -> None:
        with self._lock:
            self._halt()
            self._epoch += 1
            self._running = True
            xtrace("scheduler_started", {"mode": plan.mode, "steps": plan.steps, "seconds": plan.seconds})
            self._begin(plan, self._epoch)

    def stop(self) -> None:
        """Cancel the pending timer. Safe to call repeatedly and from any state."""
        with self._lock:
            was_running = self._running
            self._halt()
            self._epoch += 1
            self._on_stop()
            if was_running:
                xtrace("scheduler_stopped", {"epoch": self._epoch})

    def is_running(self) -> bool:
        with self._lock:
            return self._running

    def _halt(self) -> None:
        self._running = False
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _arm(self, delay_s: float, fn: Callable[[], None]) -> None:
        self._handle = self.host.call_later(max(0.0, delay_s), self._fire, self._epoch, fn)

    def _fire(self, epoch: int, fn: Callable[[], None]) -> None:
        with self._lock:
            if not self._running or epoch != self._epoch:
                xtrace("stale_callback_ignored", {"epoch": epoch, "current": self._epoch})
                return
            self._handle = None
            fn()

    def _complete(self) -> None:
        self._running = False
        self._handle = None
        xtrace("scheduler_completed", {"epoch": self._epoch})
        self.on_complete()

    # Strategy hooks
    def _begin(self, plan: PresentationPlan, epoch: int) -> None:
        raise NotImplementedError

    def _on_stop(self) -> None:
        pass


class ManualScheduler(Scheduler):
    """No timer at all: presentation ends only on the user's action."""

    def _begin(self, plan: PresentationPlan, epoch: int) -> None:
        pass


class CountdownScheduler(Scheduler):
    TICK_S = 1.0

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.remaining = 0

    def _begin(self, plan: PresentationPlan, epoch: int) -> None:
        self.remaining = max(0, int(plan.seconds))
        if self.remaining == 0:
            self._complete()
            return
        self._arm(self.TICK_S, self._tick)

    def _tick(self) -> None:
        self.remaining -= 1
        self.on_tick(self.remaining)
        if self.remaining <= 0:
            self._complete()
            return
        self._arm(self.TICK_S, self._tick)


class PacedScheduler(Scheduler):
    """Drift-compensated auto-advance.

    Step 0 is revealed at T0. Callback k (1-indexed) is expected at
    T0 + k*P; it measures drift = now - expected and arms the next
    callback after max(0, P - drift). When k reaches the step count,
    completion fires after the plan's grace delay.
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.steps = 0
        self.pace_s = 1.0
        self.grace_s = 0.0
        self.t0: Optional[float] = None
        self.k = 0
        self.cursor = 0
        self.drifts: List[float] = []
        self.fire_times: List[float] = []

    def _begin(self, plan: PresentationPlan, epoch: int) -> None:
        self.steps = max(0, int(plan.steps))
        self.pace_s = max(0, int(plan.pace_ms)) / 1000.0
        self.grace_s = max(0, int(plan.grace_ms)) / 1000.0
        self.t0 = None
        self.k = 0
        self.cursor = 0
        self.drifts = []
        self.fire_times = []
        self._prepare(plan)
        if plan.lead_in_ms > 0:
            self._arm(plan.lead_in_ms / 1000.0, self._launch)
        else:
            self._launch()

    def _prepare(self, plan: PresentationPlan) -> None:
        pass

    def _launch(self) -> None:
        self.t0 = self.host.now()
        if self.steps <= 0:
            self._complete()
            return
        self._step(0)
        self._arm(self.pace_s, self._advance)

    def expected_time(self, k: int) -> float:
        assert self.t0 is not None
        return self.t0 + k * self.pace_s

    def _advance(self) -> None:
        self.k += 1
        now = self.host.now()
        drift = now - self.expected_time(self.k)
        self.drifts.append(drift)
        self.fire_times.append(now)
        if self.k >= self.steps:
            if self.grace_s > 0:
                self._arm(self.grace_s, self._complete)
            else:
                self._complete()
            return
        self._step(self.k)
        self._arm(max(0.0, self.pace_s - drift), self._advance)

    def _step(self, k: int) -> None:
        self.cursor = k
        self.on_tick(k)


class SpokenScheduler(PacedScheduler):
    """Paced reveal where each step first enqueues its utterance."""

    def __init__(self, *args, queue: UtteranceQueue, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.queue = queue
        self.utterances: Tuple[str, ...] = ()

    def _prepare(self, plan: PresentationPlan) -> None:
        self.utterances = tuple(plan.utterances)

    def _step(self, k: int) -> None:
        if k < len(self.utterances):
            self.queue.enqueue(self.utterances[k])
        super()._step(k)

    def _on_stop(self) -> None:
        self.queue.flush()


def make_scheduler(
    mode: Mode,
    host: TimerHost,
    on_complete: Callable[[], None],
    on_tick: Optional[Callable[[int], None]] = None,
    *,
    queue: Optional[UtteranceQueue] = None,
    lock: Optional[threading.RLock] = None,
) -> Scheduler:
    if mode == "manual":
        return ManualScheduler(host, on_complete, on_tick, lock=lock)
    if mode == "countdown":
        return CountdownScheduler(host, on_complete, on_tick, lock=lock)
    if mode == "paced":
        return PacedScheduler(host, on_complete, on_tick, lock=lock)
    if mode == "spoken":
        if queue is None:
            raise ValueError("spoken scheduler needs an utterance queue")
        return SpokenScheduler(host, on_complete, on_tick, lock=lock, queue=queue)
    raise KeyError(f"Unknown scheduler mode: {mode}")
