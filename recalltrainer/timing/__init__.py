from .host import ThreadingTimerHost, TimerHandle, TimerHost
from .scheduler import (
    CountdownScheduler,
    ManualScheduler,
    PacedScheduler,
    PresentationPlan,
    Scheduler,
    SpokenScheduler,
    make_scheduler,
)
from .speech_queue import UtteranceQueue

__all__ = [
    "ThreadingTimerHost",
    "TimerHandle",
    "TimerHost",
    "CountdownScheduler",
    "ManualScheduler",
    "PacedScheduler",
    "PresentationPlan",
    "Scheduler",
    "SpokenScheduler",
    "make_scheduler",
    "UtteranceQueue",
]
