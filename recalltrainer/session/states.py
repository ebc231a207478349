from __future__ import annotations

"""Session phases as a tagged variant plus a pure transition function.

    config -> (loading) -> presentation -> recall -> result -> config

Each phase is a frozen dataclass carrying only what that phase owns. The
transition function takes a state and an event and returns the next
state, or raises InvalidTransition; it performs no side effects. The
session manager applies it and owns timers, buffers and persistence.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Optional, Tuple, Union

from ..results.schema import TrialResult
from ..scoring.engine import ScoreCard
from .config import TrialConfig


class InvalidTransition(ValueError):
    """Event not valid for the current phase."""


@dataclass(frozen=True)
class GroundTruth:
    """Reference content for one session, immutable until reset.

    `items` are the atomic units a subject must reproduce (characters,
    words, images, face cards). `options` is the recall option set for
    selection-driven families. `groups` is the grouped display/speech
    form for families that present items in chunks.
    """

    family: str
    items: Tuple[Any, ...] = ()
    options: Tuple[Any, ...] = ()
    groups: Tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.items)

    @property
    def text(self) -> str:
        return "".join(str(i) for i in self.items)


@dataclass(frozen=True)
class Timestamps:
    presentation_start: Optional[float] = None
    presentation_end: Optional[float] = None
    recall_start: Optional[float] = None
    recall_end: Optional[float] = None

    @property
    def memorize_s(self) -> float:
        if self.presentation_start is None or self.presentation_end is None:
            return 0.0
        return max(0.0, self.presentation_end - self.presentation_start)

    @property
    def recall_s(self) -> float:
        if self.recall_start is None or self.recall_end is None:
            return 0.0
        return max(0.0, self.recall_end - self.recall_start)


# --- Phases ---

@dataclass(frozen=True)
class Configuring:
    phase: str = field(default="config", init=False)


@dataclass(frozen=True)
class Loading:
    config: TrialConfig
    truth: GroundTruth
    total: int
    loaded: int = 0
    failed: int = 0
    phase: str = field(default="loading", init=False)

    @property
    def settled(self) -> bool:
        return self.loaded >= self.total


@dataclass(frozen=True)
class Presenting:
    config: TrialConfig
    truth: GroundTruth
    times: Timestamps
    cursor: int = 0
    remaining_s: Optional[int] = None
    phase: str = field(default="presentation", init=False)


@dataclass(frozen=True)
class Recalling:
    config: TrialConfig
    truth: GroundTruth
    times: Timestamps
    phase: str = field(default="recall", init=False)


@dataclass(frozen=True)
class Finished:
    config: TrialConfig
    truth: GroundTruth
    times: Timestamps
    score: ScoreCard
    result: TrialResult
    phase: str = field(default="result", init=False)


SessionState = Union[Configuring, Loading, Presenting, Recalling, Finished]


# --- Events ---

@dataclass(frozen=True)
class Start:
    config: TrialConfig
    truth: GroundTruth
    at: float
    assets: int = 0


@dataclass(frozen=True)
class AssetSettled:
    ok: bool


@dataclass(frozen=True)
class Begin:
    at: float


@dataclass(frozen=True)
class Advance:
    cursor: int


@dataclass(frozen=True)
class Tick:
    remaining_s: int


@dataclass(frozen=True)
class FinishMemorizing:
    at: float


@dataclass(frozen=True)
class Submit:
    at: float
    score: ScoreCard
    result: TrialResult


@dataclass(frozen=True)
class NewSession:
    pass


Event = Union[Start, AssetSettled, Begin, Advance, Tick, FinishMemorizing, Submit, NewSession]


def transition(state: SessionState, event: Event) -> SessionState:
    """Next state for (state, event); raises InvalidTransition otherwise."""
    if isinstance(event, NewSession):
        # reset is only offered from the result screen; teardown paths
        # reset through the manager, which stops timers first
        if isinstance(state, (Finished, Configuring)):
            return Configuring()
        raise InvalidTransition(f"new session not allowed from {state.phase}")

    if isinstance(state, Configuring):
        if isinstance(event, Start):
            if event.assets > 0:
                return Loading(config=event.config, truth=event.truth, total=event.assets)
            return Presenting(config=event.config, truth=event.truth, times=Timestamps(presentation_start=event.at))

    elif isinstance(state, Loading):
        if isinstance(event, AssetSettled):
            if state.settled:
                raise InvalidTransition("all assets already settled")
            return replace(state, loaded=state.loaded + 1, failed=state.failed + (0 if event.ok else 1))
        if isinstance(event, Begin):
            if not state.settled:
                raise InvalidTransition(f"{state.total - state.loaded} assets still loading")
            return Presenting(config=state.config, truth=state.truth, times=Timestamps(presentation_start=event.at))

    elif isinstance(state, Presenting):
        if isinstance(event, Advance):
            # monotonic and bounded by the ground truth
            cursor = min(max(state.cursor, int(event.cursor)), len(state.truth))
            return replace(state, cursor=cursor)
        if isinstance(event, Tick):
            return replace(state, remaining_s=max(0, int(event.remaining_s)))
        if isinstance(event, FinishMemorizing):
            times = replace(state.times, presentation_end=event.at, recall_start=event.at)
            return Recalling(config=state.config, truth=state.truth, times=times)
        if isinstance(event, Submit):
            # live-answer families score straight from presentation
            times = replace(state.times, presentation_end=event.at)
            return Finished(config=state.config, truth=state.truth, times=times, score=event.score, result=event.result)

    elif isinstance(state, Recalling):
        if isinstance(event, Submit):
            times = replace(state.times, recall_end=event.at)
            return Finished(config=state.config, truth=state.truth, times=times, score=event.score, result=event.result)

    raise InvalidTransition(f"{type(event).__name__} not allowed in {state.phase}")
