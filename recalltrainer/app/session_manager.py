from __future__ import annotations

"""Session Manager: orchestrates one trial at a time.

The manager owns everything with a lifetime: the active scheduler, the
utterance queue, the asset preloader, the settle timer and the recall
buffer. Phase changes go through the pure `transition()` function;
the manager performs the side effects around them.

One re-entrant lock serializes timer callbacks, preload completions and
user actions. Every callback carries the generation it was created for;
`teardown()` bumps the generation so late callbacks do nothing.
"""

import random
import threading
from concurrent.futures import Executor
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..audio.playback import make_speaker_from_config
from ..audio.speech import Speaker
from ..generators.banks import ContentBanks, default_banks
from ..results.schema import TrialResult
from ..results.sink import ResultSink, make_sink_from_config, submit_result
from ..session.buffers import FieldRecall, LiveRecall, SelectionRecall, TextRecall
from ..session.config import TrialConfig, build_trial_config
from ..session.preload import AssetLoader, AssetPreloader, make_loader_from_config
from ..session.states import (
    AssetSettled,
    Advance,
    Begin,
    Configuring,
    Event,
    Finished,
    FinishMemorizing,
    GroundTruth,
    InvalidTransition,
    Loading,
    NewSession,
    Presenting,
    Recalling,
    SessionState,
    Start,
    Submit,
    Tick,
    transition,
)
from ..timing.host import ThreadingTimerHost, TimerHandle, TimerHost
from ..timing.scheduler import Scheduler, make_scheduler
from ..timing.speech_queue import UtteranceQueue
from ..util.randomness import make_rng
from . import trial_registry as registry
from .explain import trace as xtrace


Listener = Callable[[SessionState, Event], None]


class TrialSession:
    def __init__(
        self,
        cfg: Dict[str, Any],
        *,
        host: Optional[TimerHost] = None,
        speaker: Optional[Speaker] = None,
        loader: Optional[AssetLoader] = None,
        sink: Optional[ResultSink] = None,
        banks: Optional[ContentBanks] = None,
        executor: Optional[Executor] = None,
    ) -> None:
        self.cfg = cfg
        self._lock = threading.RLock()
        self.host = host or ThreadingTimerHost()
        self.speaker = speaker or make_speaker_from_config(cfg)
        self.queue = UtteranceQueue(self.speaker, lock=self._lock)
        self.preloader = AssetPreloader(
            loader or make_loader_from_config(cfg),
            executor=executor,
            max_workers=int(cfg.get("assets", {}).get("max_workers", 8)),
            lock=self._lock,
        )
        self.sink = sink or make_sink_from_config(cfg)
        self.banks = banks or default_banks()
        self.listeners: List[Listener] = []

        self.state: SessionState = Configuring()
        self.meta: Optional[registry.TrialMeta] = None
        self.preset = "default"
        self.buffer: Any = None
        self.recall_order: Tuple[Any, ...] = ()
        self.rng: Optional[random.Random] = None
        self.scheduler: Optional[Scheduler] = None
        self._settle_handle: Optional[TimerHandle] = None
        self._generation = 0
        self.last_saved: Optional[bool] = None

    # --- State plumbing ---

    @property
    def phase(self) -> str:
        return self.state.phase

    def _apply(self, event: Event) -> bool:
        try:
            nxt = transition(self.state, event)
        except InvalidTransition as e:
            xtrace("invalid_action", {"phase": self.state.phase, "event": type(event).__name__, "reason": str(e)})
            return False
        prev = self.state.phase
        self.state = nxt
        if nxt.phase != prev:
            xtrace("phase_changed", {"from": prev, "to": nxt.phase})
        for listener in list(self.listeners):
            listener(nxt, event)
        return True

    def _ignored(self, action: str) -> bool:
        xtrace("invalid_action", {"phase": self.state.phase, "action": action})
        return False

    def _session_cfg(self) -> Dict[str, Any]:
        return self.cfg.get("session", {})

    # --- Lifecycle ---

    def start(
        self,
        trial_id: str,
        preset: str = "default",
        overrides: Optional[Dict[str, Any]] = None,
        *,
        seed: Optional[int] = None,
    ) -> bool:
        """Generate content and enter loading or presentation."""
        with self._lock:
            if not isinstance(self.state, Configuring):
                return self._ignored("start")
            try:
                meta = registry.get_trial(trial_id)
            except KeyError:
                return self._ignored("start")
            cfg_overrides = dict((self.cfg.get("trials") or {}).get(trial_id) or {})
            params = registry.resolve_params(meta, preset, {**cfg_overrides, **(overrides or {})})
            if seed is None:
                seed = self._session_cfg().get("seed")
            config = build_trial_config(meta.id, params, seed)
            self.rng = make_rng(seed)
            truth = registry.generate_truth(meta, config, self.banks, self.rng)

            self._generation += 1
            gen = self._generation
            self.meta = meta
            self.preset = preset
            self.buffer = registry.make_buffer(meta, config, self.rng)
            self.recall_order = ()
            self.last_saved = None

            assets = registry.assets_for(meta, truth)
            if meta.scheduler == "spoken":
                self.speaker.prefetch(registry.make_plan(meta, config, truth, self._session_cfg()).utterances)
            self._apply(Start(config=config, truth=truth, at=self.host.now(), assets=len(assets)))
            xtrace("session_started", {"trial": meta.id, "preset": preset, **config.to_dict(), "items": len(truth)})

            if assets:
                self.preloader.start(
                    assets,
                    on_settled=partial(self._asset_settled, gen),
                    on_all_settled=partial(self._all_settled, gen),
                )
            else:
                self._begin_presentation()
            return True

    def _asset_settled(self, gen: int, asset: Any, ok: bool) -> None:
        with self._lock:
            if gen != self._generation:
                return
            self._apply(AssetSettled(ok=ok))

    def _all_settled(self, gen: int) -> None:
        with self._lock:
            if gen != self._generation or not isinstance(self.state, Loading):
                return
            delay_s = int(self._session_cfg().get("settle_delay_ms", 500)) / 1000.0
            xtrace("assets_settled", {"total": self.state.total, "failed": self.state.failed})
            self._settle_handle = self.host.call_later(delay_s, self._settle_elapsed, gen)

    def _settle_elapsed(self, gen: int) -> None:
        with self._lock:
            if gen != self._generation:
                return
            self._settle_handle = None
            if self._apply(Begin(at=self.host.now())):
                self._begin_presentation()

    def _begin_presentation(self) -> None:
        state = self.state
        assert isinstance(state, Presenting) and self.meta is not None
        gen = self._generation
        plan = registry.make_plan(self.meta, state.config, state.truth, self._session_cfg())
        if plan.mode == "countdown":
            self._apply(Tick(remaining_s=plan.seconds))
        self.scheduler = make_scheduler(
            plan.mode,
            self.host,
            on_complete=partial(self._presentation_complete, gen),
            on_tick=partial(self._scheduler_tick, gen, plan.mode),
            queue=self.queue,
            lock=self._lock,
        )
        self.scheduler.start(plan)

    def _scheduler_tick(self, gen: int, mode: str, value: int) -> None:
        with self._lock:
            if gen != self._generation:
                return
            xtrace("scheduler_tick", {"mode": mode, "value": value})
            if mode == "countdown":
                self._apply(Tick(remaining_s=value))
            else:
                self._apply(Advance(cursor=value))

    def _presentation_complete(self, gen: int) -> None:
        with self._lock:
            if gen != self._generation or not isinstance(self.state, Presenting):
                return
            self._leave_presentation()

    def _stop_scheduler(self) -> None:
        if self.scheduler is not None:
            self.scheduler.stop()

    def _leave_presentation(self) -> None:
        self._stop_scheduler()
        assert self.meta is not None
        if self.meta.recall == "live":
            self._finalize()
            return
        if self._apply(FinishMemorizing(at=self.host.now())):
            self._prepare_recall()

    def _prepare_recall(self) -> None:
        state = self.state
        assert isinstance(state, Recalling) and self.rng is not None
        if state.config.family == "names":
            order = list(state.truth.items)
            self.rng.shuffle(order)
            self.recall_order = tuple(order)
        elif state.truth.options:
            self.recall_order = tuple(state.truth.options)
        else:
            self.recall_order = tuple(state.truth.items)

    def finish_memorizing(self) -> bool:
        """User's "done memorizing" action."""
        with self._lock:
            if not isinstance(self.state, Presenting):
                return self._ignored("finish_memorizing")
            self._leave_presentation()
            return True

    # --- Recall inputs ---

    def set_text(self, text: str) -> bool:
        with self._lock:
            if not isinstance(self.state, Recalling) or not isinstance(self.buffer, TextRecall):
                return self._ignored("set_text")
            self.buffer.set(text)
            return True

    def toggle_image(self, image_id: Any) -> bool:
        """Select or unselect an image; submits once every position is filled."""
        with self._lock:
            if not isinstance(self.state, Recalling) or not isinstance(self.buffer, SelectionRecall):
                return self._ignored("toggle_image")
            if image_id not in {e.id for e in self.recall_order}:
                return self._ignored("toggle_image")
            added = self.buffer.toggle(image_id)
            xtrace("image_toggled", {"id": image_id, "added": added, "selected": len(self.buffer)})
            if len(self.buffer) >= len(self.state.truth):
                self._finalize()
            return True

    def set_name_field(self, card_id: Any, field_name: str, value: str) -> bool:
        with self._lock:
            if not isinstance(self.state, Recalling) or not isinstance(self.buffer, FieldRecall):
                return self._ignored("set_name_field")
            if card_id not in {c.id for c in self.recall_order}:
                return self._ignored("set_name_field")
            try:
                self.buffer.set_field(card_id, field_name, value)
            except KeyError:
                return self._ignored("set_name_field")
            return True

    def keystroke(self, text: str) -> bool:
        """Live answer text; True when it solved the current problem."""
        with self._lock:
            if not isinstance(self.state, Presenting) or not isinstance(self.buffer, LiveRecall):
                return self._ignored("keystroke")
            return self.buffer.stream.keystroke(text)

    def submit_answer(self, text: str) -> bool:
        with self._lock:
            if not isinstance(self.state, Presenting) or not isinstance(self.buffer, LiveRecall):
                return self._ignored("submit_answer")
            return self.buffer.stream.submit(text)

    def submit(self) -> bool:
        with self._lock:
            if not isinstance(self.state, Recalling):
                return self._ignored("submit")
            self._finalize()
            return True

    def _finalize(self) -> None:
        state = self.state
        assert isinstance(state, (Presenting, Recalling)) and self.meta is not None
        at = self.host.now()
        card = registry.score(self.meta, state.truth, self.buffer)
        times = state.times
        start = times.presentation_start if times.presentation_start is not None else at
        if isinstance(state, Presenting):
            memorize_s = max(0.0, at - start)
            recall_s = 0.0
        else:
            memorize_s = times.memorize_s
            recall_s = max(0.0, at - (times.recall_start if times.recall_start is not None else at))
        result = TrialResult(
            family=state.config.family,
            count=len(state.truth) if state.truth.items else card.total,
            correct=card.correct,
            total=card.total,
            percentage=card.percentage,
            memorize_s=round(memorize_s, 3),
            recall_s=round(recall_s, 3),
            seed=state.config.seed,
            preset=self.preset,
        )
        if not self._apply(Submit(at=at, score=card, result=result)):
            return
        xtrace("trial_scored", {"family": result.family, "correct": result.correct, "total": result.total, "pct": result.percentage})
        self.last_saved = submit_result(self.sink, result)

    # --- Reset / teardown ---

    def _release(self) -> None:
        self._generation += 1
        self._stop_scheduler()
        self.scheduler = None
        self.queue.flush()
        self.preloader.cancel()
        if self._settle_handle is not None:
            self._settle_handle.cancel()
            self._settle_handle = None

    def new_session(self) -> bool:
        """Result -> config; the only reset edge."""
        with self._lock:
            if not isinstance(self.state, (Finished, Configuring)):
                return self._ignored("new_session")
            self._release()
            self._apply(NewSession())
            self.meta = None
            self.buffer = None
            self.recall_order = ()
            return True

    def teardown(self) -> None:
        """Abandon whatever is running and return to config."""
        with self._lock:
            was = self.state.phase
            self._release()
            self.state = Configuring()
            self.meta = None
            self.buffer = None
            self.recall_order = ()
            xtrace("session_torn_down", {"from": was})

    def close(self) -> None:
        self.teardown()
        self.preloader.shutdown()
        self.speaker.close()

    # --- Views ---

    @property
    def config(self) -> Optional[TrialConfig]:
        return getattr(self.state, "config", None)

    @property
    def truth(self) -> Optional[GroundTruth]:
        return getattr(self.state, "truth", None)

    @property
    def result(self) -> Optional[TrialResult]:
        return self.state.result if isinstance(self.state, Finished) else None
