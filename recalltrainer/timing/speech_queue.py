from __future__ import annotations

"""FIFO utterance queue with at most one utterance speaking."""

import threading
from collections import deque
from typing import Deque, List, Optional

from ..app.explain import trace as xtrace
from ..audio.speech import Speaker


class UtteranceQueue:
    def __init__(self, speaker: Speaker, lock: Optional[threading.RLock] = None) -> None:
        self.speaker = speaker
        self._lock = lock or threading.RLock()
        self._pending: Deque[str] = deque()
        self._speaking = False
        self._epoch = 0
        self.spoken: List[str] = []

    def enqueue(self, text: str) -> None:
        with self._lock:
            self._pending.append(text)
            self._pump()

    def _pump(self) -> None:
        if self._speaking or not self._pending:
            return
        text = self._pending.popleft()
        self._speaking = True
        epoch = self._epoch
        self.spoken.append(text)
        xtrace("utterance_started", {"text": text, "queued": len(self._pending)})
        self.speaker.speak(text, lambda: self._finished(epoch))

    def _finished(self, epoch: int) -> None:
        with self._lock:
            # a flush in between makes this completion stale
            if epoch != self._epoch:
                return
            self._speaking = False
            self._pump()

    def flush(self) -> None:
        """Drop queued utterances and cancel the one in flight."""
        with self._lock:
            self._epoch += 1
            dropped = len(self._pending)
            self._pending.clear()
            if self._speaking:
                self.speaker.cancel()
                self._speaking = False
            xtrace("utterances_flushed", {"dropped": dropped})

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._pending)

    def is_speaking(self) -> bool:
        with self._lock:
            return self._speaking
