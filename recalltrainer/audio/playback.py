from __future__ import annotations

"""gTTS-based speech playback implementation."""

import hashlib
import threading
from pathlib import Path
from typing import Callable, Dict, Iterable

from ..app.explain import warn
from .speech import ConsoleSpeaker, Speaker


class GTTSSpeaker(Speaker):
    """Concrete Speaker rendering clips with gTTS and playing them with pydub.

    Clips are cached on disk by text, so the hundred possible two-digit
    groups are only rendered once. pydub playback cannot be interrupted,
    so `cancel()` stops any clip that has not started playing yet and
    suppresses the completion callback of the one in flight.
    """

    def __init__(self, lang: str = "en", cache_dir: str = "./.speech_cache") -> None:
        try:
            from gtts import gTTS  # type: ignore
            from pydub import AudioSegment  # type: ignore
            from pydub.playback import play  # type: ignore
        except Exception as e:  # pragma: no cover - runtime dependency
            raise RuntimeError("gTTS and pydub are not installed (pip install recalltrainer[speech])") from e

        self._gtts = gTTS
        self._segment = AudioSegment
        self._play = play
        self.lang = lang
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self._epoch = 0
        self._lock = threading.Lock()

    def _clip_path(self, text: str) -> Path:
        digest = hashlib.sha1(text.encode("utf-8")).hexdigest()[:16]
        return self.cache_dir / f"{self.lang}_{digest}.mp3"

    def _render(self, text: str) -> Path:
        path = self._clip_path(text)
        if not path.exists():
            self._gtts(text=text, lang=self.lang).save(str(path))
        return path

    def prefetch(self, texts: Iterable[str]) -> None:
        for text in dict.fromkeys(texts):
            try:
                self._render(text)
            except Exception as e:
                warn(f"Could not render speech clip '{text}': {e}")

    def speak(self, text: str, on_done: Callable[[], None]) -> None:
        with self._lock:
            epoch = self._epoch
        threading.Thread(target=self._run, args=(text, on_done, epoch), daemon=True).start()

    def _current(self, epoch: int) -> bool:
        with self._lock:
            return epoch == self._epoch

    def _run(self, text: str, on_done: Callable[[], None], epoch: int) -> None:
        try:
            path = self._render(text)
            if not self._current(epoch):
                return
            self._play(self._segment.from_file(str(path), format="mp3"))
        except Exception as e:
            warn(f"Speech playback failed for '{text}': {e}")
        finally:
            if self._current(epoch):
                on_done()

    def cancel(self) -> None:
        with self._lock:
            self._epoch += 1


def make_speaker_from_config(cfg: Dict) -> Speaker:
    """Factory for Speaker from config dict."""
    speech = cfg.get("speech", {})
    backend = speech.get("backend", "console")
    if backend == "console":
        return ConsoleSpeaker()
    if backend == "gtts":
        return GTTSSpeaker(
            lang=str(speech.get("lang", "en")),
            cache_dir=str(speech.get("cache_dir", "./.speech_cache")),
        )
    raise ValueError(f"Unsupported speech backend: {backend}")
