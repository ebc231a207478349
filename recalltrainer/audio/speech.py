from __future__ import annotations

"""Abstract-ish speech interface.

A speaker says one short utterance at a time and reports completion via
a callback; the utterance queue decides what to say next.
"""

from typing import Callable, Iterable


class Speaker:
    """Abstract-like speaker interface for spoken-number playback."""

    def speak(self, text: str, on_done: Callable[[], None]) -> None:
        """Start saying `text`; call `on_done` when finished."""
        raise NotImplementedError

    def cancel(self) -> None:
        """Stop the utterance in flight, if any."""
        pass

    def prefetch(self, texts: Iterable[str]) -> None:
        """Prepare clips ahead of the timed phase."""
        pass

    def close(self) -> None:
        """Release resources."""
        pass


class ConsoleSpeaker(Speaker):
    """Prints each utterance; completes immediately."""

    def speak(self, text: str, on_done: Callable[[], None]) -> None:
        print(f"  >> {text}", flush=True)
        on_done()


def spell_group(group: str) -> str:
    """Read digits individually: "37" -> "3 7"."""
    return " ".join(group)
