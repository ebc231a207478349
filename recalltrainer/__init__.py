"""RecallTrainer package initialization.

Timed memory-training trials built from four parts: content generators,
a presentation scheduler, a session state machine and a scoring engine.
The terminal front end lives in `recalltrainer.app.cli`.
"""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
