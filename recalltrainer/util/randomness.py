from __future__ import annotations

"""Randomness helpers for seeding and per-session random sources."""

import os
import random
from typing import Optional


def seed_from_env() -> Optional[int]:
    """Return the integer in the SEED env var, or None when unset/invalid."""
    seed = os.environ.get("SEED")
    if seed is None:
        return None
    try:
        return int(seed)
    except ValueError:
        return None


def make_rng(seed: Optional[int] = None) -> random.Random:
    """Create an independent random source for one session.

    Explicit seed wins, then the SEED env var, then OS entropy. Generators
    only ever draw from the instance they are handed, so a seeded source
    makes a whole trial reproducible.
    """
    if seed is None:
        seed = seed_from_env()
    return random.Random(seed)
