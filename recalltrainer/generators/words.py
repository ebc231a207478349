from __future__ import annotations

"""Word sequence generation for word-list and word-palace trials."""

import math
import random
from typing import List

from .banks import WordPools


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def split_abstract(count: int, abstract_pct: float) -> tuple[int, int]:
    """Return (abstract, concrete) targets before pool capping."""
    count = max(0, int(count))
    pct = min(100.0, max(0.0, float(abstract_pct)))
    n_abstract = min(count, round_half_up(count * pct / 100.0))
    return n_abstract, count - n_abstract


def generate_word_mix(count: int, abstract_pct: float, pools: WordPools, rng: random.Random) -> List[str]:
    """Sample abstract and concrete words without replacement, then shuffle.

    Each share is capped to its pool, so the result may be shorter than
    `count` when a pool runs out.
    """
    n_abstract, n_concrete = split_abstract(count, abstract_pct)
    n_abstract = min(n_abstract, len(pools.abstract))
    n_concrete = min(n_concrete, len(pools.concrete))

    words = rng.sample(list(pools.abstract), n_abstract) + rng.sample(list(pools.concrete), n_concrete)
    rng.shuffle(words)
    return words


def generate_word_list(count: int, pools: WordPools, rng: random.Random) -> List[str]:
    n = min(max(0, int(count)), len(pools.general))
    return rng.sample(list(pools.general), n)
