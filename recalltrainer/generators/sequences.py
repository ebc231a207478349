from __future__ import annotations

"""Digit and binary sequence generation."""

import random
from typing import List

DIGITS = "0123456789"
BINARY = "01"


def generate_sequence(count: int, alphabet: str, rng: random.Random) -> str:
    """Uniform, independent draw per position from `alphabet`."""
    return "".join(rng.choice(alphabet) for _ in range(max(0, int(count))))


def generate_digits(count: int, rng: random.Random) -> str:
    return generate_sequence(count, DIGITS, rng)


def generate_binary(count: int, rng: random.Random) -> str:
    return generate_sequence(count, BINARY, rng)


def chunk(sequence: str, size: int) -> List[str]:
    """Split into consecutive groups of `size`; the last group may be short."""
    size = max(1, int(size))
    return [sequence[i:i + size] for i in range(0, len(sequence), size)]
