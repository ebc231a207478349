from __future__ import annotations

"""Image-sequence generation."""

import random
from dataclasses import dataclass
from typing import Sequence, Tuple

from .banks import ImageEntry


@dataclass(frozen=True)
class ImageSequence:
    """Presentation order plus an independently shuffled recall option set."""

    sequence: Tuple[ImageEntry, ...]
    options: Tuple[ImageEntry, ...]


def generate_image_sequence(count: int, bank: Sequence[ImageEntry], rng: random.Random) -> ImageSequence:
    n = min(max(0, int(count)), len(bank))
    selected = rng.sample(list(bank), n)
    options = list(selected)
    rng.shuffle(options)
    return ImageSequence(sequence=tuple(selected), options=tuple(options))
