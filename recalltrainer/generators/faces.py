from __future__ import annotations

"""Face/name pair generation."""

import random
from dataclasses import dataclass
from typing import List, Sequence

from .banks import FaceEntry, NameEntry


@dataclass(frozen=True)
class FaceCard:
    id: int
    face: FaceEntry
    first: str
    last: str
    origin: str


def generate_face_cards(
    count: int,
    faces: Sequence[FaceEntry],
    names: Sequence[NameEntry],
    rng: random.Random,
) -> List[FaceCard]:
    """Distinct faces, each paired with a name drawn with replacement."""
    if not names:
        return []
    n = min(max(0, int(count)), len(faces))
    chosen = rng.sample(list(faces), n)
    cards: List[FaceCard] = []
    for i, face in enumerate(chosen):
        name = rng.choice(list(names))
        cards.append(FaceCard(id=i, face=face, first=name.first, last=name.last, origin=name.origin))
    return cards
