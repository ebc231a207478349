from __future__ import annotations

"""Read-only content banks consumed by the generators.

Word pools and the name table are YAML resources. The image and face
banks are index ranges over a local asset directory with a remote
mirror URL per image, so they can be built without any data file.
"""

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional, Tuple

import yaml


IMAGE_BANK_SIZE = 500
FACE_BANK_SIZE = 100


@dataclass(frozen=True)
class ImageEntry:
    id: int
    path: str
    url: str


@dataclass(frozen=True)
class FaceEntry:
    id: int
    path: str
    url: str


@dataclass(frozen=True)
class NameEntry:
    first: str
    last: str
    origin: str


@dataclass(frozen=True)
class WordPools:
    concrete: Tuple[str, ...]
    abstract: Tuple[str, ...]
    general: Tuple[str, ...]


@dataclass(frozen=True)
class ContentBanks:
    words: WordPools
    names: Tuple[NameEntry, ...]
    images: Tuple[ImageEntry, ...]
    faces: Tuple[FaceEntry, ...]


def _banks_dir() -> Path:
    return Path(__file__).resolve().parents[1] / "resources" / "banks"


def _load(path: Path) -> dict:
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_word_pools(path: Optional[str] = None) -> WordPools:
    data = _load(Path(path) if path else _banks_dir() / "words.yml")
    return WordPools(
        concrete=tuple(str(w) for w in data.get("concrete") or []),
        abstract=tuple(str(w) for w in data.get("abstract") or []),
        general=tuple(str(w) for w in data.get("general") or []),
    )


def load_name_table(path: Optional[str] = None) -> Tuple[NameEntry, ...]:
    data = _load(Path(path) if path else _banks_dir() / "names.yml")
    out = []
    for row in data.get("names") or []:
        out.append(NameEntry(first=str(row["first"]), last=str(row["last"]), origin=str(row.get("origin", ""))))
    return tuple(out)


def image_bank(size: int = IMAGE_BANK_SIZE) -> Tuple[ImageEntry, ...]:
    """Image identities 1..size; the remote seed scheme matches the download script."""
    return tuple(
        ImageEntry(
            id=i,
            path=f"images/sequence/img_{i:03d}.jpg",
            url=f"https://picsum.photos/seed/memory{i}{i // 10}/400/300",
        )
        for i in range(1, size + 1)
    )


def face_bank(size: int = FACE_BANK_SIZE) -> Tuple[FaceEntry, ...]:
    return tuple(
        FaceEntry(
            id=i,
            path=f"images/faces/face_{i:03d}.jpg",
            url=f"https://picsum.photos/seed/face{i}/300/300",
        )
        for i in range(1, size + 1)
    )


@lru_cache(maxsize=1)
def default_banks() -> ContentBanks:
    return ContentBanks(
        words=load_word_pools(),
        names=load_name_table(),
        images=image_bank(),
        faces=face_bank(),
    )
