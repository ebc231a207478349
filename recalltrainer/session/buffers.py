from __future__ import annotations

"""Recall buffers: where the subject's answers accumulate.

Free-text families keep one text blob; the image sequence keeps an
ordered selection of identities; face/name trials keep first/last
fields keyed by card id; quick math keeps the live problem stream.
"""

from dataclasses import dataclass, field
from typing import Dict, Hashable, List

from ..generators.arithmetic import ProblemStream


@dataclass
class TextRecall:
    text: str = ""

    def set(self, text: str) -> None:
        self.text = text or ""

    def __len__(self) -> int:
        return len(self.text)


@dataclass
class SelectionRecall:
    selected: List[Hashable] = field(default_factory=list)

    def toggle(self, item_id: Hashable) -> bool:
        """Select, or unselect when already chosen. True when added."""
        if item_id in self.selected:
            self.selected.remove(item_id)
            return False
        self.selected.append(item_id)
        return True

    def __len__(self) -> int:
        return len(self.selected)


@dataclass
class FieldRecall:
    entries: Dict[Hashable, Dict[str, str]] = field(default_factory=dict)

    def set_field(self, item_id: Hashable, field_name: str, value: str) -> None:
        if field_name not in ("first", "last"):
            raise KeyError(f"Unknown field: {field_name}")
        self.entries.setdefault(item_id, {"first": "", "last": ""})[field_name] = value or ""

    def __len__(self) -> int:
        return len(self.entries)


@dataclass
class LiveRecall:
    stream: ProblemStream

    def __len__(self) -> int:
        return self.stream.attempted
