from __future__ import annotations

"""Trial result record handed to result sinks."""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

FAMILIES = (
    "digits",
    "words",
    "number_wall",
    "binary_surge",
    "word_palace",
    "spoken_numbers",
    "image_sequence",
    "names",
    "quick_math",
)


@dataclass(frozen=True)
class TrialResult:
    """Derived once at the recall -> result transition; never mutated."""

    family: str
    count: int
    correct: int
    total: int
    percentage: float
    memorize_s: float
    recall_s: float
    finished_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    seed: Optional[int] = None
    preset: Optional[str] = None

    def to_json(self) -> Dict[str, Any]:
        data = asdict(self)
        data["finished_at"] = self.finished_at.isoformat()
        return data
