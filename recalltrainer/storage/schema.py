from __future__ import annotations

"""Schema constants and Pydantic models for Parquet-backed trial history."""

from datetime import datetime, timezone
from typing import Literal, Optional

import pandas as pd
from pandas.api.types import CategoricalDtype
from pydantic import BaseModel, Field, ValidationInfo, field_validator

from ..results.schema import FAMILIES

# --- Constants ---

Family = Literal[
    "digits",
    "words",
    "number_wall",
    "binary_surge",
    "word_palace",
    "spoken_numbers",
    "image_sequence",
    "names",
    "quick_math",
]


def _cat_dtype(categories) -> CategoricalDtype:
    return CategoricalDtype(categories=sorted(categories), ordered=False)


DTYPES = {
    "session_id": "string",
    # timezone-aware UTC timestamps
    "finished_at": pd.DatetimeTZDtype(tz="UTC"),
    "family": _cat_dtype(FAMILIES),
    "count": "UInt16",
    "correct": "UInt16",
    "total": "UInt16",
    "percentage": "float32",
    "memorize_s": "float32",
    "recall_s": "float32",
}


def _to_utc(v: datetime) -> datetime:
    if v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v.astimezone(timezone.utc)


# --- Pydantic models ---

class TrialRow(BaseModel):
    session_id: str
    finished_at: datetime
    family: Family
    count: int = Field(ge=0, le=65535)
    correct: int = Field(ge=0, le=65535)
    total: int = Field(ge=0, le=65535)
    percentage: float = Field(ge=0, le=100)
    memorize_s: float = Field(default=0.0, ge=0)
    recall_s: float = Field(default=0.0, ge=0)

    @field_validator("total")
    @classmethod
    def _total_ge_correct(cls, v: int, info: ValidationInfo) -> int:
        correct = info.data.get("correct")
        if correct is not None and int(correct) > v:
            raise ValueError("correct must be <= total")
        return v

    @field_validator("finished_at")
    @classmethod
    def _ensure_utc(cls, v: datetime) -> datetime:
        return _to_utc(v)


class SessionMeta(BaseModel):
    session_id: str
    finished_at: datetime
    app_version: Optional[str] = None
    seed: Optional[int] = None
    preset: Optional[str] = None

    @field_validator("finished_at")
    @classmethod
    def _ensure_utc(cls, v: datetime) -> datetime:
        return _to_utc(v)
