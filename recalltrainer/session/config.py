from __future__ import annotations

"""Trial configuration record and input clamping.

Configuration is never rejected. Each knob is coerced to a number and
clamped into the bounds declared by the trial's parameter schema;
anything unparseable falls back to the schema default.
"""

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from ..app.explain import trace as xtrace


@dataclass(frozen=True)
class TrialConfig:
    family: str
    count: int
    pace_ms: Optional[int] = None
    time_limit_s: Optional[int] = None
    group_size: int = 1
    abstract_pct: Optional[int] = None
    digit_width: Optional[int] = None
    seed: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


def _coerce(value: Any, kind: str) -> Optional[float]:
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(num):
        return None
    if kind == "integer":
        return float(math.floor(num))
    return num


def clamp_value(value: Any, spec: Dict[str, Any]) -> Any:
    """Clamp one value into [minimum, maximum]; fall back to the default."""
    kind = spec.get("type", "integer")
    num = _coerce(value, kind)
    if num is None:
        return spec.get("default")
    lo = spec.get("minimum")
    hi = spec.get("maximum")
    if lo is not None:
        num = max(float(lo), num)
    if hi is not None:
        num = min(float(hi), num)
    return int(num) if kind == "integer" else num


def clamp_params(schema: Dict[str, Any], params: Dict[str, Any]) -> Dict[str, Any]:
    """Return a full parameter dict: defaults filled, every known knob clamped."""
    out: Dict[str, Any] = {}
    for name, spec in (schema.get("properties") or {}).items():
        raw = params.get(name, spec.get("default"))
        value = clamp_value(raw, spec)
        if raw is not None and value != raw:
            xtrace("param_clamped", {"param": name, "given": raw, "used": value})
        out[name] = value
    return out


def build_trial_config(family: str, params: Dict[str, Any], seed: Optional[int] = None) -> TrialConfig:
    """Assemble the immutable record from already clamped params."""
    def _opt(name: str) -> Optional[int]:
        v = params.get(name)
        return None if v is None else int(v)

    return TrialConfig(
        family=family,
        count=int(params.get("count", 0)),
        pace_ms=_opt("pace_ms"),
        time_limit_s=_opt("time_limit_s"),
        group_size=int(params.get("group_size", 1) or 1),
        abstract_pct=_opt("abstract_pct"),
        digit_width=_opt("digit_width"),
        seed=seed,
    )
