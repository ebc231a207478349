from __future__ import annotations

"""Trial history aggregation and text formatting."""

from typing import Optional

import numpy as np
import pandas as pd

from ..results.schema import TrialResult
from ..scoring.engine import ScoreCard


SUMMARY_COLUMNS = ["family", "sessions", "best", "mean", "last", "trend"]


def _slope(values: pd.Series) -> float:
    """Least-squares slope of percentage per session, 0 for fewer than two points."""
    y = values.astype("float64").to_numpy()
    if y.size < 2:
        return 0.0
    x = np.arange(y.size, dtype="float64")
    slope, _ = np.polyfit(x, y, 1)
    return float(slope)


def summarize_history(df: pd.DataFrame, last_n: Optional[int] = None) -> pd.DataFrame:
    """Per-family sessions, best, mean, last percentage and trend.

    `last_n` limits each family to its most recent sessions.
    """
    if df.empty:
        return pd.DataFrame({c: pd.Series(dtype="float32") for c in SUMMARY_COLUMNS}).astype({"family": "string"})
    g = df.sort_values("finished_at").copy()
    g["family"] = g["family"].astype("string")
    rows = []
    for family, part in g.groupby("family", sort=True):
        pct = part["percentage"].astype("float32")
        if last_n is not None and last_n > 0:
            pct = pct.tail(int(last_n))
        rows.append(
            {
                "family": family,
                "sessions": int(pct.size),
                "best": float(pct.max()),
                "mean": float(np.round(pct.mean(), 1)),
                "last": float(pct.iloc[-1]),
                "trend": round(_slope(pct), 2),
            }
        )
    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)


def format_history(summary: pd.DataFrame) -> str:
    if summary.empty:
        return "No trials recorded yet."
    lines = [f"{'family':<16}{'n':>5}{'best':>8}{'mean':>8}{'last':>8}{'trend':>8}"]
    for r in summary.itertuples(index=False):
        lines.append(f"{r.family:<16}{r.sessions:>5}{r.best:>8g}{r.mean:>8g}{r.last:>8g}{r.trend:>+8.2f}")
    return "\n".join(lines)


def format_summary(result: TrialResult, score: Optional[ScoreCard] = None, *, show_comparison: bool = False) -> str:
    """Return a human-readable summary of one finished trial."""
    lines = [
        f"Score: {result.correct}/{result.total} ({result.percentage}%)",
        f"Memorize: {result.memorize_s:.1f}s  Recall: {result.recall_s:.1f}s",
    ]
    if show_comparison and score is not None and score.comparison:
        for i, row in enumerate(score.comparison, start=1):
            mark = "ok" if row.correct else "x"
            target = row.target or "-"
            given = row.given or "-"
            lines.append(f"{i:>4}. {target:<16} {given:<16} {mark}")
    if score is not None and score.extras:
        lines.append(f"Extra input ignored: {' '.join(score.extras)}")
    return "\n".join(lines)
