from __future__ import annotations

"""Result sinks: where finished trials go.

Every sink exposes `save(result, family, count, memorize_s, recall_s)`.
Sinks may raise; `submit_result` is the one place that calls them, and
it turns any failure into a trace plus a warning so the session never
sees it.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4

from .. import __version__
from ..app.explain import trace as xtrace, warn
from ..storage.schema import SessionMeta, TrialRow
from ..storage.store import append_trial_results, init_store, upsert_session_meta, validate_records
from .schema import TrialResult


class ResultSink:
    """Abstract-like sink interface."""

    def save(self, result: TrialResult, family: str, count: int, memorize_s: float, recall_s: float) -> bool:
        raise NotImplementedError


class NullResultSink(ResultSink):
    def save(self, result: TrialResult, family: str, count: int, memorize_s: float, recall_s: float) -> bool:
        return True


class MemoryResultSink(ResultSink):
    """Keeps saved results in a list; handy for tests and previews."""

    def __init__(self) -> None:
        self.saved: List[Dict[str, Any]] = []

    def save(self, result: TrialResult, family: str, count: int, memorize_s: float, recall_s: float) -> bool:
        self.saved.append(
            {
                "result": result,
                "family": family,
                "count": int(count),
                "memorize_s": float(memorize_s),
                "recall_s": float(recall_s),
            }
        )
        return True


class ParquetResultSink(ResultSink):
    """Appends one validated row per trial and its session meta to the Parquet store."""

    def __init__(self, data_dir: str, session_id: Optional[Callable[[], str]] = None) -> None:
        self.data_dir = Path(data_dir)
        self._session_id = session_id or (lambda: str(uuid4()))

    def save(self, result: TrialResult, family: str, count: int, memorize_s: float, recall_s: float) -> bool:
        session_id = self._session_id()
        row = TrialRow(
            session_id=session_id,
            finished_at=result.finished_at,
            family=family,
            count=int(count),
            correct=int(result.correct),
            total=int(result.total),
            percentage=float(result.percentage),
            memorize_s=round(float(memorize_s), 3),
            recall_s=round(float(recall_s), 3),
        )
        init_store(self.data_dir)
        append_trial_results(validate_records([row]), self.data_dir)
        meta = SessionMeta(
            session_id=session_id,
            finished_at=result.finished_at,
            app_version=__version__,
            seed=result.seed,
            preset=result.preset,
        )
        upsert_session_meta(meta, self.data_dir)
        return True


class JsonResultSink(ResultSink):
    """Compact JSON history: newest session first, plus per-family bests.

    Document shape:
    {
      "schema": 1,
      "sessions": [{"ts", "F", "N", "C", "T", "P", "M", "R"}, ...],
      "best": {"digits": 92.5, ...}
    }
    """

    SCHEMA = 1

    def __init__(self, path: str) -> None:
        self.path = Path(path)

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {"schema": self.SCHEMA, "sessions": [], "best": {}}
        raw_text = self.path.read_text(encoding="utf-8")
        try:
            data = json.loads(raw_text) if raw_text.strip() else {}
        except json.JSONDecodeError as e:
            warn(f"History file {self.path} is not valid JSON ({e}); starting a new one")
            data = None
        if not isinstance(data, dict) or data.get("schema") != self.SCHEMA:
            # keep the unreadable document next to the new one
            self._backup(raw_text)
            return {"schema": self.SCHEMA, "sessions": [], "best": {}}
        data.setdefault("sessions", [])
        data.setdefault("best", {})
        return data

    def _backup(self, raw_text: str) -> Path:
        stamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
        backup = self.path.with_name(f"{self.path.stem}.backup-{stamp}{self.path.suffix}")
        backup.write_text(raw_text, encoding="utf-8")
        return backup

    def save(self, result: TrialResult, family: str, count: int, memorize_s: float, recall_s: float) -> bool:
        data = self._load()
        entry = {
            "ts": result.finished_at.strftime("%Y-%m-%d %H:%M"),
            "F": family,
            "N": int(count),
            "C": int(result.correct),
            "T": int(result.total),
            "P": result.percentage,
        }
        if memorize_s > 0:
            entry["M"] = round(float(memorize_s), 1)
        if recall_s > 0:
            entry["R"] = round(float(recall_s), 1)
        data["sessions"].insert(0, entry)
        best = data["best"]
        if result.percentage > float(best.get(family, -1)):
            best[family] = result.percentage
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(data, f, separators=(",", ":"))
        return True


def make_sink_from_config(cfg: Dict) -> ResultSink:
    results = cfg.get("results", {})
    kind = results.get("sink", "parquet")
    if kind == "parquet":
        return ParquetResultSink(str(results.get("data_dir", "./storage/data")))
    if kind == "json":
        return JsonResultSink(str(results.get("json_path", "./trial_history.json")))
    if kind == "memory":
        return MemoryResultSink()
    if kind == "none":
        return NullResultSink()
    raise ValueError(f"Unsupported result sink: {kind}")


def submit_result(sink: ResultSink, result: TrialResult) -> bool:
    """Hand a finished result to the sink; never raises."""
    try:
        ok = bool(sink.save(result, result.family, result.count, result.memorize_s, result.recall_s))
    except Exception as e:
        xtrace("result_save_failed", {"family": result.family, "error": repr(e)})
        warn(f"Could not save result: {e}")
        return False
    xtrace("result_saved", {"family": result.family, "ok": ok, "sink": type(sink).__name__})
    return ok
