import io
import json
import unittest
from contextlib import redirect_stderr
from datetime import datetime, timedelta, timezone
from pathlib import Path
from tempfile import TemporaryDirectory

import pandas as pd
from pydantic import ValidationError

from recalltrainer import __version__
from recalltrainer.results.schema import TrialResult
from recalltrainer.results.sink import (
    JsonResultSink,
    MemoryResultSink,
    NullResultSink,
    ParquetResultSink,
    ResultSink,
    make_sink_from_config,
    submit_result,
)
from recalltrainer.scoring.engine import score_positional
from recalltrainer.stats import format_history, format_summary, summarize_history
from recalltrainer.storage import (
    SessionMeta,
    TrialRow,
    export_ndjson,
    load_all,
    query_trend,
    upsert_session_meta,
    validate_records,
)
from recalltrainer.storage.store import META_FILE

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _result(family: str = "digits", correct: int = 8, total: int = 10, pct: float = 80.0, at: datetime = T0) -> TrialResult:
    return TrialResult(
        family=family,
        count=total,
        correct=correct,
        total=total,
        percentage=pct,
        memorize_s=12.5,
        recall_s=4.0,
        finished_at=at,
        seed=7,
        preset="week1",
    )


class FailingSink(ResultSink):
    def save(self, result, family, count, memorize_s, recall_s) -> bool:
        raise RuntimeError("store offline")


class SinkTests(unittest.TestCase):
    def test_memory_sink(self) -> None:
        sink = MemoryResultSink()
        self.assertTrue(submit_result(sink, _result()))
        self.assertEqual(sink.saved[0]["family"], "digits")
        self.assertEqual(sink.saved[0]["memorize_s"], 12.5)

    def test_failures_are_swallowed(self) -> None:
        self.assertFalse(submit_result(FailingSink(), _result()))
        self.assertTrue(submit_result(NullResultSink(), _result()))

    def test_json_sink_newest_first_with_bests(self) -> None:
        with TemporaryDirectory() as tmp:
            path = Path(tmp) / "history.json"
            sink = JsonResultSink(str(path))
            sink.save(_result(pct=80.0), "digits", 10, 12.5, 4.0)
            sink.save(_result(correct=5, pct=50.0, at=T0 + timedelta(days=1)), "digits", 10, 10.0, 0.0)
            data = json.loads(path.read_text(encoding="utf-8"))
        self.assertEqual(data["schema"], 1)
        self.assertEqual([s["P"] for s in data["sessions"]], [50.0, 80.0])
        self.assertNotIn("R", data["sessions"][0])
        self.assertEqual(data["best"], {"digits": 80.0})

    def test_json_sink_backs_up_foreign_document(self) -> None:
        with TemporaryDirectory() as tmp:
            path = Path(tmp) / "history.json"
            path.write_text('{"schema": 3, "sessions": []}', encoding="utf-8")
            JsonResultSink(str(path)).save(_result(), "digits", 10, 1.0, 1.0)
            backups = list(Path(tmp).glob("history.backup-*.json"))
            self.assertEqual(len(backups), 1)
            self.assertEqual(len(json.loads(path.read_text(encoding="utf-8"))["sessions"]), 1)

    def test_json_sink_recovers_from_corrupt_document(self) -> None:
        with TemporaryDirectory() as tmp:
            path = Path(tmp) / "history.json"
            path.write_text("{not json", encoding="utf-8")
            sink = JsonResultSink(str(path))
            with redirect_stderr(io.StringIO()):
                saved = [submit_result(sink, _result()) for _ in range(3)]
            backups = list(Path(tmp).glob("history.backup-*.json"))
            data = json.loads(path.read_text(encoding="utf-8"))
            self.assertEqual(backups[0].read_text(encoding="utf-8"), "{not json")
        self.assertEqual(saved, [True, True, True])
        self.assertEqual(len(backups), 1)
        self.assertEqual(len(data["sessions"]), 3)

    def test_parquet_sink_round_trip(self) -> None:
        with TemporaryDirectory() as tmp:
            sink = ParquetResultSink(tmp)
            self.assertTrue(submit_result(sink, _result()))
            self.assertTrue(submit_result(sink, _result(family="names", correct=3, total=4, pct=75.0)))
            df = load_all(Path(tmp))
            sessions = pd.read_parquet(Path(tmp) / META_FILE, engine="pyarrow")
        self.assertEqual(len(df), 2)
        self.assertEqual(set(df["family"].astype(str)), {"digits", "names"})
        self.assertAlmostEqual(float(df["acc"].iloc[0]), 0.8, places=5)
        self.assertEqual(len(sessions), 2)
        self.assertEqual(set(sessions["session_id"]), set(df["session_id"].astype(str)))
        self.assertEqual(list(sessions["preset"]), ["week1", "week1"])
        self.assertEqual(list(sessions["seed"]), [7, 7])
        self.assertEqual(set(sessions["app_version"]), {__version__})

    def test_factory(self) -> None:
        self.assertIsInstance(make_sink_from_config({"results": {"sink": "memory"}}), MemoryResultSink)
        self.assertIsInstance(make_sink_from_config({"results": {"sink": "none"}}), NullResultSink)
        with self.assertRaises(ValueError):
            make_sink_from_config({"results": {"sink": "cloud"}})


class StoreTests(unittest.TestCase):
    def _rows(self):
        return [
            TrialRow(session_id="a", finished_at=T0, family="digits", count=10, correct=5, total=10, percentage=50.0),
            TrialRow(session_id="b", finished_at=T0 + timedelta(days=1), family="digits", count=10, correct=10, total=10, percentage=100.0),
            TrialRow(session_id="c", finished_at=T0, family="words", count=10, correct=7, total=10, percentage=70.0),
        ]

    def test_row_validation(self) -> None:
        with self.assertRaises(ValidationError):
            TrialRow(session_id="x", finished_at=T0, family="digits", count=4, correct=5, total=4, percentage=100.0)
        with self.assertRaises(ValidationError):
            TrialRow(session_id="x", finished_at=T0, family="chess", count=4, correct=1, total=4, percentage=25.0)
        naive = TrialRow(session_id="x", finished_at=datetime(2024, 1, 1), family="words", count=1, correct=1, total=1, percentage=100.0)
        self.assertEqual(naive.finished_at.tzinfo, timezone.utc)

    def test_query_trend_filters_and_sorts(self) -> None:
        df = validate_records(self._rows())
        trend = query_trend(df, family="digits")
        self.assertEqual(list(trend["session_id"]), ["a", "b"])
        with self.assertRaises(ValueError):
            query_trend(df, family="chess")

    def test_summary(self) -> None:
        summary = summarize_history(validate_records(self._rows()))
        digits = summary[summary["family"] == "digits"].iloc[0]
        self.assertEqual(int(digits["sessions"]), 2)
        self.assertEqual(float(digits["best"]), 100.0)
        self.assertEqual(float(digits["mean"]), 75.0)
        self.assertAlmostEqual(float(digits["trend"]), 50.0)
        self.assertIn("digits", format_history(summary))

    def test_empty_history(self) -> None:
        with TemporaryDirectory() as tmp:
            df = load_all(Path(tmp))
        self.assertTrue(df.empty)
        self.assertEqual(format_history(summarize_history(df)), "No trials recorded yet.")

    def test_session_meta_upsert_and_export(self) -> None:
        with TemporaryDirectory() as tmp:
            upsert_session_meta(SessionMeta(session_id="a", finished_at=T0, preset="week1"), Path(tmp))
            upsert_session_meta(SessionMeta(session_id="a", finished_at=T0, preset="default"), Path(tmp))
            out = Path(tmp) / "out" / "history.ndjson"
            export_ndjson(validate_records(self._rows()), out)
            lines = out.read_text(encoding="utf-8").splitlines()
        self.assertEqual(len(lines), 3)
        self.assertEqual(json.loads(lines[0])["session_id"], "a")


class SummaryTextTests(unittest.TestCase):
    def test_format_summary_with_comparison(self) -> None:
        card = score_positional("1234", "1294", "0123456789")
        text = format_summary(_result(correct=3, total=4, pct=75.0), card, show_comparison=True)
        self.assertIn("Score: 3/4 (75.0%)", text)
        self.assertIn("x", text.splitlines()[-2])


if __name__ == "__main__":
    unittest.main()
