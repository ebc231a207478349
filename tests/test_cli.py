import io
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from tempfile import TemporaryDirectory

from recalltrainer.app.cli import main


class CliTests(unittest.TestCase):
    def _history(self, *extra: str):
        out, err = io.StringIO(), io.StringIO()
        with TemporaryDirectory() as tmp:
            cfg = Path(tmp) / "config.yml"
            cfg.write_text(f"results:\n  data_dir: {Path(tmp) / 'data'}\n", encoding="utf-8")
            with redirect_stdout(out), redirect_stderr(err):
                code = main(["history", "--config", str(cfg), *extra])
        return code, out.getvalue(), err.getvalue()

    def test_history_empty(self) -> None:
        code, out, _ = self._history()
        self.assertEqual(code, 0)
        self.assertIn("No trials recorded yet.", out)

    def test_history_unknown_family(self) -> None:
        code, _, err = self._history("--family", "chess")
        self.assertEqual(code, 2)
        self.assertIn("ERROR: Unknown family: chess", err)

    def test_show_params_unknown_trial(self) -> None:
        err = io.StringIO()
        with redirect_stderr(err):
            code = main(["show-params", "--trial", "chess"])
        self.assertEqual(code, 2)
        self.assertIn("ERROR: Unknown trial id: chess", err.getvalue())

    def test_list_trials(self) -> None:
        out = io.StringIO()
        with redirect_stdout(out):
            self.assertEqual(main(["list-trials"]), 0)
        self.assertIn("number_wall", out.getvalue())


if __name__ == "__main__":
    unittest.main()
