import unittest

from recalltrainer.app.session_manager import TrialSession
from recalltrainer.config.config import load_config, validate_config
from recalltrainer.results.sink import MemoryResultSink, ResultSink
from recalltrainer.session import Finished, Presenting
from recalltrainer.session.preload import null_loader

from .fakes import FakeHost, ImmediateExecutor, QuietSpeaker


class BrokenSink(ResultSink):
    def save(self, result, family, count, memorize_s, recall_s) -> bool:
        raise OSError("disk full")


class SessionTestCase(unittest.TestCase):
    def make_session(self, *, loader=null_loader, sink=None, cfg=None) -> TrialSession:
        self.host = FakeHost()
        self.speaker = QuietSpeaker()
        self.sink = sink if sink is not None else MemoryResultSink()
        cfg = cfg or validate_config(load_config())
        return TrialSession(
            cfg,
            host=self.host,
            speaker=self.speaker,
            loader=loader,
            sink=self.sink,
            executor=ImmediateExecutor(),
        )


class FreeTextFlowTests(SessionTestCase):
    def test_digits_exact_copy(self) -> None:
        s = self.make_session()
        self.assertTrue(s.start("digits", overrides={"count": 10}, seed=42))
        self.assertEqual(s.phase, "presentation")
        self.assertEqual(len(s.truth), 10)
        self.host.advance(5)
        self.assertTrue(s.finish_memorizing())
        self.assertEqual(s.phase, "recall")
        s.set_text(s.truth.text)
        self.host.advance(2)
        self.assertTrue(s.submit())
        r = s.result
        self.assertEqual((r.correct, r.total, r.percentage), (10, 10, 100))
        self.assertEqual((r.memorize_s, r.recall_s), (5.0, 2.0))
        self.assertEqual((r.seed, r.preset), (42, "default"))
        self.assertEqual(len(self.sink.saved), 1)
        self.assertTrue(s.last_saved)

    def test_digits_one_decimal_precision(self) -> None:
        s = self.make_session()
        s.start("digits", overrides={"count": 12}, seed=1)
        s.finish_memorizing()
        s.set_text(s.truth.text[:5])
        s.submit()
        self.assertEqual(s.result.percentage, 41.7)

    def test_word_palace_three_and_three(self) -> None:
        s = self.make_session()
        s.start("word_palace", overrides={"count": 6, "abstract_pct": 50, "time_limit_s": 30}, seed=3)
        words = list(s.truth.items)
        self.assertEqual(len(words), 6)
        s.finish_memorizing()
        s.set_text("\n".join(words))
        s.submit()
        self.assertEqual((s.result.correct, s.result.percentage), (6, 100))

    def test_countdown_ends_presentation(self) -> None:
        s = self.make_session()
        s.start("number_wall", overrides={"count": 20, "time_limit_s": 30}, seed=9)
        self.assertEqual(s.state.remaining_s, 30)
        self.host.advance(29)
        self.assertEqual(s.state.remaining_s, 1)
        self.host.advance(1)
        self.assertEqual(s.phase, "recall")
        self.assertEqual(s.state.times.memorize_s, 30.0)
        self.assertEqual(self.host.live(), [])

    def test_config_file_overrides_apply(self) -> None:
        cfg = validate_config(load_config())
        cfg["trials"] = {"digits": {"count": 20}}
        s = self.make_session(cfg=cfg)
        s.start("digits", seed=4)
        self.assertEqual(len(s.truth), 20)

    def test_spoken_numbers_speaks_each_group(self) -> None:
        s = self.make_session()
        s.start("spoken_numbers", overrides={"count": 4, "group_size": 2, "pace_ms": 1000}, seed=12)
        groups = list(s.truth.groups)
        self.assertEqual(len(groups), 2)
        self.assertEqual(self.speaker.said, [])
        self.host.advance(1.0)
        self.assertEqual(self.speaker.said, [" ".join(groups[0])])
        self.host.advance(2.0)
        self.assertEqual(s.phase, "recall")
        self.assertEqual(self.speaker.said, [" ".join(g) for g in groups])
        s.set_text(s.truth.text)
        s.submit()
        self.assertEqual(s.result.percentage, 100)


class ImageFlowTests(SessionTestCase):
    def _present(self, s: TrialSession) -> None:
        s.start("image_sequence", overrides={"count": 4, "pace_ms": 1000}, seed=21)
        self.assertEqual(s.phase, "loading")
        self.host.advance(0.5)
        self.assertEqual(s.phase, "presentation")
        self.assertEqual(s.state.cursor, 0)
        self.host.advance(1.0)
        self.assertEqual(s.state.cursor, 1)
        self.host.advance(3.0)
        self.assertEqual(s.phase, "presentation")
        self.host.advance(0.5)
        self.assertEqual(s.phase, "recall")

    def test_exact_order_scores_full_and_auto_finishes(self) -> None:
        s = self.make_session()
        self._present(s)
        self.assertEqual(sorted(e.id for e in s.recall_order), sorted(e.id for e in s.truth.items))
        ids = [e.id for e in s.truth.items]
        for image_id in ids[:-1]:
            s.toggle_image(image_id)
        self.assertEqual(s.phase, "recall")
        s.toggle_image(ids[-1])
        self.assertEqual(s.phase, "result")
        self.assertEqual(s.result.percentage, 100)

    def test_reverse_order_scores_zero(self) -> None:
        s = self.make_session()
        self._present(s)
        ids = [e.id for e in s.truth.items]
        s.toggle_image(ids[0])
        s.toggle_image(ids[0])
        self.assertEqual(len(s.buffer), 0)
        for image_id in reversed(ids):
            s.toggle_image(image_id)
        self.assertEqual(s.result.percentage, 0)

    def test_unknown_image_ids_are_ignored(self) -> None:
        s = self.make_session()
        self._present(s)
        shown = {e.id for e in s.truth.items}
        foreign = [i for i in range(1000, 1010) if i not in shown][:4]
        for image_id in foreign:
            self.assertFalse(s.toggle_image(image_id))
        self.assertEqual(s.phase, "recall")
        self.assertEqual(len(s.buffer), 0)

    def test_failed_assets_still_settle(self) -> None:
        calls = []

        def flaky(asset) -> None:
            calls.append(asset)
            if len(calls) % 2 == 0:
                raise FileNotFoundError(asset.path)

        s = self.make_session(loader=flaky)
        s.start("image_sequence", overrides={"count": 4}, seed=2)
        self.assertEqual(s.state.loaded, 4)
        self.assertEqual(s.state.failed, 2)
        self.host.advance(0.5)
        self.assertEqual(s.phase, "presentation")


class NamesAndMathTests(SessionTestCase):
    def test_names_recall_in_shuffled_order(self) -> None:
        s = self.make_session()
        s.start("names", overrides={"count": 3, "time_limit_s": 30}, seed=5)
        self.host.advance(30)
        self.assertEqual(s.phase, "recall")
        self.assertEqual(sorted(c.id for c in s.recall_order), [c.id for c in s.truth.items])
        for card in s.recall_order:
            s.set_name_field(card.id, "first", card.first.upper())
            s.set_name_field(card.id, "last", f" {card.last} ")
        s.submit()
        self.assertEqual((s.result.correct, s.result.total, s.result.percentage), (6, 6, 100))

    def test_unknown_name_fields_are_ignored(self) -> None:
        s = self.make_session()
        s.start("names", overrides={"count": 3, "time_limit_s": 30}, seed=5)
        s.finish_memorizing()
        card = s.recall_order[0]
        self.assertFalse(s.set_name_field(card.id, "middle", "x"))
        self.assertFalse(s.set_name_field("nobody", "first", "x"))
        self.assertTrue(s.set_name_field(card.id, "first", card.first))
        self.assertEqual(s.phase, "recall")
        self.assertEqual(len(s.buffer), 1)

    def test_quick_math_goes_straight_to_result(self) -> None:
        s = self.make_session()
        s.start("quick_math", overrides={"time_limit_s": 10, "digit_width": 1}, seed=8)
        stream = s.buffer.stream
        self.assertTrue(s.keystroke(str(stream.current.answer)))
        self.assertFalse(s.submit_answer(str(stream.current.answer + 1)))
        self.host.advance(10)
        self.assertEqual(s.phase, "result")
        r = s.result
        self.assertEqual((r.correct, r.total, r.percentage), (1, 2, 50))
        self.assertEqual((r.memorize_s, r.recall_s), (10.0, 0.0))
        self.assertFalse(s.keystroke("1"))


class LifecycleTests(SessionTestCase):
    def test_invalid_actions_are_ignored(self) -> None:
        s = self.make_session()
        self.assertFalse(s.submit())
        self.assertFalse(s.finish_memorizing())
        self.assertEqual(s.phase, "config")
        self.assertFalse(s.start("bogus"))
        self.assertEqual(s.phase, "config")
        s.start("digits", seed=1)
        self.assertFalse(s.set_text("123"))
        self.assertFalse(s.toggle_image(1))
        self.assertFalse(s.new_session())
        self.assertFalse(s.start("digits"))
        self.assertEqual(s.phase, "presentation")

    def test_teardown_stops_timers(self) -> None:
        s = self.make_session()
        s.start("number_wall", overrides={"time_limit_s": 30}, seed=1)
        self.host.advance(10)
        s.teardown()
        self.assertEqual(s.phase, "config")
        self.assertEqual(self.host.live(), [])
        self.host.advance(1000)
        self.assertEqual(s.phase, "config")
        self.assertEqual(self.sink.saved, [])

    def test_late_settle_callback_after_teardown(self) -> None:
        s = self.make_session()
        s.start("image_sequence", overrides={"count": 4}, seed=2)
        pending = self.host.live()[0]
        s.teardown()
        pending.fn(*pending.args)
        self.assertEqual(s.phase, "config")

    def test_sink_failure_does_not_block_result(self) -> None:
        s = self.make_session(sink=BrokenSink())
        s.start("digits", seed=3)
        s.finish_memorizing()
        s.submit()
        self.assertIsInstance(s.state, Finished)
        self.assertFalse(s.last_saved)

    def test_new_session_resets_and_restarts(self) -> None:
        s = self.make_session()
        s.start("digits", seed=3)
        s.finish_memorizing()
        s.submit()
        self.assertTrue(s.new_session())
        self.assertEqual(s.phase, "config")
        self.assertIsNone(s.buffer)
        self.assertTrue(s.start("words", seed=3))
        self.assertIsInstance(s.state, Presenting)
        self.assertEqual(s.state.cursor, 0)

    def test_listeners_see_every_transition(self) -> None:
        s = self.make_session()
        seen = []
        s.listeners.append(lambda state, event: seen.append(state.phase))
        s.start("digits", seed=3)
        s.finish_memorizing()
        s.submit()
        s.new_session()
        self.assertEqual(seen, ["presentation", "recall", "result", "config"])


if __name__ == "__main__":
    unittest.main()
