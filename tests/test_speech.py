import io
import threading
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest import mock

from recalltrainer.audio.playback import GTTSSpeaker, make_speaker_from_config
from recalltrainer.audio.speech import ConsoleSpeaker, spell_group


def _offline_gtts_speaker(cache_dir: str) -> GTTSSpeaker:
    """GTTSSpeaker wired to mocks instead of gTTS and pydub."""
    speaker = GTTSSpeaker.__new__(GTTSSpeaker)
    speaker._gtts = mock.Mock()
    speaker._gtts.return_value.save.side_effect = lambda p: Path(p).write_bytes(b"ID3")
    speaker._segment = mock.Mock()
    speaker._play = mock.Mock()
    speaker.lang = "en"
    speaker.cache_dir = Path(cache_dir)
    speaker._epoch = 0
    speaker._lock = threading.Lock()
    return speaker


class SpeechTests(unittest.TestCase):
    def test_spell_group(self) -> None:
        self.assertEqual(spell_group("37"), "3 7")
        self.assertEqual(spell_group("5"), "5")

    def test_console_speaker_prints_and_completes(self) -> None:
        done = []
        buf = io.StringIO()
        with redirect_stdout(buf):
            ConsoleSpeaker().speak("3 7", lambda: done.append(True))
        self.assertIn(">> 3 7", buf.getvalue())
        self.assertEqual(done, [True])

    def test_factory(self) -> None:
        self.assertIsInstance(make_speaker_from_config({"speech": {"backend": "console"}}), ConsoleSpeaker)
        with self.assertRaises(ValueError):
            make_speaker_from_config({"speech": {"backend": "robot"}})


class GTTSSpeakerTests(unittest.TestCase):
    def test_current_clip_plays_and_completes(self) -> None:
        done = []
        with TemporaryDirectory() as tmp:
            speaker = _offline_gtts_speaker(tmp)
            speaker._run("3 7", lambda: done.append(True), 0)
            self.assertEqual(len(list(Path(tmp).glob("en_*.mp3"))), 1)
        speaker._play.assert_called_once()
        self.assertEqual(done, [True])

    def test_cancel_drops_clip_and_completion(self) -> None:
        done = []
        with TemporaryDirectory() as tmp:
            speaker = _offline_gtts_speaker(tmp)
            speaker.cancel()
            speaker._run("3 7", lambda: done.append(True), 0)
        speaker._play.assert_not_called()
        self.assertEqual(done, [])

    def test_prefetch_renders_each_text_once(self) -> None:
        with TemporaryDirectory() as tmp:
            speaker = _offline_gtts_speaker(tmp)
            speaker.prefetch(["3 7", "3 7", "0 1"])
            speaker.prefetch(["3 7"])
        self.assertEqual(speaker._gtts.call_count, 2)


if __name__ == "__main__":
    unittest.main()
