import unittest

import numpy as np

from tempo_sync.analysis import OnsetAutocorrelationEstimator, fit_whole_beats
from tempo_sync.readers import ArrayAudioReader, EmptyAudioReader
from wav_fixtures import click_track

SAMPLE_RATE = 8192


class _FailingReader:
    sample_rate = 8192.0
    num_samples = 8192 * 4

    def read_floats(self, start: int, count: int) -> np.ndarray:
        raise OSError("device vanished")


class TestOnsetAutocorrelationEstimator(unittest.TestCase):
    def setUp(self) -> None:
        self.estimator = OnsetAutocorrelationEstimator(block_size=SAMPLE_RATE)

    def test_detects_click_track_tempo(self) -> None:
        reader = ArrayAudioReader(click_track(120.0, 8.0, SAMPLE_RATE), SAMPLE_RATE)
        estimate = self.estimator.estimate(reader)
        self.assertIsNotNone(estimate)
        self.assertAlmostEqual(estimate.bpm, 120.0, places=3)
        self.assertGreater(estimate.confidence, 0.5)
        self.assertLessEqual(estimate.confidence, 1.0)

    def test_stereo_input_is_mixed_down(self) -> None:
        mono = click_track(120.0, 8.0, SAMPLE_RATE)
        reader = ArrayAudioReader(np.stack([mono, mono]), SAMPLE_RATE)
        self.assertEqual(reader.num_samples, mono.size)
        estimate = self.estimator.estimate(reader)
        self.assertIsNotNone(estimate)
        self.assertAlmostEqual(estimate.bpm, 120.0, places=3)

    def test_progress_is_monotonic_and_completes(self) -> None:
        reader = ArrayAudioReader(click_track(120.0, 8.0, SAMPLE_RATE), SAMPLE_RATE)
        seen: list[float] = []
        self.estimator.estimate(reader, seen.append)
        self.assertEqual(len(seen), 8)
        self.assertEqual(seen, sorted(seen))
        self.assertEqual(seen[-1], 1.0)
        self.assertTrue(all(0.0 <= f <= 1.0 for f in seen))

    def test_silence_gives_nothing(self) -> None:
        reader = ArrayAudioReader(np.zeros(SAMPLE_RATE * 4, dtype=np.float32), SAMPLE_RATE)
        self.assertIsNone(self.estimator.estimate(reader))

    def test_empty_reader_gives_nothing(self) -> None:
        seen: list[float] = []
        self.assertIsNone(self.estimator.estimate(EmptyAudioReader(), seen.append))
        self.assertEqual(seen, [])

    def test_too_long_audio_is_skipped(self) -> None:
        estimator = OnsetAutocorrelationEstimator(max_duration_seconds=4.0)
        reader = ArrayAudioReader(click_track(120.0, 8.0, SAMPLE_RATE), SAMPLE_RATE)
        self.assertIsNone(estimator.estimate(reader))

    def test_read_failure_degrades_to_nothing(self) -> None:
        with self.assertLogs("tempo_sync.analysis", level="WARNING"):
            self.assertIsNone(self.estimator.estimate(_FailingReader()))

    def test_rejects_inverted_bpm_window(self) -> None:
        with self.assertRaises(ValueError):
            OnsetAutocorrelationEstimator(bpm_min=200.0, bpm_max=60.0)


class TestFitWholeBeats(unittest.TestCase):
    def test_snaps_to_whole_number_of_beats(self) -> None:
        self.assertAlmostEqual(fit_whole_beats(123.0, 8.0), 120.0)
        self.assertAlmostEqual(fit_whole_beats(117.5, 8.0), 120.0)

    def test_keeps_at_least_one_beat(self) -> None:
        self.assertAlmostEqual(fit_whole_beats(10.0, 1.0), 60.0)

    def test_degenerate_input_is_returned_unchanged(self) -> None:
        self.assertEqual(fit_whole_beats(120.0, 0.0), 120.0)


if __name__ == "__main__":
    unittest.main()
