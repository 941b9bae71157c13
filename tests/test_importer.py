import tempfile
import unittest
from pathlib import Path
from unittest import mock

from tempo_sync.config import AnalysisSettings, Settings, SyncSettings
from tempo_sync.importer import TempoImporter
from tempo_sync.models import ProcessingError
from tempo_sync.readers import SoundFileAudioReader
from tempo_sync.sources import FalsePositiveTolerance, TempoSource
from wav_fixtures import acid_chunk, click_track, write_wav

SAMPLE_RATE = 8192


class TestTempoImporter(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.importer = TempoImporter.create(Settings())

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_acid_tag_wins_over_filename(self) -> None:
        path = write_wav(self.tmp / "loop_100BPM.wav", extra_chunks=acid_chunk(90.0))
        report = self.importer.import_file(path, project_tempo=180.0)
        self.assertTrue(report.reliable)
        self.assertEqual(report.raw_audio_tempo, 90.0)
        self.assertEqual(report.tempo_source, TempoSource.ACID_TAG)
        self.assertEqual(report.sync.stretch_minimizing_pow_of_two, 2.0)
        self.assertAlmostEqual(report.fine_stretch_ratio, 1.0)

    def test_one_shot_tag(self) -> None:
        path = write_wav(
            self.tmp / "kick 120 BPM.wav", extra_chunks=acid_chunk(120.0, one_shot=True)
        )
        report = self.importer.import_file(path)
        self.assertFalse(report.reliable)
        self.assertTrue(report.is_one_shot)
        self.assertIsNone(report.sync)

    def test_filename_fallback(self) -> None:
        path = write_wav(self.tmp / "Cymatics - Top Loop - 174 BPM.wav")
        report = self.importer.import_file(path, project_tempo=87.0)
        self.assertEqual(report.raw_audio_tempo, 174.0)
        self.assertEqual(report.tempo_source, TempoSource.FILENAME)
        self.assertEqual(report.sync.stretch_minimizing_pow_of_two, 0.5)

    def test_signal_analysis_fallback_reports_progress(self) -> None:
        path = write_wav(
            self.tmp / "untitled.wav",
            click_track(120.0, 8.0, SAMPLE_RATE),
            sample_rate=SAMPLE_RATE,
        )
        seen: list[float] = []
        report = self.importer.import_file(path, progress_callback=seen.append)
        self.assertTrue(report.reliable)
        self.assertEqual(report.tempo_source, TempoSource.SIGNAL)
        self.assertAlmostEqual(report.raw_audio_tempo, 120.0, places=3)
        self.assertTrue(seen)
        self.assertEqual(seen[-1], 1.0)

    def test_signal_analysis_disabled(self) -> None:
        importer = TempoImporter.create(Settings(analysis=AnalysisSettings(enabled=False)))
        path = write_wav(
            self.tmp / "untitled.wav",
            click_track(120.0, 8.0, SAMPLE_RATE),
            sample_rate=SAMPLE_RATE,
        )
        report = importer.import_file(path)
        self.assertFalse(report.reliable)
        self.assertIsNone(report.raw_audio_tempo)

    def test_project_tempo_from_settings(self) -> None:
        importer = TempoImporter.create(Settings(sync=SyncSettings(project_tempo=50.0)))
        path = write_wav(self.tmp / "loop 100 BPM.wav")
        report = importer.import_file(path)
        self.assertEqual(report.project_tempo, 50.0)
        self.assertEqual(report.sync.stretch_minimizing_pow_of_two, 0.5)

    def test_reader_is_closed_after_analysis(self) -> None:
        path = write_wav(
            self.tmp / "untitled.wav",
            click_track(120.0, 8.0, SAMPLE_RATE),
            sample_rate=SAMPLE_RATE,
        )
        opened: list[SoundFileAudioReader] = []

        def _open(p: Path) -> SoundFileAudioReader:
            reader = SoundFileAudioReader(p)
            opened.append(reader)
            return reader

        with mock.patch("tempo_sync.importer.open_reader", side_effect=_open):
            info = self.importer.analyze(path)
        self.assertTrue(info)
        self.assertEqual(len(opened), 1)
        self.assertTrue(opened[0]._file.closed)

    def test_undecodable_file_degrades_to_no_tempo(self) -> None:
        path = self.tmp / "broken.wav"
        path.write_bytes(b"definitely not a wav")
        info = self.importer.analyze(path, tolerance=FalsePositiveTolerance.STRICT)
        self.assertFalse(info)

    def test_missing_file_raises(self) -> None:
        with self.assertRaises(ProcessingError):
            self.importer.import_file(self.tmp / "missing 120 BPM.wav")

    def test_to_record_is_json_ready(self) -> None:
        path = write_wav(self.tmp / "loop 100 BPM.wav")
        record = self.importer.import_file(path, project_tempo=210.0).to_record()
        self.assertEqual(record["path"], str(path))
        self.assertEqual(record["tempo_source"], "filename")
        self.assertEqual(record["stretch_minimizing_pow_of_two"], 2.0)
        self.assertAlmostEqual(record["fine_stretch_ratio"], 1.05)


if __name__ == "__main__":
    unittest.main()
