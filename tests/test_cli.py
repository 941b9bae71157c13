import io
import json
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path

from tempo_sync.cli import main
from wav_fixtures import acid_chunk, write_wav


class TestCli(unittest.TestCase):
    def run_cli(self, *argv: str) -> str:
        buffer = io.StringIO()
        with redirect_stdout(buffer):
            main(list(argv))
        return buffer.getvalue()

    def test_parse_command(self) -> None:
        output = self.run_cli("parse", "loop 120 BPM.wav", "Op. 66.mp3")
        self.assertIn("loop 120 BPM.wav: 120 BPM", output)
        self.assertIn("Op. 66.mp3: NO TEMPO", output)

    def test_detect_command_json(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            write_wav(root / "a 100 BPM.wav")
            write_wav(root / "b.wav", extra_chunks=acid_chunk(120.0, one_shot=True))
            output = self.run_cli(
                "--config",
                str(self._config(root)),
                "detect",
                str(root),
                "--project-tempo",
                "200",
                "--json",
            )
        records = json.loads(output)
        self.assertEqual([Path(r["path"]).name for r in records], ["a 100 BPM.wav", "b.wav"])
        self.assertEqual(records[0]["stretch_minimizing_pow_of_two"], 2.0)
        self.assertTrue(records[1]["is_one_shot"])

    def test_detect_missing_file_exits_nonzero(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            with self.assertRaises(SystemExit) as ctx:
                self.run_cli(
                    "--config", str(self._config(root)), "detect", str(root / "gone.wav")
                )
        self.assertEqual(ctx.exception.code, 1)

    def test_rejects_non_positive_project_tempo(self) -> None:
        with self.assertRaises(SystemExit):
            with redirect_stdout(io.StringIO()), redirect_stderr(io.StringIO()):
                main(["detect", "x.wav", "--project-tempo", "0"])

    @staticmethod
    def _config(root: Path) -> Path:
        path = root / "config.yaml"
        path.write_text("analysis:\n  enabled: false\n", encoding="utf-8")
        return path


if __name__ == "__main__":
    unittest.main()
