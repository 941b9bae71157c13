from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

import numpy as np
import soundfile as sf

logger = logging.getLogger(__name__)


class AudioReadError(Exception):
    """Raised when an audio file cannot be opened for analysis."""


class AudioReader(Protocol):
    """Read-only, mono view on the samples of one asset."""

    @property
    def sample_rate(self) -> float: ...

    @property
    def num_samples(self) -> int: ...

    def read_floats(self, start: int, count: int) -> np.ndarray: ...


def duration_seconds(reader: AudioReader) -> float:
    if reader.sample_rate <= 0:
        return 0.0
    return reader.num_samples / reader.sample_rate


class EmptyAudioReader:
    """Stands in when no sample data is available; analysis finds nothing."""

    sample_rate = 0.0
    num_samples = 0

    def read_floats(self, start: int, count: int) -> np.ndarray:
        return np.zeros(0, dtype=np.float32)

    def close(self) -> None:
        pass

    def __enter__(self) -> "EmptyAudioReader":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class ArrayAudioReader:
    """Serves samples from memory. Multichannel input is ``(channels, frames)`` and mixed down."""

    def __init__(self, samples: np.ndarray, sample_rate: float) -> None:
        data = np.asarray(samples, dtype=np.float32)
        if data.ndim > 1:
            data = data.mean(axis=0)
        self._samples = data
        self._sample_rate = float(sample_rate)

    @property
    def sample_rate(self) -> float:
        return self._sample_rate

    @property
    def num_samples(self) -> int:
        return int(self._samples.shape[0])

    def read_floats(self, start: int, count: int) -> np.ndarray:
        start = max(0, start)
        return self._samples[start : start + max(0, count)]


class SoundFileAudioReader:
    """Decodes from disk on demand through libsndfile.

    The file stays open until :meth:`close`; use it as a context manager.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        try:
            self._file = sf.SoundFile(str(path))
        except (OSError, RuntimeError) as exc:
            raise AudioReadError(f"{path}: {exc}") from exc
        self._sample_rate = float(self._file.samplerate)
        self._num_samples = int(self._file.frames)

    @property
    def sample_rate(self) -> float:
        return self._sample_rate

    @property
    def num_samples(self) -> int:
        return self._num_samples

    def read_floats(self, start: int, count: int) -> np.ndarray:
        if count <= 0 or start >= self._num_samples:
            return np.zeros(0, dtype=np.float32)
        self._file.seek(max(0, start))
        data = self._file.read(frames=count, dtype="float32", always_2d=True)
        return data.mean(axis=1).astype(np.float32)

    def close(self) -> None:
        self._file.close()

    def __enter__(self) -> "SoundFileAudioReader":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def open_reader(path: Path) -> SoundFileAudioReader | EmptyAudioReader:
    """Open ``path`` for analysis; callers close the result, e.g. in a ``with`` block."""
    try:
        return SoundFileAudioReader(path)
    except AudioReadError as exc:
        logger.debug("No decodable audio for %s, signal analysis disabled: %s", path, exc)
        return EmptyAudioReader()
