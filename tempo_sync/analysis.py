"""
Tempo estimation from sample content.

Used as the last resort when neither tags nor the filename carry a tempo.
Estimators never raise for unreadable audio: they log and report nothing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

import numpy as np
from scipy import signal

from .readers import AudioReader, duration_seconds

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


@dataclass(frozen=True, slots=True)
class TempoEstimate:
    bpm: float
    confidence: float  # 0-1


class TempoEstimator(Protocol):
    def estimate(
        self,
        reader: AudioReader,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Optional[TempoEstimate]: ...


class OnsetAutocorrelationEstimator:
    """Spectral-flux onset envelope, autocorrelated within a BPM window.

    Imported loops usually span a whole number of beats, so the raw peak
    is snapped to the nearest tempo that fits the clip duration exactly.
    """

    def __init__(
        self,
        *,
        hop: int = 512,
        n_fft: int = 2048,
        bpm_min: float = 60.0,
        bpm_max: float = 200.0,
        min_duration_seconds: float = 1.0,
        max_duration_seconds: float = 60.0,
        block_size: int = 1 << 16,
    ) -> None:
        if bpm_min <= 0 or bpm_max <= bpm_min:
            raise ValueError(f"invalid BPM window {bpm_min}-{bpm_max}")
        self.hop = hop
        self.n_fft = n_fft
        self.bpm_min = bpm_min
        self.bpm_max = bpm_max
        self.min_duration_seconds = min_duration_seconds
        self.max_duration_seconds = max_duration_seconds
        self.block_size = block_size

    def estimate(
        self,
        reader: AudioReader,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Optional[TempoEstimate]:
        duration = duration_seconds(reader)
        if duration < self.min_duration_seconds:
            logger.debug("Audio too short for tempo analysis (%.2fs)", duration)
            return None
        if duration > self.max_duration_seconds:
            logger.debug("Audio too long for tempo analysis (%.2fs)", duration)
            return None
        try:
            mono = self._read_all(reader, progress_callback)
        except (OSError, RuntimeError, ValueError) as exc:
            logger.warning("Tempo analysis could not read audio: %s", exc)
            return None
        peak = self._autocorrelation_peak(mono, reader.sample_rate)
        if peak is None:
            return None
        bpm, confidence = peak
        fitted = fit_whole_beats(bpm, duration)
        logger.debug(
            "Autocorrelation peak %.2f BPM (confidence %.3f), loop fit %.2f BPM",
            bpm,
            confidence,
            fitted,
        )
        return TempoEstimate(bpm=round(fitted, 3), confidence=round(confidence, 3))

    def _read_all(
        self, reader: AudioReader, progress_callback: Optional[ProgressCallback]
    ) -> np.ndarray:
        total = reader.num_samples
        blocks: list[np.ndarray] = []
        position = 0
        reported = 0.0
        while position < total:
            block = reader.read_floats(position, min(self.block_size, total - position))
            if block.size == 0:
                break
            blocks.append(block)
            position += block.size
            if progress_callback:
                reported = min(1.0, position / total)
                progress_callback(reported)
        if progress_callback and reported < 1.0:
            progress_callback(1.0)
        if not blocks:
            return np.zeros(0, dtype=np.float32)
        return np.concatenate(blocks)

    def _autocorrelation_peak(
        self, mono: np.ndarray, sample_rate: float
    ) -> Optional[tuple[float, float]]:
        n_fft = min(self.n_fft, len(mono))
        if n_fft < 2:
            return None
        hop = min(self.hop, n_fft - 1)
        _, _, spectrum = signal.stft(
            mono, fs=sample_rate, nperseg=n_fft, noverlap=n_fft - hop
        )
        magnitude = np.abs(spectrum)
        flux = np.maximum(0, np.diff(magnitude, axis=1)).sum(axis=0)
        if flux.size < 2 or not np.isfinite(flux).all() or flux.max() < 1e-8:
            return None

        corr = np.correlate(flux, flux, mode="full")[flux.size - 1 :]
        corr = corr / (corr[0] + 1e-10)

        frames_per_second = sample_rate / hop
        lag_min = max(1, int(frames_per_second * 60.0 / self.bpm_max))
        lag_max = min(int(frames_per_second * 60.0 / self.bpm_min), corr.size - 1)
        if lag_min >= lag_max:
            return None

        window = corr[lag_min:lag_max]
        peak_index = int(np.argmax(window))
        lag = lag_min + peak_index
        bpm = frames_per_second * 60.0 / lag
        confidence = float(np.clip(window[peak_index], 0.0, 1.0))
        return bpm, confidence


def fit_whole_beats(bpm: float, duration: float) -> float:
    """Nearest tempo at which ``duration`` seconds hold a whole number of beats."""
    if bpm <= 0 or duration <= 0:
        return bpm
    beats = max(1, round(duration * bpm / 60.0))
    return 60.0 * beats / duration
