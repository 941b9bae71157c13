from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

from .bpm import is_valid_bpm
from .sources import TempoSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProjectSyncInfo:
    """How an asset lines up with the project tempo.

    Multiplying the raw tempo by ``stretch_minimizing_pow_of_two`` gives the
    half-time/double-time reading closest to the project tempo; the residual
    ratio ``project_tempo / (raw_audio_tempo * stretch_minimizing_pow_of_two)``
    is what a stretcher still has to apply.
    """

    raw_audio_tempo: float
    stretch_minimizing_pow_of_two: float = 1.0
    tempo_source: Optional[TempoSource] = None

    def to_record(self) -> dict[str, object]:
        return {
            "raw_audio_tempo": self.raw_audio_tempo,
            "stretch_minimizing_pow_of_two": self.stretch_minimizing_pow_of_two,
            "tempo_source": self.tempo_source.value if self.tempo_source else None,
        }


def compute_project_sync_info(
    raw_tempo: float,
    project_tempo: Optional[float] = None,
    tempo_source: Optional[TempoSource] = None,
) -> ProjectSyncInfo:
    if not is_valid_bpm(raw_tempo):
        raise ValueError(f"raw tempo {raw_tempo!r} is not a valid BPM")
    raw_tempo = float(raw_tempo)
    if project_tempo is None:
        return ProjectSyncInfo(raw_audio_tempo=raw_tempo, tempo_source=tempo_source)
    if not math.isfinite(project_tempo) or project_tempo <= 0:
        logger.warning("Ignoring unusable project tempo %r", project_tempo)
        return ProjectSyncInfo(raw_audio_tempo=raw_tempo, tempo_source=tempo_source)
    # Difference of logs; the quotient can underflow to 0.0 for subnormal tempos.
    exponent = round_half_away_from_zero(math.log2(project_tempo) - math.log2(raw_tempo))
    return ProjectSyncInfo(
        raw_audio_tempo=raw_tempo,
        stretch_minimizing_pow_of_two=2.0**exponent,
        tempo_source=tempo_source,
    )


def round_half_away_from_zero(value: float) -> int:
    # Python's round() goes to even on ties. value - trunc(value) is exact.
    truncated = math.trunc(value)
    if abs(value - truncated) >= 0.5:
        return truncated + (1 if value > 0 else -1)
    return truncated
