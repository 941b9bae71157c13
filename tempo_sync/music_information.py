from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .analysis import OnsetAutocorrelationEstimator, ProgressCallback, TempoEstimator
from .bpm import is_valid_bpm
from .readers import AudioReader
from .sources import (
    DEFAULT_STRICT_MIN_CONFIDENCE,
    FalsePositiveTolerance,
    TempoSource,
    resolve_tempo,
)
from .sync import ProjectSyncInfo, compute_project_sync_info
from .tags import AcidizerTags

__all__ = ["FalsePositiveTolerance", "MusicInformation", "TempoUnavailableError"]


class TempoUnavailableError(ValueError):
    """Raised when sync info is requested from an asset without a reliable tempo."""


@dataclass(frozen=True, slots=True)
class MusicInformation:
    """Tempo knowledge about one imported asset, resolved once.

    Truthy only when a tempo was established and the asset is not a
    one-shot. Build it with :meth:`resolve`.
    """

    raw_audio_tempo: Optional[float] = None
    tempo_source: Optional[TempoSource] = None
    is_one_shot: bool = False

    @classmethod
    def resolve(
        cls,
        tags: Optional[AcidizerTags],
        filename: str,
        reader: AudioReader,
        tolerance: FalsePositiveTolerance,
        progress_callback: Optional[ProgressCallback] = None,
        *,
        estimator: Optional[TempoEstimator] = None,
        analyze_signal: bool = True,
        strict_min_confidence: float = DEFAULT_STRICT_MIN_CONFIDENCE,
    ) -> "MusicInformation":
        if analyze_signal and estimator is None:
            estimator = OnsetAutocorrelationEstimator()
        resolution = resolve_tempo(
            tags,
            filename,
            reader,
            tolerance,
            progress_callback,
            estimator=estimator if analyze_signal else None,
            strict_min_confidence=strict_min_confidence,
        )
        return cls(
            raw_audio_tempo=resolution.bpm,
            tempo_source=resolution.source,
            is_one_shot=resolution.is_one_shot,
        )

    def __bool__(self) -> bool:
        return is_valid_bpm(self.raw_audio_tempo) and not self.is_one_shot

    def get_project_sync_info(self, project_tempo: Optional[float] = None) -> ProjectSyncInfo:
        if not self:
            raise TempoUnavailableError("no reliable tempo for this asset")
        return compute_project_sync_info(
            self.raw_audio_tempo,  # type: ignore[arg-type]
            project_tempo,
            tempo_source=self.tempo_source,
        )
