from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .analysis import OnsetAutocorrelationEstimator, ProgressCallback, TempoEstimator
from .config import Settings
from .models import ImportReport, ProcessingError
from .music_information import MusicInformation
from .readers import open_reader
from .sources import FalsePositiveTolerance
from .tags import TempoTagReader

logger = logging.getLogger(__name__)


@dataclass
class TempoImporter:
    settings: Settings
    tag_reader: TempoTagReader
    estimator: Optional[TempoEstimator] = None

    @classmethod
    def create(cls, settings: Settings) -> "TempoImporter":
        analysis = settings.analysis
        estimator: Optional[TempoEstimator] = None
        if analysis.enabled:
            estimator = OnsetAutocorrelationEstimator(
                bpm_min=analysis.bpm_min,
                bpm_max=analysis.bpm_max,
                min_duration_seconds=analysis.min_duration_seconds,
                max_duration_seconds=analysis.max_duration_seconds,
            )
        return cls(settings=settings, tag_reader=TempoTagReader(), estimator=estimator)

    def analyze(
        self,
        path: Path,
        *,
        tolerance: Optional[FalsePositiveTolerance] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> MusicInformation:
        if not path.is_file():
            raise ProcessingError(f"{path} is not a file")
        tags = self.tag_reader.read(path)
        with open_reader(path) as reader:
            return MusicInformation.resolve(
                tags,
                str(path),
                reader,
                tolerance or self.settings.analysis.tolerance,
                progress_callback,
                estimator=self.estimator,
                analyze_signal=self.estimator is not None,
                strict_min_confidence=self.settings.analysis.strict_min_confidence,
            )

    def import_file(
        self,
        path: Path,
        *,
        project_tempo: Optional[float] = None,
        tolerance: Optional[FalsePositiveTolerance] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> ImportReport:
        if project_tempo is None:
            project_tempo = self.settings.sync.project_tempo
        info = self.analyze(path, tolerance=tolerance, progress_callback=progress_callback)
        report = ImportReport(
            path=path,
            reliable=bool(info),
            raw_audio_tempo=info.raw_audio_tempo,
            tempo_source=info.tempo_source,
            is_one_shot=info.is_one_shot,
            project_tempo=project_tempo,
        )
        if info:
            report.sync = info.get_project_sync_info(project_tempo)
            logger.info(
                "%s: %.2f BPM from %s, x%g",
                path,
                report.sync.raw_audio_tempo,
                info.tempo_source.value if info.tempo_source else "?",
                report.sync.stretch_minimizing_pow_of_two,
            )
        elif info.is_one_shot:
            logger.info("%s: one-shot, no tempo", path)
        else:
            logger.info("%s: no reliable tempo", path)
        return report
