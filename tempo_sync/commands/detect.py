from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..analysis import ProgressCallback
from ..importer import TempoImporter
from ..models import ImportReport, ProcessingError
from ..scanner import AudioFileScanner
from ..sources import FalsePositiveTolerance
from .output import render_report

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DetectSummary:
    reports: list[ImportReport] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not any(report.error for report in self.reports)


def run(
    importer: TempoImporter,
    scanner: AudioFileScanner,
    paths: Iterable[Path],
    *,
    project_tempo: Optional[float] = None,
    tolerance: Optional[FalsePositiveTolerance] = None,
) -> DetectSummary:
    summary = DetectSummary()
    for path in scanner.iter_files(paths):
        try:
            report = importer.import_file(
                path,
                project_tempo=project_tempo,
                tolerance=tolerance,
                progress_callback=_progress_logger(path),
            )
        except ProcessingError as exc:
            logger.warning("Skipping %s: %s", path, exc)
            report = ImportReport(path=path, error=str(exc))
        summary.reports.append(report)
    return summary


def render(summary: DetectSummary, *, json_output: bool = False) -> list[str]:
    if json_output:
        return [json.dumps([report.to_record() for report in summary.reports], indent=2)]
    return [render_report(report) for report in summary.reports]


def _progress_logger(path: Path) -> ProgressCallback:
    def report(fraction: float) -> None:
        logger.debug("Analysing %s: %3.0f%%", path, fraction * 100)

    return report
