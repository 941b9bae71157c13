from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..models import ImportReport


@dataclass(frozen=True, slots=True)
class ResultLine:
    label: str
    status: str
    detail: Optional[str] = None

    def render(self) -> str:
        if self.detail:
            return f"{self.label}: {self.status} ({self.detail})"
        return f"{self.label}: {self.status}"


def tempo(label: str, bpm: float, detail: Optional[str] = None) -> str:
    return ResultLine(label, f"{bpm:g} BPM", detail).render()


def no_tempo(label: str, detail: Optional[str] = None) -> str:
    return ResultLine(label, "NO TEMPO", detail).render()


def one_shot(label: str, detail: Optional[str] = None) -> str:
    return ResultLine(label, "ONE-SHOT", detail).render()


def error(label: str, detail: Optional[str] = None) -> str:
    return ResultLine(label, "ERROR", detail).render()


def render_report(report: ImportReport) -> str:
    label = str(report.path)
    if report.error:
        return error(label, report.error)
    if report.is_one_shot:
        return one_shot(label)
    if not report.reliable or report.sync is None:
        return no_tempo(label)
    source = report.tempo_source.value if report.tempo_source else "unknown"
    detail = f"from {source}"
    if report.project_tempo is not None:
        detail += (
            f", project {report.project_tempo:g} BPM,"
            f" x{report.sync.stretch_minimizing_pow_of_two:g},"
            f" residual stretch {report.fine_stretch_ratio:.4f}"
        )
    return tempo(label, report.sync.raw_audio_tempo, detail)
