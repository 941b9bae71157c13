from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from .sources import TempoSource
from .sync import ProjectSyncInfo


@dataclass(slots=True)
class ImportReport:
    path: Path
    reliable: bool = False
    raw_audio_tempo: Optional[float] = None
    tempo_source: Optional[TempoSource] = None
    is_one_shot: bool = False
    project_tempo: Optional[float] = None
    sync: Optional[ProjectSyncInfo] = None
    error: Optional[str] = None

    @property
    def fine_stretch_ratio(self) -> Optional[float]:
        """Residual ratio left for the stretcher once the power-of-two snap is applied."""
        if self.sync is None or self.project_tempo is None:
            return None
        return self.project_tempo / (
            self.sync.raw_audio_tempo * self.sync.stretch_minimizing_pow_of_two
        )

    def to_record(self) -> Dict[str, object]:
        return {
            "path": str(self.path),
            "reliable": self.reliable,
            "raw_audio_tempo": self.raw_audio_tempo,
            "tempo_source": self.tempo_source.value if self.tempo_source else None,
            "is_one_shot": self.is_one_shot,
            "project_tempo": self.project_tempo,
            "stretch_minimizing_pow_of_two": (
                self.sync.stretch_minimizing_pow_of_two if self.sync else None
            ),
            "fine_stretch_ratio": self.fine_stretch_ratio,
            "error": self.error,
        }


class ProcessingError(Exception):
    """Raised when a file cannot be imported but the batch should keep going."""
