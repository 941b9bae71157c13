from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .sources import DEFAULT_STRICT_MIN_CONFIDENCE, FalsePositiveTolerance


class AnalysisSettings(BaseModel):
    enabled: bool = True
    tolerance: FalsePositiveTolerance = FalsePositiveTolerance.LENIENT
    strict_min_confidence: float = Field(default=DEFAULT_STRICT_MIN_CONFIDENCE, ge=0.0, le=1.0)
    min_duration_seconds: float = 1.0
    max_duration_seconds: float = 60.0
    bpm_min: float = Field(default=60.0, gt=0)
    bpm_max: float = Field(default=200.0, gt=0)

    @field_validator("tolerance", mode="before")
    @classmethod
    def _normalize_tolerance(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @model_validator(mode="after")
    def _check_bpm_window(self) -> "AnalysisSettings":
        if self.bpm_max <= self.bpm_min:
            raise ValueError("analysis.bpm_max must be greater than analysis.bpm_min")
        return self


class LibrarySettings(BaseModel):
    include_extensions: List[str] = Field(
        default_factory=lambda: [".wav", ".aif", ".aiff", ".flac", ".mp3", ".ogg", ".opus", ".m4a"]
    )
    exclude_patterns: List[str] = Field(default_factory=list)

    @field_validator("include_extensions", mode="before")
    @classmethod
    def _dot_extensions(cls, values: List[str]) -> List[str]:
        return [v if v.startswith(".") else f".{v}" for v in values]


class SyncSettings(BaseModel):
    project_tempo: Optional[float] = Field(default=None, gt=0)


class Settings(BaseModel):
    analysis: AnalysisSettings = Field(default_factory=AnalysisSettings)
    library: LibrarySettings = Field(default_factory=LibrarySettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)

    @classmethod
    def load(cls, path: Path) -> "Settings":
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
        return cls.model_validate(raw or {})


def find_config(explicit_path: Optional[Path]) -> Optional[Path]:
    if explicit_path:
        if not explicit_path.exists():
            raise FileNotFoundError(f"Config file {explicit_path} does not exist")
        return explicit_path
    cwd = Path.cwd()
    for candidate in (cwd / "config.yaml", cwd / "config.yml"):
        if candidate.exists():
            return candidate
    return None


def load_settings(explicit_path: Optional[Path] = None) -> Settings:
    path = find_config(explicit_path)
    if path is None:
        return Settings()
    return Settings.load(path)
