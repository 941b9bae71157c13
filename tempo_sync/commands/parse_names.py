from __future__ import annotations

from collections.abc import Iterable

from ..filename import get_bpm_from_filename
from .output import no_tempo, tempo


def run(names: Iterable[str]) -> list[str]:
    lines: list[str] = []
    for name in names:
        bpm = get_bpm_from_filename(name)
        lines.append(tempo(name, bpm) if bpm is not None else no_tempo(name))
    return lines
