from __future__ import annotations

import re
from typing import Optional

from .bpm import MAX_BPM, MIN_BPM

DIGIT_RUN_PATTERN = re.compile(r"[0-9]+")
BPM_MARKER = "bpm"
BRIDGE_CHARS = frozenset(" -_.")
# Anything longer cannot fall inside [MIN_BPM, MAX_BPM] once leading zeros are gone.
MAX_SIGNIFICANT_DIGITS = 3


def get_bpm_from_filename(filename: str) -> Optional[float]:
    """Infer a tempo from text such as ``"Drum Loop 3 - 174 BPM.wav"``.

    The leftmost digit run that sits on a word boundary, is followed by
    ``BPM`` (at most one bridge character in between) and is itself followed
    by a bridge character or the end of the string wins, provided its value
    lies within the valid tempo range.
    """
    if not filename:
        return None
    for match in DIGIT_RUN_PATTERN.finditer(filename):
        start, end = match.span()
        if not _is_word_boundary(filename, start - 1):
            continue
        marker_end = _marker_end(filename, end)
        if marker_end is None:
            continue
        if marker_end < len(filename) and not _is_bridge(filename[marker_end]):
            continue
        value = _parse_tempo(match.group())
        if value is not None:
            return value
    return None


def _is_word_boundary(text: str, index: int) -> bool:
    if index < 0:
        return True
    return not text[index].isalnum()


def _is_bridge(char: str) -> bool:
    return char in BRIDGE_CHARS


def _marker_end(text: str, index: int) -> Optional[int]:
    if index < len(text) and _is_bridge(text[index]):
        index += 1
    stop = index + len(BPM_MARKER)
    if text[index:stop].lower() != BPM_MARKER:
        return None
    return stop


def _parse_tempo(digits: str) -> Optional[float]:
    significant = digits.lstrip("0")
    if not significant or len(significant) > MAX_SIGNIFICANT_DIGITS:
        return None
    value = int(significant)
    if MIN_BPM <= value <= MAX_BPM:
        return float(value)
    return None
