from __future__ import annotations

import math
from typing import Optional

MIN_BPM = 30.0
MAX_BPM = 300.0


def is_valid_bpm(value: object) -> bool:
    if value is None or isinstance(value, bool):
        return False
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return False
    if not math.isfinite(number):
        return False
    return MIN_BPM <= number <= MAX_BPM


def valid_bpm_or_none(value: object) -> Optional[float]:
    """Return the value as a float when it is a usable tempo, otherwise None. Never clamps."""
    if not is_valid_bpm(value):
        return None
    return float(value)  # type: ignore[arg-type]
