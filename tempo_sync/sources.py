from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .analysis import ProgressCallback, TempoEstimator
from .bpm import is_valid_bpm, valid_bpm_or_none
from .filename import get_bpm_from_filename
from .readers import AudioReader
from .tags import AcidizerTags

logger = logging.getLogger(__name__)

DEFAULT_STRICT_MIN_CONFIDENCE = 0.6


class TempoSource(str, Enum):
    ACID_TAG = "acid_tag"
    FILENAME = "filename"
    SIGNAL = "signal"


class FalsePositiveTolerance(str, Enum):
    """How readily an unconfirmed signal-analysis tempo is accepted."""

    STRICT = "strict"
    LENIENT = "lenient"

    def min_confidence(self, strict_min_confidence: float = DEFAULT_STRICT_MIN_CONFIDENCE) -> float:
        if self is FalsePositiveTolerance.LENIENT:
            return 0.0
        return strict_min_confidence


@dataclass(frozen=True, slots=True)
class TempoResolution:
    bpm: Optional[float] = None
    source: Optional[TempoSource] = None
    is_one_shot: bool = False


def resolve_tempo(
    tags: Optional[AcidizerTags],
    filename: str,
    reader: AudioReader,
    tolerance: FalsePositiveTolerance,
    progress_callback: Optional[ProgressCallback] = None,
    *,
    estimator: Optional[TempoEstimator] = None,
    strict_min_confidence: float = DEFAULT_STRICT_MIN_CONFIDENCE,
) -> TempoResolution:
    """Walk tag, filename and signal analysis in that order; the first usable tempo wins.

    A one-shot tag short-circuits everything. ``estimator`` is consulted at
    most once and only when neither tag nor filename gave a tempo; pass
    ``None`` to skip signal analysis altogether.
    """
    if tags is not None and tags.is_one_shot:
        logger.debug("%s is tagged as one-shot, no tempo", filename)
        return TempoResolution(is_one_shot=True)

    if tags is not None:
        if is_valid_bpm(tags.bpm):
            return TempoResolution(bpm=float(tags.bpm), source=TempoSource.ACID_TAG)  # type: ignore[arg-type]
        logger.debug("Ignoring invalid tag tempo %r for %s", tags.bpm, filename)

    from_name = get_bpm_from_filename(filename)
    if from_name is not None:
        return TempoResolution(bpm=from_name, source=TempoSource.FILENAME)

    if estimator is None:
        return TempoResolution()

    estimate = estimator.estimate(reader, progress_callback)
    if estimate is None:
        logger.debug("Signal analysis found no tempo for %s", filename)
        return TempoResolution()
    bpm = valid_bpm_or_none(estimate.bpm)
    threshold = tolerance.min_confidence(strict_min_confidence)
    if bpm is None or estimate.confidence < threshold:
        logger.debug(
            "Rejecting estimated tempo %.2f (confidence %.3f < %.3f or out of range) for %s",
            estimate.bpm,
            estimate.confidence,
            threshold,
            filename,
        )
        return TempoResolution()
    return TempoResolution(bpm=bpm, source=TempoSource.SIGNAL)
