from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional

from mutagen import MutagenError
from mutagen.aiff import AIFF
from mutagen.flac import FLAC
from mutagen.id3 import ID3, ID3NoHeaderError
from mutagen.mp4 import MP4
from mutagen.oggopus import OggOpus
from mutagen.oggvorbis import OggVorbis
from mutagen.wave import WAVE

logger = logging.getLogger(__name__)

ACID_CHUNK_ID = b"acid"
ACID_CHUNK_FORMAT = "<IHHfIHHf"
ACID_CHUNK_SIZE = struct.calcsize(ACID_CHUNK_FORMAT)
ACID_FLAG_ONE_SHOT = 0x01
RIFF_HEADER_SIZE = 12
CHUNK_HEADER_SIZE = 8


@dataclass(frozen=True, slots=True)
class AcidizerTags:
    """Loop metadata embedded in a file. ``bpm`` is taken as-is, validity is decided by the caller."""

    bpm: Optional[float] = None
    is_one_shot: bool = False


class TagReadError(Exception):
    """Raised when a container is recognised but its loop metadata is malformed."""


def read_acid_chunk(path: Path) -> Optional[AcidizerTags]:
    """Walk the RIFF chunks of a WAV file and decode the first ``acid`` chunk, if any."""
    with path.open("rb") as fh:
        header = fh.read(RIFF_HEADER_SIZE)
        if len(header) < RIFF_HEADER_SIZE or header[:4] != b"RIFF" or header[8:12] != b"WAVE":
            return None
        while True:
            chunk_header = fh.read(CHUNK_HEADER_SIZE)
            if len(chunk_header) < CHUNK_HEADER_SIZE:
                return None
            chunk_id, size = struct.unpack("<4sI", chunk_header)
            if chunk_id == ACID_CHUNK_ID:
                payload = fh.read(size)
                if len(payload) < ACID_CHUNK_SIZE:
                    raise TagReadError(f"truncated acid chunk ({len(payload)} bytes)")
                return _decode_acid(payload[:ACID_CHUNK_SIZE])
            # Chunks are word aligned.
            fh.seek(size + (size & 1), 1)


def _decode_acid(payload: bytes) -> AcidizerTags:
    flags, _root_note, _, _, _beats, _denominator, _numerator, tempo = struct.unpack(
        ACID_CHUNK_FORMAT, payload
    )
    return AcidizerTags(bpm=float(tempo), is_one_shot=bool(flags & ACID_FLAG_ONE_SHOT))


class TempoTagReader:
    """Reads tempo (and one-shot) hints from the common tagging formats."""

    SUPPORTED_EXTS = {".wav", ".mp3", ".aif", ".aiff", ".flac", ".ogg", ".opus", ".m4a", ".mp4"}

    def read(self, path: Path) -> Optional[AcidizerTags]:
        handlers: Dict[str, Callable[[Path], Optional[AcidizerTags]]] = {
            ".wav": self._read_wav,
            ".mp3": self._read_id3,
            ".aif": self._read_aiff,
            ".aiff": self._read_aiff,
            ".flac": self._read_flac,
            ".ogg": self._read_ogg_vorbis,
            ".opus": self._read_ogg_opus,
            ".m4a": self._read_mp4,
            ".mp4": self._read_mp4,
        }
        handler = handlers.get(path.suffix.lower())
        if not handler:
            logger.debug("Skipping unsupported extension %s", path)
            return None
        try:
            return handler(path)
        except (OSError, MutagenError, TagReadError, struct.error) as exc:
            logger.debug("Failed to read tags for %s: %s", path, exc)
            return None

    def _read_wav(self, path: Path) -> Optional[AcidizerTags]:
        acid = read_acid_chunk(path)
        if acid is not None:
            return acid
        audio = WAVE(path)
        if audio.tags is None:
            return None
        return self._from_text(self._id3_text(audio.tags, "TBPM"))

    def _read_id3(self, path: Path) -> Optional[AcidizerTags]:
        try:
            tags = ID3(path)
        except ID3NoHeaderError:
            return None
        return self._from_text(self._id3_text(tags, "TBPM"))

    def _read_aiff(self, path: Path) -> Optional[AcidizerTags]:
        audio = AIFF(path)
        if audio.tags is None:
            return None
        return self._from_text(self._id3_text(audio.tags, "TBPM"))

    def _read_flac(self, path: Path) -> Optional[AcidizerTags]:
        return self._from_text(self._vorbis_text(FLAC(path).get("BPM")))

    def _read_ogg_vorbis(self, path: Path) -> Optional[AcidizerTags]:
        return self._from_text(self._vorbis_text(OggVorbis(path).get("BPM")))

    def _read_ogg_opus(self, path: Path) -> Optional[AcidizerTags]:
        return self._from_text(self._vorbis_text(OggOpus(path).get("BPM")))

    def _read_mp4(self, path: Path) -> Optional[AcidizerTags]:
        audio = MP4(path)
        value = audio.get("tmpo") if audio.tags is not None else None
        if not value:
            return None
        return AcidizerTags(bpm=float(value[0]))

    def _id3_text(self, tags: ID3, frame_id: str) -> Optional[str]:
        frame = tags.getall(frame_id)
        if not frame:
            return None
        return str(frame[0].text[0]) if frame[0].text else None

    @staticmethod
    def _vorbis_text(values: Optional[List[str]]) -> Optional[str]:
        if not values:
            return None
        return values[0]

    @staticmethod
    def _from_text(value: Optional[str]) -> Optional[AcidizerTags]:
        if value is None:
            return None
        cleaned = value.strip()
        if not cleaned:
            return None
        try:
            bpm: Optional[float] = float(cleaned)
        except ValueError:
            logger.debug("Ignoring unparseable tempo tag %r", value)
            bpm = None
        return AcidizerTags(bpm=bpm)
