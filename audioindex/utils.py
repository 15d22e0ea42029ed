"""File metadata extraction, filename parsing and timing helpers."""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from os import PathLike
from pathlib import Path
from typing import Optional, Union

CACHE_SIZE_MAX = 8
"""Maximum number of directory indexes held in the cache."""

CACHE_LIFE_MS = 10_000
"""Idle time after which a cached index is evicted."""

TASK_QUEUE_LEN = 16
"""Depth of the task queue."""

INDEX_FILE_NAME = "index"
"""Name of the per-directory index file."""

FILE_TYPE_UNKNOWN = 0
FILE_TYPE_WAV = 1
FILE_TYPE_MP3 = 2

_U8 = 0xFF
_U16 = 0xFFFF
_U32 = 0xFFFFFFFF

_START = time.monotonic()

_INT = r"\s*([+-]?\d+)"
_AUD_PATTERN = re.compile(
    r"audio" + _INT + r"\s*" + _INT + "-" + _INT + "-" + _INT
    + r"\s*" + _INT + ":" + _INT + ":" + _INT
)


@dataclass(frozen=True)
class FileMeta:
    """Size, duration, type and codec of an audio file."""

    size: int = 0
    duration: int = 0
    file_type: int = FILE_TYPE_UNKNOWN
    codec: str = ""


@dataclass(frozen=True)
class AudInfo:
    """Channel and timestamp encoded in a recording's filename.

    ``year`` is relative to 2000.
    """

    ch: int = 0
    year: int = 0
    month: int = 0
    day: int = 0
    hour: int = 0
    minute: int = 0
    second: int = 0

    def to_record_fields(self) -> dict:
        """Return the fields under the keys used in the index's ``aud`` object."""
        return {
            "ch": self.ch,
            "yy": self.year,
            "MM": self.month,
            "dd": self.day,
            "hh": self.hour,
            "mm": self.minute,
            "ss": self.second,
        }


def extract_file_meta(path: Union[str, PathLike]) -> FileMeta:
    """Read a file and derive its metadata from the header.

    Raises ``OSError`` if the file cannot be read.
    """
    data = Path(path).read_bytes()
    size = len(data) & _U32

    if size >= 12 and data[0:3] == b"RIF" and data[8:10] == b"WA":
        duration = 0
        if size >= 44:
            bytes_per_sec = int.from_bytes(data[28:32], "little")
            if bytes_per_sec:
                duration = size // bytes_per_sec
        if size >= 22:
            codec = str(int.from_bytes(data[20:22], "little"))
        else:
            codec = "wav"
        return FileMeta(size, duration, FILE_TYPE_WAV, codec)

    if size >= 3 and data[0:3] == b"ID3":
        return FileMeta(size, 0, FILE_TYPE_MP3, "mp3")

    text = str(path)
    head, dot, ext = text.rpartition(".")
    codec = ext if dot else ""
    return FileMeta(size, 0, FILE_TYPE_UNKNOWN, codec)


def parse_aud_from_filename(filename: str) -> Optional[AudInfo]:
    """Parse ``audio<ch> <YYYY>-<MM>-<DD> <hh>:<mm>:<ss>[.ext]``.

    Returns ``None`` if the name does not follow that pattern.
    """
    name, dot, _ = filename.rpartition(".")
    if not dot:
        name = filename
    match = _AUD_PATTERN.match(name)
    if match is None:
        return None
    ch, year, month, day, hour, minute, second = (int(g) for g in match.groups())
    return AudInfo(
        ch=ch & _U8,
        year=(year - 2000) & _U16,
        month=month & _U8,
        day=day & _U8,
        hour=hour & _U8,
        minute=minute & _U8,
        second=second & _U8,
    )


def tick_ms() -> int:
    """Milliseconds since start-up, wrapping at 32 bits."""
    return int((time.monotonic() - _START) * 1000) & _U32