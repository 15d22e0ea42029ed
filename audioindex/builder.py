"""Building and updating directory indexes of audio recordings."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

from .cache import Cache
from .utils import AudInfo, FileMeta, extract_file_meta, parse_aud_from_filename

_log = logging.getLogger(__name__)

_AUDIO_SUFFIXES = (".wav", ".mp3")
RECORDS_KEY = "records"


def _split(path: str) -> tuple[str, str]:
    directory, slash, name = path.rpartition("/")
    if not slash:
        raise ValueError(f"path has no directory part: {path!r}")
    return directory, name


def _arc_flag(path: str) -> bool:
    if "/arc/" in path:
        return True
    if "/rec/" in path:
        return Path(path.replace("/rec/", "/arc/", 1)).exists()
    return False


def _find_record(records: list, name: str) -> Optional[dict]:
    return next((rec for rec in records if rec.get("fn") == name), None)


def _aud_fields(name: str) -> dict:
    return (parse_aud_from_filename(name) or AudInfo()).to_record_fields()


class Builder:
    """Creates index records for audio files and keeps directory totals."""

    def __init__(self, cache: Cache) -> None:
        self.cache = cache

    def _records(self, directory: str) -> list:
        index: Any = self.cache.acquire(directory)
        return index.setdefault(RECORDS_KEY, [])

    def _update_parent_sizes(self, directory: str, delta_size: int, delta_dur: int) -> None:
        current = directory
        while current:
            index = self.cache.acquire(current)
            index["size"] = index.get("size", 0) + delta_size
            index["duration"] = index.get("duration", 0) + delta_dur
            self.cache.mark_dirty(current)
            parent, slash, _ = current.rpartition("/")
            if not slash:
                break
            current = parent

    def scan_directory(self, directory: str) -> int:
        """Index the .wav and .mp3 files of ``directory`` not yet indexed.

        Returns the number of records added. Raises ``OSError`` if the
        directory cannot be listed.
        """
        names = sorted(
            entry.name
            for entry in Path(directory).iterdir()
            if entry.is_file() and entry.suffix.lower() in _AUDIO_SUFFIXES
        )
        records = self._records(directory)
        known = {rec.get("fn") for rec in records}
        added = 0
        for name in names:
            if name in known:
                continue
            full = f"{directory}/{name}"
            try:
                meta = extract_file_meta(full)
            except OSError as exc:
                _log.error("extract meta failed: %s (%s)", full, exc)
                continue
            record = {
                "idx": len(records),
                "sz": meta.size,
                "t": meta.file_type,
                "arc": _arc_flag(full),
                "del": False,
                "fn": name,
                "aud": {
                    "dur": meta.duration,
                    **_aud_fields(name),
                    "cdc": meta.codec,
                    "audr": True,
                    "radr": False,
                    "opo": False,
                    "opopl": False,
                },
            }
            records.append(record)
            known.add(name)
            self.cache.mark_dirty(directory)
            self._update_parent_sizes(directory, meta.size, meta.duration)
            added += 1
        return added

    def update_file(self, file_path: str, remove: bool = False) -> None:
        """Refresh the record of ``file_path``, or mark it deleted.

        Files without a record are left alone. Raises ``ValueError`` if the
        path has no directory part.
        """
        directory, name = _split(file_path)
        records = self._records(directory)
        delta_size = delta_dur = 0
        record = _find_record(records, name)
        if record is not None:
            old_size = record["sz"]
            old_dur = record["aud"]["dur"]
            if remove:
                record["del"] = True
                delta_size -= old_size
                delta_dur -= old_dur
            else:
                try:
                    meta = extract_file_meta(file_path)
                except OSError as exc:
                    _log.error("extract meta failed: %s (%s)", file_path, exc)
                    meta = FileMeta()
                record["sz"] = meta.size
                record["t"] = meta.file_type
                aud = record["aud"]
                aud["dur"] = meta.duration
                aud["cdc"] = meta.codec
                aud.update(_aud_fields(name))
                record["arc"] = _arc_flag(file_path)
                delta_size += meta.size - old_size
                delta_dur += meta.duration - old_dur
            self.cache.mark_dirty(directory)
        self._update_parent_sizes(directory, delta_size, delta_dur)

    def set_arc(self, file_path: str, on: bool) -> None:
        """Set or clear the archive flag in both the rec and arc copies."""
        path_rec = path_arc = file_path
        if "/rec/" in file_path:
            path_arc = file_path.replace("/rec/", "/arc/", 1)
        elif "/arc/" in file_path:
            path_rec = file_path.replace("/arc/", "/rec/", 1)
        for path in (path_rec, path_arc):
            directory, slash, name = path.rpartition("/")
            if not slash:
                continue
            changed = False
            for record in self._records(directory):
                if record.get("fn") == name:
                    record["arc"] = on
                    changed = True
            if changed:
                self.cache.mark_dirty(directory)