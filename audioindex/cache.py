"""In-memory cache of per-directory index documents."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

from . import parser
from .utils import CACHE_LIFE_MS, CACHE_SIZE_MAX, INDEX_FILE_NAME, tick_ms

_log = logging.getLogger(__name__)

_U32 = 0xFFFFFFFF


@dataclass
class CacheEntry:
    """One cached index document and its bookkeeping."""

    directory: str
    data: Any = field(default_factory=dict)
    last_use_ms: int = 0
    dirty: bool = False

    @property
    def index_path(self) -> Path:
        """Path of the index file this entry is stored in."""
        return Path(self.directory) / INDEX_FILE_NAME


class Cache:
    """Holds up to ``max_entries`` directory indexes, saving changed ones.

    An index that has not been used for more than ``life_ms`` milliseconds is
    dropped by :meth:`evict_expired`, which :meth:`start` runs periodically in
    a background thread. When the cache is full, the least recently used
    entry makes room for a new one.
    """

    def __init__(
        self,
        max_entries: int = CACHE_SIZE_MAX,
        life_ms: int = CACHE_LIFE_MS,
        clock: Callable[[], int] = tick_ms,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self.life_ms = life_ms
        self._clock = clock
        self._entries: list[CacheEntry] = []
        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, directory: object) -> bool:
        with self._lock:
            return any(entry.directory == directory for entry in self._entries)

    def acquire(self, directory: str) -> Any:
        """Return the index document of ``directory``, loading it if needed.

        A missing or unreadable index file yields an empty document. The
        returned object is the cached one: changes to it are kept in the
        cache and written back once :meth:`mark_dirty` has been called.
        """
        with self._lock:
            entry = self._find(directory)
            if entry is None:
                entry = CacheEntry(directory, self._load(directory))
                self._evict_if_needed()
                self._entries.append(entry)
            entry.last_use_ms = self._clock()
            return entry.data

    def mark_dirty(self, directory: str) -> None:
        """Note that the cached index of ``directory`` has changed."""
        with self._lock:
            entry = self._find(directory)
            if entry is not None:
                entry.dirty = True

    def drop(self, directory: str) -> None:
        """Remove one index from the cache, saving it first if changed."""
        with self._lock:
            entry = self._find(directory)
            if entry is None:
                return
            if entry.dirty:
                self._save(entry)
            self._entries.remove(entry)

    def drop_all(self) -> None:
        """Remove every index from the cache, saving changed ones."""
        with self._lock:
            for entry in self._entries:
                if entry.dirty:
                    self._save(entry)
            self._entries.clear()

    def flush_all(self) -> None:
        """Save every changed index, keeping all of them cached."""
        with self._lock:
            for entry in self._entries:
                if entry.dirty:
                    self._save(entry)

    def evict_expired(self) -> None:
        """Drop indexes idle for longer than ``life_ms``, saving changed ones."""
        with self._lock:
            now = self._clock()
            kept = []
            for entry in self._entries:
                if ((now - entry.last_use_ms) & _U32) > self.life_ms:
                    if entry.dirty:
                        self._save(entry)
                    _log.info("evict %s", entry.directory)
                else:
                    kept.append(entry)
            self._entries = kept

    def start(self, interval: float = 1.0) -> None:
        """Run :meth:`evict_expired` every ``interval`` seconds in a thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run, args=(interval,), name="index-cache", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        """Stop the background eviction thread."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    def _run(self, interval: float) -> None:
        while not self._stop_event.wait(interval):
            self.evict_expired()

    def _find(self, directory: str) -> Optional[CacheEntry]:
        return next((e for e in self._entries if e.directory == directory), None)

    def _evict_if_needed(self) -> None:
        if len(self._entries) < self.max_entries:
            return
        oldest = min(self._entries, key=lambda entry: entry.last_use_ms)
        if oldest.dirty:
            self._save(oldest)
        self._entries.remove(oldest)

    @staticmethod
    def _load(directory: str) -> Any:
        path = Path(directory) / INDEX_FILE_NAME
        try:
            data = parser.load(path)
        except (OSError, parser.IndexParseError) as exc:
            _log.debug("starting empty index for %s: %s", directory, exc)
            return {}
        if not isinstance(data, dict):
            _log.warning("index of %s is not a map, starting empty", directory)
            return {}
        return data

    @staticmethod
    def _save(entry: CacheEntry) -> bool:
        try:
            parser.save(entry.index_path, entry.data)
        except OSError as exc:
            _log.error("writeFile failed: %s (%s)", entry.index_path, exc)
            return False
        entry.dirty = False
        return True