"""Queries against directory indexes."""

from __future__ import annotations

import copy
import time
from typing import Any

from .builder import RECORDS_KEY
from .cache import Cache
from .taskqueue import Task, TaskQueue, TaskType


class IndexNotReadyError(RuntimeError):
    """The index of a directory could not be obtained in time."""


class RecordNotFoundError(LookupError):
    """The index holds no record for the requested file."""


def _split_file(path: str) -> tuple[str, str]:
    directory, slash, name = path.rpartition("/")
    if not slash:
        raise ValueError(f"path has no directory part: {path!r}")
    return directory, name


class IndexAPI:
    """Answers size, duration and record queries from the index cache.

    A path ending in ``/`` names a directory; any other path names a file.
    """

    def __init__(
        self,
        cache: Cache,
        queue: TaskQueue,
        wait_seconds: float = 5.0,
        poll_interval: float = 0.1,
    ) -> None:
        self.cache = cache
        self.queue = queue
        self.wait_seconds = wait_seconds
        self.poll_interval = poll_interval

    def _index(self, directory: str) -> Any:
        try:
            return self.cache.acquire(directory)
        except (OSError, ValueError):
            pass
        self.queue.enqueue(TaskType.RESCAN_DIR, directory, front=True)
        deadline = time.monotonic() + self.wait_seconds
        while time.monotonic() < deadline:
            time.sleep(self.poll_interval)
            try:
                return self.cache.acquire(directory)
            except (OSError, ValueError):
                continue
        raise IndexNotReadyError(f"index of {directory!r} is not ready")

    def _find(self, file_path: str) -> dict:
        directory, name = _split_file(file_path)
        index = self._index(directory)
        for record in index.get(RECORDS_KEY, []):
            if record.get("fn") == name:
                return record
        raise RecordNotFoundError(file_path)

    @staticmethod
    def _directory(path: str) -> str:
        return path.rstrip("/") or "/"

    def get_size(self, path: str) -> int:
        """Total size of a directory, or the size of one file."""
        if path.endswith("/"):
            return self._index(self._directory(path)).get("size", 0)
        return self._find(path)["sz"]

    def get_duration(self, path: str) -> int:
        """Total duration of a directory, or the duration of one file."""
        if path.endswith("/"):
            return self._index(self._directory(path)).get("duration", 0)
        return self._find(path)["aud"]["dur"]

    def get_record(self, file_path: str) -> dict:
        """Return a copy of the whole index record of a file."""
        return copy.deepcopy(self._find(file_path))

    def schedule_task(self, task_type: TaskType, path: str) -> Task:
        """Queue a task at the back."""
        return self.queue.enqueue(task_type, path)

    def schedule_task_sync(self, task_type: TaskType, path: str) -> Task:
        """Queue a task at the front, ahead of waiting ones."""
        return self.queue.enqueue(task_type, path, front=True)