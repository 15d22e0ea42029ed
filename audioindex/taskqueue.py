"""Queue of indexing tasks processed by a background worker."""

from __future__ import annotations

import enum
import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Optional

from .builder import Builder
from .utils import TASK_QUEUE_LEN

_log = logging.getLogger(__name__)


class TaskType(enum.IntEnum):
    """Kinds of work the queue can carry."""

    UPDATE_FILE = 0
    RESCAN_DIR = 1
    ARC_FLAG = 2


@dataclass(frozen=True)
class Task:
    """One unit of indexing work."""

    type: TaskType
    path: str


class TaskQueue:
    """A bounded queue of tasks that a :class:`Builder` carries out.

    Tasks are taken from the front. :meth:`enqueue` blocks while the queue
    is full. :meth:`start` runs a worker thread that processes tasks until
    :meth:`stop` is called; :meth:`process_one` does a single one.
    """

    def __init__(self, builder: Builder, maxsize: int = TASK_QUEUE_LEN) -> None:
        if maxsize < 1:
            raise ValueError("maxsize must be at least 1")
        self.builder = builder
        self.maxsize = maxsize
        self._tasks: deque[Task] = deque()
        self._cond = threading.Condition()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def __len__(self) -> int:
        with self._cond:
            return len(self._tasks)

    def enqueue(self, task_type: TaskType, path: str, front: bool = False) -> Task:
        """Add a task, at the front if ``front`` is true, and return it.

        Blocks until there is room in the queue.
        """
        task = Task(TaskType(task_type), path)
        with self._cond:
            self._cond.wait_for(lambda: len(self._tasks) < self.maxsize)
            if front:
                self._tasks.appendleft(task)
            else:
                self._tasks.append(task)
            self._cond.notify_all()
        return task

    def process_one(self, timeout: Optional[float] = None) -> Optional[Task]:
        """Take the next task and carry it out.

        Waits up to ``timeout`` seconds (forever if ``None``) for a task and
        returns it once done, or ``None`` if none arrived in time. Failures of
        the task itself are logged, not raised.
        """
        with self._cond:
            if not self._cond.wait_for(lambda: self._tasks, timeout):
                return None
            task = self._tasks.popleft()
            self._cond.notify_all()
        self._run(task)
        return task

    def _run(self, task: Task) -> None:
        try:
            if task.type is TaskType.UPDATE_FILE:
                self.builder.update_file(task.path, False)
            elif task.type is TaskType.RESCAN_DIR:
                self.builder.scan_directory(task.path)
            elif task.type is TaskType.ARC_FLAG:
                self.builder.set_arc(task.path, True)
        except (OSError, ValueError, KeyError, TypeError) as exc:
            _log.error("task %s on %s failed: %s", task.type.name, task.path, exc)

    def start(self) -> None:
        """Start the worker thread if it is not running."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="index-tasks", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop the worker thread and wait for it to finish."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    def _loop(self) -> None:
        while not self._stop_event.is_set():
            self.process_one(timeout=0.05)