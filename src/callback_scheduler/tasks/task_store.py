# src/callback_scheduler/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import threading
from collections.abc import Iterator

from .task_models import Task

logger = logging.getLogger(__name__)


class DuplicateTaskError(ValueError):
    """A pending task with the same id is already stored."""


class _ReadWriteLock:
    """
    Shared/exclusive lock.

    Readers share the lock; a writer holds it alone. Waiting writers block
    new readers so a steady stream of listings cannot starve mutation.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextlib.contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextlib.contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class TaskStore:
    """
    In-memory store of pending tasks.

    Layout:
    - buckets keyed by the exact target instant (Task.bucket_key)
    - each bucket is a list that preserves insertion order
    - a bucket with no tasks is deleted immediately

    Thread-safety:
    - insert/remove take the exclusive lock
    - reads across buckets take the shared lock
    """

    def __init__(self) -> None:
        self._buckets: dict[str, list[Task]] = {}
        self._ids: set[str] = set()
        self._lock = _ReadWriteLock()
        logger.info("TaskStore ready (in-memory)")

    # ---- low-level helpers ----

    def _pop(self, bucket_key: str, index: int) -> Task:
        # Caller holds the write lock and has bounds-checked index.
        bucket = self._buckets[bucket_key]
        task = bucket.pop(index)
        self._ids.discard(task.id)
        if not bucket:
            del self._buckets[bucket_key]
        return task

    # ---- public API ----

    def insert(self, task: Task) -> None:
        with self._lock.write():
            if task.id in self._ids:
                raise DuplicateTaskError(f"task id {task.id!r} is already scheduled")
            self._buckets.setdefault(task.bucket_key, []).append(task)
            self._ids.add(task.id)
        logger.debug("Task inserted id=%s bucket=%s", task.id, task.bucket_key)

    def list_all(self) -> list[Task]:
        """
        Every pending task, bucket by bucket.

        Order inside a bucket is insertion order; order across buckets is
        unspecified (it is not sorted by target time).
        """
        with self._lock.read():
            out: list[Task] = []
            for bucket in self._buckets.values():
                out.extend(bucket)
            return out

    def remove(self, bucket_key: str, index: int) -> Task | None:
        """
        Remove the task at `index` inside the bucket.

        A missing bucket or out-of-range index is a no-op. Positions shift
        under concurrent mutation, so dispatchers use remove_task() instead.
        """
        with self._lock.write():
            bucket = self._buckets.get(bucket_key)
            if bucket is None or not 0 <= index < len(bucket):
                return None
            return self._pop(bucket_key, index)

    def remove_task(self, bucket_key: str, task_id: str) -> Task | None:
        """
        Remove exactly the task with `task_id` from its bucket.

        The scan and the removal happen under one exclusive lock, so a task
        that slid into the same position can never be removed by mistake.
        Returns None if the task (or its bucket) is already gone.
        """
        with self._lock.write():
            bucket = self._buckets.get(bucket_key)
            if bucket is None:
                return None
            for i, t in enumerate(bucket):
                if t.id == task_id:
                    return self._pop(bucket_key, i)
            return None

    def get_task(self, task_id: str) -> Task | None:
        with self._lock.read():
            if task_id not in self._ids:
                return None
            for bucket in self._buckets.values():
                for t in bucket:
                    if t.id == task_id:
                        return t
            return None

    def count_tasks(self) -> int:
        with self._lock.read():
            return sum(len(b) for b in self._buckets.values())

    def count_buckets(self) -> int:
        with self._lock.read():
            return len(self._buckets)

    def bucket_keys(self) -> list[str]:
        with self._lock.read():
            return list(self._buckets)
