# src/callback_scheduler/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The dispatcher depends on a Protocol instead of the concrete TaskStore, so
tests (or a future store) can stand in for it.
"""

from typing import Protocol

from ..tasks.task_models import Task


class TaskRepo(Protocol):
    """What a dispatcher needs from the store: remove exactly one task after firing."""

    def remove_task(self, bucket_key: str, task_id: str) -> Task | None: ...
