# src/callback_scheduler/tasks/task_api.py

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from ..core.state import AppState
from .task_models import Task, new_task_id, parse_rfc3339

logger = logging.getLogger(__name__)

RFC3339_HINT = "Invalid date format. Use RFC3339 format (e.g. 2025-03-10T15:04:05Z)"


class TaskValidationError(ValueError):
    """Client input that can never become a task. str(exc) is safe to show the caller."""


def _optional_str(raw: dict[str, Any], key: str) -> str:
    val = raw.get(key)
    if val is None:
        return ""
    if not isinstance(val, str):
        raise TaskValidationError(f"{key} must be a string")
    return val


def build_task(raw: dict[str, Any], *, now: datetime | None = None) -> Task:
    """
    Validate a decoded registration body and turn it into a Task.

    Checks, in order:
    - endpoint is present and non-empty
    - scheduled_at is present and non-empty
    - scheduled_at parses as RFC3339 (offset required)
    - scheduled_at is strictly after `now`

    A missing or empty id is replaced by a generated `task_<unixnano>` id.
    """
    if now is None:
        now = datetime.now(UTC)

    endpoint = _optional_str(raw, "endpoint")
    if not endpoint:
        raise TaskValidationError("Endpoint is required")

    scheduled_at = _optional_str(raw, "scheduled_at")
    if not scheduled_at:
        raise TaskValidationError("scheduled_at is required")

    try:
        target_time = parse_rfc3339(scheduled_at)
    except ValueError:
        raise TaskValidationError(RFC3339_HINT) from None

    if target_time <= now:
        raise TaskValidationError("Scheduled time must be in the future")

    task_id = _optional_str(raw, "id") or new_task_id()

    return Task(
        id=task_id,
        scheduled_at=scheduled_at,
        target_time=target_time,
        endpoint=endpoint,
        payload=raw.get("payload"),
    )


def schedule_task(state: AppState, raw: dict[str, Any], *, now: datetime | None = None) -> Task:
    """
    Register a task and arm its dispatcher.

    Raises TaskValidationError for bad input and DuplicateTaskError when the
    id is already pending. Returns without waiting for delivery.
    """
    task = build_task(raw, now=now)
    state.task_store.insert(task)
    state.dispatcher.start(task)
    logger.info("Task %s scheduled at %s endpoint=%s", task.id, task.scheduled_at, task.endpoint)
    return task


def list_scheduled(state: AppState) -> dict[str, Any]:
    tasks = state.task_store.list_all()
    return {
        "total_tasks": len(tasks),
        "tasks": [t.to_dict() for t in tasks],
    }
