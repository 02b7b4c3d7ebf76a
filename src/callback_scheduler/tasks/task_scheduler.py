# src/callback_scheduler/tasks/task_scheduler.py

from __future__ import annotations

"""
Task dispatcher.

One asyncio task per registered Task that:
- sleeps until the task's target time,
- POSTs the payload to the task's endpoint (one attempt, bounded by a timeout),
- removes the task from the store, whatever the delivery outcome.

The dispatcher reaches the store only through its public operations.
"""

import asyncio
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

import httpx

from ..config import DEFAULT_DELIVERY_TIMEOUT_SECONDS
from ..core.ports import TaskRepo
from .task_models import DispatchState, Task

logger = logging.getLogger(__name__)

JSON_HEADERS = {"Content-Type": "application/json"}


def _utcnow() -> datetime:
    return datetime.now(UTC)


def encode_payload(payload: object) -> bytes:
    """Compact UTF-8 JSON. NaN and Infinity raise ValueError instead of leaking into the body."""
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, allow_nan=False).encode("utf-8")


@dataclass(slots=True)
class _Dispatch:
    task: Task
    handle: asyncio.Task[None] | None = None
    state: DispatchState = DispatchState.PENDING


class TaskDispatcher:
    """
    Owns the per-task timers.

    Each started task gets its own asyncio.Task; the handle doubles as the
    cancellation token used on shutdown. There is no ordering between tasks,
    not even between tasks that share a target time.
    """

    def __init__(
            self,
            task_store: TaskRepo,
            client: httpx.AsyncClient,
            *,
            timeout_seconds: float = DEFAULT_DELIVERY_TIMEOUT_SECONDS,
            now: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = task_store
        self._client = client
        self._timeout_s = float(timeout_seconds)
        self._now = now or _utcnow
        self._active: dict[str, _Dispatch] = {}

    @property
    def pending_count(self) -> int:
        return sum(1 for d in self._active.values() if d.state == DispatchState.PENDING)

    def state_of(self, task_id: str) -> DispatchState | None:
        entry = self._active.get(task_id)
        return entry.state if entry is not None else None

    def start(self, task: Task) -> asyncio.Task[None]:
        """
        Arm the timer for a task that is already in the store.

        Must be called from the event loop thread. Returns immediately.
        """
        entry = _Dispatch(task=task)
        handle = asyncio.get_running_loop().create_task(
            self._run(entry), name=f"dispatch:{task.id}"
        )
        entry.handle = handle
        self._active[task.id] = entry

        def _forget(_h: asyncio.Task[None]) -> None:
            # A new task may reuse the id once this one left the store.
            if self._active.get(task.id) is entry:
                del self._active[task.id]

        handle.add_done_callback(_forget)
        return handle

    async def _run(self, entry: _Dispatch) -> None:
        task = entry.task

        # Negative when the target passed between validation and now: fire at once.
        delay_s = max(0.0, (task.target_time - self._now()).total_seconds())
        logger.debug("Task %s armed, fires in %.3fs", task.id, delay_s)
        await asyncio.sleep(delay_s)

        entry.state = DispatchState.FIRING
        try:
            await self.fire(task)
        except Exception:
            logger.exception("Unexpected dispatch failure task_id=%s", task.id)
        finally:
            removed = self._store.remove_task(task.bucket_key, task.id)
            entry.state = DispatchState.REMOVED
            if removed is not None:
                logger.info("Task %s removed from queue after execution", task.id)

    async def fire(self, task: Task) -> int | None:
        """
        Deliver one callback.

        Returns the response status code, or None when nothing was delivered
        (payload could not be encoded, connection error, timeout, bad URL).
        """
        try:
            body = encode_payload(task.payload)
        except (TypeError, ValueError):
            logger.exception("Error marshalling payload task_id=%s", task.id)
            return None

        try:
            # Covers connect + response read together, like a whole-request client timeout.
            async with asyncio.timeout(self._timeout_s):
                resp = await self._client.post(
                    task.endpoint,
                    content=body,
                    headers=JSON_HEADERS,
                    timeout=self._timeout_s,
                )
        except TimeoutError:
            logger.warning(
                "Scheduled task %s timed out after %.1fs endpoint=%s",
                task.id,
                self._timeout_s,
                task.endpoint,
            )
            return None
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning("Error executing scheduled task %s endpoint=%s: %r", task.id, task.endpoint, e)
            return None

        if resp.is_success:
            logger.info("Task executed for endpoint %s with status code %d", task.endpoint, resp.status_code)
        else:
            logger.warning(
                "Task %s endpoint %s answered with status code %d",
                task.id,
                task.endpoint,
                resp.status_code,
            )
        return resp.status_code

    async def shutdown(self) -> int:
        """
        Cancel every dispatcher that has not finished.

        Pending callbacks are abandoned, not delivered. Returns how many were cancelled.
        """
        handles = [d.handle for d in self._active.values() if d.handle is not None and not d.handle.done()]
        for h in handles:
            h.cancel()
        if handles:
            await asyncio.gather(*handles, return_exceptions=True)
            logger.info("Dispatcher shutdown: %d pending task(s) abandoned", len(handles))
        return len(handles)
