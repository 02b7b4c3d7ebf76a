# src/callback_scheduler/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures the local (gitignored) data directory exists,
- wires the task store, the outbound HTTP client and the dispatcher into AppState.
"""

from __future__ import annotations

import logging

import httpx

from ..config import get_settings
from ..core.state import AppState
from ..tasks.task_scheduler import TaskDispatcher
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    if getattr(settings, "log_to_file", False):
        settings.data_dir.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, http_client: httpx.AsyncClient | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings and the HTTP client injectable makes the app easy to test
    (tests pass a client backed by httpx.MockTransport).
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    timeout_s = float(settings.delivery_timeout_seconds)
    if http_client is None:
        http_client = httpx.AsyncClient(timeout=timeout_s)

    task_store = TaskStore()
    dispatcher = TaskDispatcher(task_store, http_client, timeout_seconds=timeout_s)

    logger.debug("AppState created (delivery timeout %.1fs)", timeout_s)
    return AppState(
        settings=settings,
        task_store=task_store,
        dispatcher=dispatcher,
        http_client=http_client,
    )
