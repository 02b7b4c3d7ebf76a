# src/callback_scheduler/core/state.py

from __future__ import annotations

from dataclasses import dataclass

import httpx

from ..tasks.task_scheduler import TaskDispatcher
from ..tasks.task_store import TaskStore


@dataclass
class AppState:
    """
    The single top-level context object.

    Built once by the composition root and passed by reference to the HTTP
    handlers; the dispatcher received the same store at construction. Lives
    as long as the process (the store is never torn down).
    """

    # Store Settings on the state for easy access in handlers.
    settings: object

    task_store: TaskStore
    dispatcher: TaskDispatcher
    http_client: httpx.AsyncClient
