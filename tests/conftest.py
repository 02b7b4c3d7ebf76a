# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import httpx
import pytest

from callback_scheduler.cli.bootstrap import create_initial_state
from callback_scheduler.core.state import AppState
from callback_scheduler.tasks.task_store import TaskStore

from .fakes import RecordingTransport


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with the composition root.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment.
    """
    return SimpleNamespace(
        app_name="callback-scheduler-test",
        log_level="DEBUG",
        log_to_file=False,
        host="127.0.0.1",
        port=0,
        delivery_timeout_seconds=2.0,
        data_dir=tmp_path,
    )


@pytest.fixture()
def store() -> TaskStore:
    return TaskStore()


@pytest.fixture()
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture()
def state(settings: SimpleNamespace, transport: RecordingTransport) -> AppState:
    """
    AppState wired exactly like production, except that outbound callbacks
    go to a recording transport instead of the network.
    """
    return create_initial_state(
        settings=settings,
        http_client=httpx.AsyncClient(transport=transport),
    )
