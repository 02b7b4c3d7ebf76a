# src/callback_scheduler/connectors/http_connector.py

"""
HTTP connector.

Thin transport glue around the task API:
- POST /schedule       register a task (202), 400 on bad input, 409 on duplicate id
- GET  /schedule-view  list pending tasks

Wrong methods on either path are answered with 405 by the router.
"""

from __future__ import annotations

import json
import logging

from aiohttp import web

from ..core.state import AppState
from ..tasks.task_api import TaskValidationError, list_scheduled, schedule_task
from ..tasks.task_models import format_rfc3339
from ..tasks.task_store import DuplicateTaskError

logger = logging.getLogger(__name__)

STATE_KEY = web.AppKey("state", AppState)


def _reject_constant(name: str) -> object:
    # NaN and Infinity are not JSON; json.loads accepts them by default.
    raise ValueError(f"non-JSON constant {name}")


async def handle_schedule(request: web.Request) -> web.Response:
    state = request.app[STATE_KEY]

    try:
        raw = json.loads(await request.read(), parse_constant=_reject_constant)
    except ValueError:
        return web.Response(status=400, text="Invalid request format")
    if not isinstance(raw, dict):
        return web.Response(status=400, text="Invalid request format")

    try:
        task = schedule_task(state, raw)
    except DuplicateTaskError as e:
        logger.info("Rejected duplicate task id: %s", e)
        return web.Response(status=409, text=str(e))
    except TaskValidationError as e:
        logger.debug("Rejected schedule request: %s", e)
        return web.Response(status=400, text=str(e))

    return web.json_response(
        {
            "status": "scheduled",
            "id": task.id,
            "message": f"Task scheduled to run at {format_rfc3339(task.target_time)}",
        },
        status=202,
    )


async def handle_schedule_view(request: web.Request) -> web.Response:
    state = request.app[STATE_KEY]

    try:
        body = json.dumps(list_scheduled(state), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError):
        logger.exception("Failed to encode scheduled tasks")
        return web.Response(status=500, text="Error retrieving scheduled tasks")

    return web.Response(status=200, text=body, content_type="application/json")


async def _on_cleanup(app: web.Application) -> None:
    state = app[STATE_KEY]
    try:
        await state.dispatcher.shutdown()
    finally:
        await state.http_client.aclose()


def create_app(state: AppState) -> web.Application:
    app = web.Application()
    app[STATE_KEY] = state
    app.router.add_post("/schedule", handle_schedule)
    app.router.add_get("/schedule-view", handle_schedule_view, allow_head=False)
    app.on_cleanup.append(_on_cleanup)
    return app
