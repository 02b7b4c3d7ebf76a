# tests/test_http_connector.py

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator

import pytest
from aiohttp.test_utils import TestClient, TestServer

from callback_scheduler.connectors.http_connector import create_app
from callback_scheduler.core.state import AppState

from .fakes import RecordingTransport, rfc3339_in


@contextlib.asynccontextmanager
async def _serve(state: AppState) -> AsyncIterator[TestClient]:
    async with TestClient(TestServer(create_app(state))) as client:
        yield client


async def _view(client: TestClient) -> dict:
    resp = await client.get("/schedule-view")
    assert resp.status == 200
    assert resp.content_type == "application/json"
    return await resp.json()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("body", "message"),
    [
        ({"scheduled_at": "IN_1H", "endpoint": ""}, "Endpoint is required"),
        ({"scheduled_at": "", "endpoint": "http://callback.test/hook"}, "scheduled_at is required"),
        ({"scheduled_at": "IN_PAST", "endpoint": "http://callback.test/hook"}, "must be in the future"),
        ({"scheduled_at": "2030-01-01 10:00", "endpoint": "http://callback.test/hook"}, "RFC3339"),
    ],
)
async def test_schedule_rejects_invalid_requests(state: AppState, body: dict, message: str) -> None:
    body = dict(body)
    if body["scheduled_at"] == "IN_1H":
        body["scheduled_at"] = rfc3339_in(3600)
    elif body["scheduled_at"] == "IN_PAST":
        body["scheduled_at"] = rfc3339_in(-60)

    async with _serve(state) as client:
        resp = await client.post("/schedule", json=body)

        assert resp.status == 400
        assert message in await resp.text()
        assert (await _view(client))["total_tasks"] == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "raw",
    [
        "{not json",
        "[1, 2]",
        '"just a string"',
        "",
        '{"scheduled_at": "2099-01-01T00:00:00Z", "endpoint": "http://callback.test/hook", "payload": NaN}',
        '{"scheduled_at": "2099-01-01T00:00:00Z", "endpoint": "http://callback.test/hook", "payload": [Infinity]}',
        '{"scheduled_at": "2099-01-01T00:00:00Z", "endpoint": "http://callback.test/hook", "payload": {"x": -Infinity}}',
    ],
)
async def test_schedule_rejects_malformed_body(state: AppState, raw: str) -> None:
    async with _serve(state) as client:
        resp = await client.post("/schedule", data=raw, headers={"Content-Type": "application/json"})

        assert resp.status == 400
        assert await resp.text() == "Invalid request format"
        assert (await _view(client))["total_tasks"] == 0


@pytest.mark.asyncio
async def test_wrong_methods_are_405(state: AppState) -> None:
    async with _serve(state) as client:
        assert (await client.get("/schedule")).status == 405
        assert (await client.put("/schedule", json={})).status == 405
        assert (await client.post("/schedule-view")).status == 405
        assert (await client.delete("/schedule-view")).status == 405


@pytest.mark.asyncio
async def test_accepted_task_is_visible_until_it_fires(state: AppState, transport: RecordingTransport) -> None:
    async with _serve(state) as client:
        resp = await client.post(
            "/schedule",
            json={
                "scheduled_at": rfc3339_in(0.5),
                "endpoint": "http://callback.test/hook",
                "payload": {"key": "value"},
            },
        )
        assert resp.status == 202
        ack = await resp.json()
        assert ack["status"] == "scheduled"
        assert ack["id"].startswith("task_")
        assert ack["message"].startswith("Task scheduled to run at ")

        view = await _view(client)
        assert view["total_tasks"] == 1
        assert [t["id"] for t in view["tasks"]] == [ack["id"]]
        assert view["tasks"][0]["payload"] == {"key": "value"}

        for _ in range(60):
            await asyncio.sleep(0.05)
            if not transport.calls:
                continue
            view = await _view(client)
            if view["total_tasks"] == 0:
                break

        assert view == {"total_tasks": 0, "tasks": []}
        assert len(transport.calls) == 1
        assert transport.calls[0].content_type == "application/json"
        assert transport.calls[0].body == b'{"key":"value"}'


@pytest.mark.asyncio
async def test_explicit_id_is_echoed_and_duplicates_conflict(state: AppState) -> None:
    body = {
        "scheduled_at": rfc3339_in(3600),
        "endpoint": "http://callback.test/hook",
        "payload": None,
        "id": "order-42",
    }

    async with _serve(state) as client:
        first = await client.post("/schedule", json=body)
        assert first.status == 202
        assert (await first.json())["id"] == "order-42"

        second = await client.post("/schedule", json=body)
        assert second.status == 409
        assert "order-42" in await second.text()

        view = await _view(client)
        assert view["total_tasks"] == 1
        assert view["tasks"][0] == {
            "scheduled_at": body["scheduled_at"],
            "endpoint": "http://callback.test/hook",
            "payload": None,
            "id": "order-42",
        }


@pytest.mark.asyncio
async def test_concurrent_registrations_are_all_kept(state: AppState) -> None:
    n = 25

    async with _serve(state) as client:

        async def register(i: int) -> str:
            resp = await client.post(
                "/schedule",
                json={
                    "scheduled_at": rfc3339_in(3600 + i),
                    "endpoint": f"http://callback.test/hook/{i}",
                    "payload": {"i": i},
                },
            )
            assert resp.status == 202
            return (await resp.json())["id"]

        ids = await asyncio.gather(*(register(i) for i in range(n)))

        view = await _view(client)
        assert len(set(ids)) == n
        assert view["total_tasks"] == n
        assert {t["id"] for t in view["tasks"]} == set(ids)


@pytest.mark.asyncio
async def test_cleanup_abandons_pending_callbacks(state: AppState, transport: RecordingTransport) -> None:
    async with _serve(state) as client:
        resp = await client.post(
            "/schedule",
            json={"scheduled_at": rfc3339_in(3600), "endpoint": "http://callback.test/hook"},
        )
        assert resp.status == 202
        assert state.dispatcher.pending_count == 1

    await asyncio.sleep(0)
    assert state.dispatcher.pending_count == 0
    assert transport.calls == []
    assert state.http_client.is_closed


@pytest.mark.asyncio
async def test_far_future_with_negative_offset_is_accepted(state: AppState) -> None:
    body = {
        "scheduled_at": "9999-12-31T23:00:00-05:00",
        "endpoint": "http://callback.test/hook",
        "id": "end-of-time",
    }

    async with _serve(state) as client:
        resp = await client.post("/schedule", json=body)
        assert resp.status == 202
        assert (await resp.json())["message"] == "Task scheduled to run at 9999-12-31T23:00:00-05:00"

        view = await _view(client)
        assert view["total_tasks"] == 1
        assert view["tasks"][0]["scheduled_at"] == "9999-12-31T23:00:00-05:00"
        assert state.dispatcher.pending_count == 1
