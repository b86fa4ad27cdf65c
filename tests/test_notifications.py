import asyncio
import json
from types import SimpleNamespace

import httpx

from app.core import config
from app.services import notifications

from conftest import day, make_phases


def fake_plant(*starts, plant_id=7):
    return SimpleNamespace(
        id=plant_id,
        name="Blue Dream",
        phases=[p.model_dump(mode="json") for p in make_phases(*starts, harvest_index=2)],
        events=[],
    )


class FakeWebSocket:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    async def send_json(self, data):
        if self.fail:
            raise RuntimeError("connection closed")
        self.sent.append(data)


def test_build_phase_state(now):
    state = notifications.build_phase_state(fake_plant(day(0), day(3)), now)

    assert state["current_phase_name"] == "B"
    assert state["days_in_phase"] == 7
    assert state["is_overdue"] is True
    assert state["days_until_harvest"] == 8
    assert state["total_progress"] == 66.7


def test_build_phase_state_without_started_phase(now):
    state = notifications.build_phase_state(fake_plant(), now)
    assert state["current_phase_id"] is None
    assert state["days_in_phase"] is None
    assert state["days_until_next_phase"] is None


def test_push_to_websockets_drops_dead_connections():
    alive, dead = FakeWebSocket(), FakeWebSocket(fail=True)
    notifications.plant_connections[7] = [alive, dead]
    try:
        sent = asyncio.run(notifications.push_to_websockets(7, {"type": "phase_state"}))
        assert sent == 1
        assert alive.sent == [{"type": "phase_state"}]
        assert notifications.plant_connections[7] == [alive]
    finally:
        notifications.plant_connections.pop(7, None)


def test_home_assistant_disabled_by_default(monkeypatch):
    monkeypatch.setattr(config, "HOME_ASSISTANT_ENABLED", False)
    assert asyncio.run(notifications.push_to_home_assistant({"plant_id": 1})) == 0


def test_publish_writes_home_assistant_sensors(monkeypatch, now):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.path.endswith("_days_until_harvest"):
            return httpx.Response(500)
        return httpx.Response(201, json={})

    real_client = httpx.AsyncClient

    def mock_client(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(config, "HOME_ASSISTANT_ENABLED", True)
    monkeypatch.setattr(config, "HOME_ASSISTANT_URL", "http://ha.local:8123")
    monkeypatch.setattr(config, "HOME_ASSISTANT_TOKEN", "token")
    monkeypatch.setattr(config, "HA_ENTITY_PREFIX", "grow")
    monkeypatch.setattr(notifications.httpx, "AsyncClient", mock_client)

    state = asyncio.run(notifications.publish_plant_state(fake_plant(day(0)), now))

    assert state["current_phase_name"] == "A"
    paths = [r.url.path for r in requests]
    assert "/api/states/sensor.grow_plant_7_phase" in paths
    assert len(paths) == 4
    assert requests[0].headers["Authorization"] == "Bearer token"
    assert json.loads(requests[0].content)["state"] == "A"


def test_publish_survives_unloadable_phases(now):
    plant = SimpleNamespace(
        id=8,
        name="Broken",
        phases=[{"id": "bad", "name": "", "duration_min": 1, "duration_max": 2}],
        events=[],
    )
    assert asyncio.run(notifications.publish_plant_state(plant, now)) is None
