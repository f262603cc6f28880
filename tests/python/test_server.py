import asyncio
import json

import pytest
from fastapi.testclient import TestClient

from lifesim.app.server import FrameBuffer, SimulationController, create_app
from lifesim.config import SimulationConfig


@pytest.fixture
def client():
    # Not entered as a context manager, so the background tick loop never starts.
    return TestClient(create_app(SimulationConfig(seed=4, initial_agents=20)))


def test_snapshot_queue_ack_cleanup() -> None:
    controller = SimulationController(SimulationConfig(seed=1, initial_agents=10))

    async def exercise() -> None:
        await controller.step_once()
        await controller.step_once()
        assert controller.frames.ticks() == [1, 2]
        controller.handle_message(json.dumps({"type": "ack", "tick": 1}))
        assert controller.frames.ticks() == [2]

    asyncio.run(exercise())


def test_frames_stay_bounded_without_clients() -> None:
    controller = SimulationController(SimulationConfig(seed=1, initial_agents=10, history_capacity=50))

    async def exercise() -> None:
        for _ in range(500):
            await controller.step_once()

    asyncio.run(exercise())

    assert len(controller.frames) == 50
    assert controller.frames.ticks()[0] == 451
    assert controller.frames.ticks()[-1] == 500


def test_malformed_and_foreign_messages_are_ignored() -> None:
    controller = SimulationController(SimulationConfig(seed=1, initial_agents=5))
    asyncio.run(controller.step_once())

    controller.handle_message("not json")
    controller.handle_message(json.dumps([1, 2]))
    controller.handle_message(json.dumps({"type": "ack", "tick": "1"}))
    controller.handle_message(json.dumps({"type": "hello", "tick": 1}))

    assert controller.frames.ticks() == [1]


def test_frame_buffer_replays_only_newer_frames() -> None:
    frames = FrameBuffer(capacity=3)
    for tick in range(1, 5):
        frames.push(tick, f"frame-{tick}")

    assert frames.ticks() == [2, 3, 4]
    assert [text for _, text in frames.after(2)] == ["frame-3", "frame-4"]
    assert frames.acknowledge(3) == 2
    assert frames.ticks() == [4]

    with pytest.raises(ValueError):
        FrameBuffer(capacity=0)


def test_reset_clears_pending_snapshots() -> None:
    controller = SimulationController(SimulationConfig(seed=1, initial_agents=10))

    async def exercise() -> None:
        await controller.step_once()
        await controller.reset()
        assert controller.frames.ticks() == [0]

    asyncio.run(exercise())


def test_params_roundtrip_over_http(client):
    response = client.get("/api/params")
    assert response.status_code == 200
    assert response.json()["time_scale"] == 0.7

    response = client.post("/api/params", json={"time_scale": 10, "herbivore_cap": 50})
    assert response.status_code == 200
    assert response.json()["time_scale"] == 2.0
    assert response.json()["herbivore_cap"] == 50


def test_unknown_param_is_a_bad_request(client):
    response = client.post("/api/params", json={"gravity": 1})
    assert response.status_code == 400
    assert "gravity" in response.json()["detail"]


def test_status_step_and_history_endpoints(client):
    status = client.get("/api/status").json()
    assert status["tick"] == 0
    assert sum(status["population"].values()) == 20
    assert status["running"] is False

    stepped = client.post("/api/control/step").json()
    assert stepped["tick"] == 1
    assert stepped["metrics"]["tick"] == 1

    history = client.get("/api/history").json()
    assert history["tick"] == [0, 1]
    assert set(history) == {"tick", "herbivores", "carnivores", "neutrals"}


def test_speed_is_clamped_and_validated(client):
    assert client.post("/api/control/speed", json={"ticks_per_second": 1000}).json() == {"ticks_per_second": 240.0}
    assert client.post("/api/control/speed", json={"ticks_per_second": "fast"}).status_code == 400


def test_websocket_replays_pending_frames(client):
    client.post("/api/control/step")

    with client.websocket_connect("/ws") as websocket:
        frame = websocket.receive_json()

    assert frame["type"] == "frame"
    assert frame["tick"] == 1
    assert frame["population"]["tick"] == 1
    assert len(frame["agents"]) == sum(
        frame["population"][name] for name in ("herbivores", "carnivores", "neutrals")
    )
