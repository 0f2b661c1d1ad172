"""HTTP and WebSocket API tests.

The app is built with ``run_loop=False`` so no frame thread runs; tests
advance the session explicitly with ``runner.step``.
"""

import json

import orjson
import pytest
from fastapi.testclient import TestClient

from popcore.best_score import InMemoryBestScoreStore
from popcore.entities import EntityCategory
from popserver.app_factory import AppContext, create_app
from popserver.models import CommandResponse, SessionStateData
from tests.fakes.recording_sink import RecordingSink
from tests.fakes.scenario import place_entity


@pytest.fixture
def context():
    return AppContext(
        run_loop=False,
        seed=7,
        best_score_store=InMemoryBestScoreStore(),
        report_sink=RecordingSink(),
    )


@pytest.fixture
def client(context):
    app = create_app(context=context)
    with TestClient(app) as test_client:
        yield test_client


def _start(client, mode="classic"):
    response = client.post("/api/session/start", json={"mode": mode})
    assert response.status_code == 200
    return CommandResponse.model_validate(response.json())


class TestSessionLifecycleApi:
    def test_health(self, client) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "phase": "idle"}

    def test_idle_snapshot(self, client) -> None:
        state = SessionStateData.model_validate(client.get("/api/session").json())
        assert state.phase == "idle"
        assert state.session_id is None
        assert state.entities == []

    def test_start_survival(self, client) -> None:
        body = _start(client, "survival")
        assert body.success
        assert body.state.phase == "running"
        assert body.state.mode == "survival"
        assert body.state.lives == 3
        assert body.state.actor.x == 180

    def test_start_accepts_camel_case_mode(self, client) -> None:
        body = _start(client, "timeAttack")
        assert body.state.mode == "time_attack"
        assert body.state.time_left == 60

    def test_start_unknown_mode_is_400(self, client) -> None:
        response = client.post("/api/session/start", json={"mode": "zen"})
        assert response.status_code == 400
        assert "Unknown game mode" in response.json()["error"]

    def test_start_twice_is_409(self, client) -> None:
        _start(client)
        response = client.post("/api/session/start", json={"mode": "classic"})
        assert response.status_code == 409
        assert response.json()["state"]["phase"] == "running"

    def test_pause_resume_reset(self, client) -> None:
        assert client.post("/api/session/pause").status_code == 409
        _start(client)
        assert client.post("/api/session/pause").json()["state"]["phase"] == "paused"
        assert client.post("/api/session/toggle_pause").json()["state"]["phase"] == "running"
        assert client.post("/api/session/resume").status_code == 409
        assert client.post("/api/session/reset").json()["state"]["phase"] == "idle"

    def test_status(self, client, context) -> None:
        context.runner.step(0)
        status = client.get("/api/session/status").json()
        assert status["running"] is False
        assert status["frame"] == 1
        assert status["controller"]["phase"] == "idle"


class TestStimulusApi:
    def test_activate_is_applied_on_next_frame(self, client, context) -> None:
        session_id = _start(client).state.session_id
        bonus = place_entity(context.controller, EntityCategory.BONUS, x=10.0, y=300.0)

        response = client.post(
            "/api/session/activate", json={"entity_id": bonus.value, "session_id": session_id}
        )
        assert response.status_code == 200
        assert response.json()["queued"] is True
        assert response.json()["state"]["score"] == 0

        snapshot = context.runner.step(0)
        assert snapshot.score == 50

        context.reporter.flush(timeout=5.0)
        assert [record.score for record in context.reporter.sink.records] == [50]

    def test_stale_session_activation_ignored(self, client, context) -> None:
        _start(client)
        bonus = place_entity(context.controller, EntityCategory.BONUS, x=10.0, y=300.0)
        client.post("/api/session/activate", json={"entity_id": bonus.value, "session_id": "old"})
        assert context.runner.step(0).score == 0

    def test_activate_at(self, client, context) -> None:
        _start(client)
        place_entity(context.controller, EntityCategory.BONUS, x=100.0, y=300.0, size=40.0)
        client.post("/api/session/activate_at", json={"x": 120.0, "y": 320.0})
        assert context.runner.step(0).score == 50

    def test_move(self, client, context) -> None:
        _start(client)
        client.post("/api/session/move", json={"direction": "left"})
        assert context.runner.step(0).actor_x == 150

    @pytest.mark.parametrize(
        "path,body",
        [
            ("/api/session/activate", {"entity_id": -1}),
            ("/api/session/activate", {}),
            ("/api/session/move", {"direction": "up"}),
            ("/api/session/activate_at", {"x": "left"}),
        ],
    )
    def test_invalid_bodies_rejected(self, client, path, body) -> None:
        assert client.post(path, json=body).status_code == 422


def _receive_text(websocket) -> dict:
    """Skip pushed snapshots until the next command response arrives."""
    while True:
        message = websocket.receive()
        if message.get("text") is not None:
            return json.loads(message["text"])


class TestWebSocket:
    def test_initial_snapshot(self, client) -> None:
        with client.websocket_connect("/ws") as websocket:
            payload = orjson.loads(websocket.receive_bytes())
        assert payload["type"] == "update"
        assert payload["phase"] == "idle"

    def test_commands_over_websocket(self, client) -> None:
        with client.websocket_connect("/ws") as websocket:
            websocket.receive_bytes()
            websocket.send_text(json.dumps({"command": "start", "data": {"mode": "survival"}}))
            response = _receive_text(websocket)
        assert response["success"] is True
        assert response["state"]["lives"] == 3

    def test_unknown_command(self, client) -> None:
        with client.websocket_connect("/ws") as websocket:
            websocket.receive_bytes()
            websocket.send_text(json.dumps({"command": "warp"}))
            response = _receive_text(websocket)
        assert response == {"success": False, "error": "Unknown command: warp"}

    @pytest.mark.parametrize("raw", ["not json", json.dumps({"command": "start", "data": [1]})])
    def test_malformed_messages(self, client, raw) -> None:
        with client.websocket_connect("/ws") as websocket:
            websocket.receive_bytes()
            websocket.send_text(raw)
            response = _receive_text(websocket)
        assert response["success"] is False
