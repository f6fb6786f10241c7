import pytest
from fastapi.testclient import TestClient

import main


@pytest.fixture
def client():
    return TestClient(main.app)


def test_root_lists_exercises_and_layouts(client):
    body = client.get("/").json()
    assert "bicep_curl" in body["exercises"]
    assert set(body["keypoint_layouts"]) == {"movenet", "mediapipe"}


def test_exercise_catalogue(client):
    entries = client.get("/exercises").json()["exercises"]
    assert len(entries) == 28
    assert {"id", "name", "family", "aliases", "engine"} <= set(entries[0])


def test_stateless_analyze_threads_state(client, frames):
    state = None
    for i, angle in enumerate([170, 40, 170]):
        response = client.post(
            "/analyze",
            json={"exercise": "Bicep Curls", "keypoints": frames.arm(angle).to_list(), "state": state, "timestamp": i},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        assert body["dispatch"] == {"exercise": "bicep_curl", "match": "alias", "requested": "Bicep Curls"}
        state = body["state"]
    assert state["rep_count"] == 1
    assert state["phase"] == "extended"


def test_analyze_unknown_exercise_falls_back(client):
    body = client.post("/analyze", json={"exercise": "zorblax", "family": "isometric-hold", "keypoints": []}).json()
    assert body["dispatch"]["exercise"] == "plank"
    assert body["dispatch"]["match"] == "fallback"
    assert body["state"]["form_feedback"]


def test_analyze_unknown_layout_is_reported(client):
    body = client.post("/analyze", json={"exercise": "squat", "layout": "openpose", "keypoints": []}).json()
    assert body["status"] == "error"
    assert "movenet" in body["message"]


def test_reset_is_idempotent(client):
    worn = {"phase": "contracted", "rep_count": 9, "exercise": "squat"}
    first = client.post("/reset", json={"state": worn}).json()["state"]
    assert first["rep_count"] == 0
    assert first["exercise"] == "squat"
    second = client.post("/reset", json={"state": first}).json()["state"]
    assert second == first


def test_websocket_session(client, frames):
    with client.websocket_connect("/ws?exercise=bicep_curl") as ws:
        for i, angle in enumerate([170, 40, 170]):
            ws.send_json({"keypoints": frames.arm(angle).to_list(), "ts": float(i)})
            payload = ws.receive_json()
            assert payload["client_ts"] == float(i)
        assert payload["rep_count"] == 1

        ws.send_text("not json")
        ws.send_json({"command": "add_rep", "count": 2})
        assert ws.receive_json()["state"]["rep_count"] == 3

        ws.send_json({"command": "summary"})
        summary = ws.receive_json()["summary"]
        assert summary["reps"] == 3

        ws.send_json({"command": "select_exercise", "exercise": "plank"})
        selected = ws.receive_json()
        assert selected["dispatch"]["exercise"] == "plank"
        assert selected["state"]["rep_count"] == 0

        ws.send_json({"command": "reset"})
        assert ws.receive_json()["event"] == "reset"

        ws.send_json({"command": "dance"})
        assert ws.receive_json()["event"] == "error"


def test_websocket_ignores_non_numeric_timestamp(client, frames):
    with client.websocket_connect("/ws?exercise=plank") as ws:
        ws.send_json({"keypoints": frames.plank().to_list(), "ts": "abc"})
        assert "event" not in ws.receive_json()
        for i in range(6):
            ws.send_json({"keypoints": frames.plank().to_list(), "ts": i * 0.1})
            payload = ws.receive_json()
            assert "event" not in payload
        assert payload["phase"] == "holding"
        assert payload["hold_time_seconds"] == pytest.approx(0.5)


def test_run_serves_app_with_uvicorn(monkeypatch):
    calls = []
    monkeypatch.setattr(main.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    monkeypatch.setenv("REPCOACH_HOST", "127.0.0.1")
    monkeypatch.setenv("REPCOACH_PORT", "9100")
    main.run()
    assert calls == [(main.app, {"host": "127.0.0.1", "port": 9100})]
