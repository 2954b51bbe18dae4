"""REST and WebSocket endpoints, including the background frame loop."""
from fastapi.testclient import TestClient

from nbody.api import app


def test_health():
    client = TestClient(app)
    assert client.get("/health").json() == {"status": "ok"}


def test_get_config_returns_config_and_types():
    client = TestClient(app)
    response = client.get("/config")
    assert response.status_code == 200
    data = response.json()
    assert "config" in data
    assert "types" in data
    assert data["types"][0]["mass"] > 0


def test_get_state_lists_particles_and_stats():
    client = TestClient(app)
    data = client.get("/state").json()
    assert "particles" in data
    assert set(data["stats"]) == {"n", "velocity", "temperature"}


def test_post_pointer_clamps_radius():
    client = TestClient(app)
    response = client.post("/pointer", json={"x": 100, "y": 120, "radius": 500, "action": "push"})
    assert response.status_code == 200
    pointer = response.json()
    assert pointer["radius"] == 200.0
    assert pointer["action"] == "push"
    assert (pointer["x"], pointer["y"]) == (100.0, 120.0)


def test_post_pointer_rejects_bad_sign_and_action():
    client = TestClient(app)
    assert client.post("/pointer", json={"sign": 2}).status_code == 422
    assert client.post("/pointer", json={"action": "explode"}).status_code == 422


def test_presets_listing_and_apply():
    client = TestClient(app)
    names = [p["name"] for p in client.get("/presets").json()]
    assert "gas" in names

    response = client.post("/presets/binary")
    assert response.status_code == 200
    assert response.json()["types"] == ["anion", "cation"]

    assert client.post("/presets/plasma").status_code == 404
    client.post("/presets/liquid")


def test_post_config_rebuilds_simulation():
    client = TestClient(app)
    initial = client.get("/config").json()["config"]

    response = client.post("/config", json={"n_particles": 7, "integrator": "euler"})
    assert response.status_code == 200
    payload = response.json()
    assert payload["config"]["particle_count"] == 7
    assert payload["config"]["integrator"] == "euler"

    assert client.post("/config", json={"integrator": "leapfrog"}).status_code == 400
    assert client.post("/config", json={"preset": "plasma"}).status_code == 400
    assert client.post("/config", json={"n_particles": 5000}).status_code == 422

    client.post(
        "/config",
        json={"n_particles": initial["particle_count"], "integrator": initial["integrator"]},
    )


def test_websocket_streams_state_and_accepts_pointer():
    client = TestClient(app)
    with client.websocket_connect("/ws") as websocket:
        message = websocket.receive_json()
        assert message["type"] == "state"
        assert "particles" in message["payload"]

        websocket.send_json({"type": "pointer", "x": 50, "y": 60, "sign": 1, "action": "spray"})
        message = websocket.receive_json()
        assert message["type"] == "state"
        assert message["payload"]["pointer"]["action"] == "spray"
        assert message["payload"]["pointer"]["sign"] == 1

        websocket.send_json({"type": "pointer", "sign": 0})
        message = websocket.receive_json()
        assert message["payload"]["pointer"]["sign"] == 0


def test_websocket_reports_errors():
    client = TestClient(app)
    with client.websocket_connect("/ws") as websocket:
        websocket.receive_json()
        websocket.send_json({"type": "teleport"})
        message = websocket.receive_json()
        assert message["type"] == "error"

        websocket.send_json({"type": "pointer", "sign": 5})
        message = websocket.receive_json()
        assert message["type"] == "error"


def test_post_pointer_selects_spawn_type():
    client = TestClient(app)
    client.post("/presets/binary")
    try:
        response = client.post("/pointer", json={"spawn_type": "cation"})
        assert response.status_code == 200
        assert response.json()["spawn_type"] == "cation"

        response = client.post("/pointer", json={"spawn_type": 0})
        assert response.json()["spawn_type"] == "anion"

        response = client.post("/pointer", json={"spawn_type": "neutron", "sign": 1})
        assert response.status_code == 400
        assert client.get("/state").json()["pointer"]["sign"] == 0
    finally:
        client.post("/presets/liquid")


def _next_state(websocket):
    while True:
        message = websocket.receive_json()
        if message["type"] == "state":
            return message["payload"]


def test_background_loop_steps_and_applies_pointer():
    # Entering the client runs the lifespan, which starts the frame loop
    with TestClient(app) as client:
        initial = client.get("/config").json()["config"]
        client.post("/config", json={"n_particles": 5})
        try:
            with client.websocket_connect("/ws") as websocket:
                times = [_next_state(websocket)["t"] for _ in range(4)]
                assert times == sorted(times)
                assert times[-1] > times[0]

                websocket.send_json(
                    {"type": "pointer", "x": 640, "y": 360, "sign": 1, "action": "spray"}
                )
                counts = [len(_next_state(websocket)["particles"]) for _ in range(10)]
                assert counts[-1] > 5

                websocket.send_json({"type": "pointer", "sign": 0})
        finally:
            client.post(
                "/config",
                json={"n_particles": initial["particle_count"], "integrator": initial["integrator"]},
            )
