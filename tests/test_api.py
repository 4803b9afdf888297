import asyncio
import json

from fastapi.testclient import TestClient

from sos_dispatch import main
from sos_dispatch.config import Settings
from sos_dispatch.main import create_app


class BrokenConsole:
    """A websocket whose connection resets on the first read."""

    def __init__(self):
        self.sent = []

    async def accept(self):
        pass

    async def send_text(self, data):
        self.sent.append(json.loads(data))

    async def receive_text(self):
        raise RuntimeError("connection reset")


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    j = r.json()
    assert j["status"] == "ok"
    assert j["ambulances"] == 5
    assert j["active_incidents"] == 0
    assert j["simulator"] is False


def test_list_seeded_fleet_and_hospitals(client):
    ambulances = client.get("/api/ambulances").json()
    assert [a["id"] for a in ambulances] == ["a1", "a2", "a3", "a4", "a5"]
    assert ambulances[3]["status"] == "offline"
    hospitals = client.get("/api/hospitals").json()
    assert len(hospitals) == 5
    assert client.get("/api/hospitals/h1").json()["name"] == "Sawai Man Singh Hospital"
    assert client.get("/api/hospitals/h9").status_code == 404


def test_sos_dispatches_nearest(client):
    r = client.post("/api/sos", json={"patient_id": "p1", "latitude": 26.9130, "longitude": 75.7880})
    assert r.status_code == 201
    j = r.json()
    assert j["incident"]["status"] == "assigned"
    assert j["incident"]["assigned_ambulance_id"] == "a1"
    assert j["incident"]["eta"] == "1 min"
    assert j["assigned_ambulance"] == {
        "vehicle_number": "RJ-14-AM-1234",
        "driver_name": "Rajesh Kumar",
        "driver_phone": "+91 98111 22334",
    }
    assert len(j["nearest_ambulances"]) == 3
    assert j["nearest_ambulances"][0]["status"] == "assigned"
    assert all(c["status"] == "available" for c in j["nearest_ambulances"][1:])
    assert client.get("/api/ambulances/a1").json()["status"] == "busy"


def test_sos_malformed_input_is_400(client):
    assert client.post("/api/sos", json={"patient_id": "p1"}).status_code == 400
    assert client.post("/api/sos", json={"patient_id": "p1", "latitude": "north", "longitude": 75.8}).status_code == 400
    r = client.post("/api/sos", json={"patient_id": "p1", "latitude": 123, "longitude": 75.8})
    assert r.status_code == 400
    assert "latitude" in r.json()["detail"]
    assert client.get("/api/incidents").json() == []


def test_sos_without_fleet_is_pending():
    app = create_app(Settings(simulator_enabled=False, seed_demo_data=False))
    with TestClient(app) as client:
        r = client.post("/api/sos", json={"patient_id": "p1", "latitude": 26.9, "longitude": 75.8})
    assert r.status_code == 201
    j = r.json()
    assert j["incident"]["status"] == "pending"
    assert j["incident"]["eta"] == "15 min"
    assert j["incident"]["assigned_ambulance_id"] is None
    assert j["assigned_ambulance"] is None
    assert j["nearest_ambulances"] == []


def test_assign_and_resolve_flow(client):
    incident = client.post("/api/sos", json={"patient_id": "p1", "latitude": 26.9130, "longitude": 75.7880}).json()["incident"]

    r = client.post(f"/api/incidents/{incident['id']}/assign", json={"ambulance_id": "a3"})
    assert r.status_code == 200
    j = r.json()
    assert j["incident"]["assigned_ambulance_id"] == "a3"
    assert j["ambulance"]["vehicle_number"] == "RJ-14-AM-9012"
    assert j["eta"] == j["incident"]["eta"]
    assert client.get("/api/ambulances/a1").json()["status"] == "available"
    assert client.get("/api/ambulances/a3").json()["status"] == "busy"

    r = client.post(f"/api/incidents/{incident['id']}/resolve")
    assert r.status_code == 200
    resolved = r.json()
    assert resolved["status"] == "resolved"
    assert resolved["resolved_at"]
    assert resolved["resolved_label"].endswith(("AM", "PM"))
    assert client.get("/api/ambulances/a3").json()["status"] == "available"

    again = client.post(f"/api/incidents/{incident['id']}/resolve").json()
    assert again == resolved


def test_assign_errors(client):
    incident = client.post("/api/sos", json={"patient_id": "p1", "latitude": 26.9, "longitude": 75.8}).json()["incident"]

    r = client.post("/api/incidents/nope/assign", json={"ambulance_id": "a1"})
    assert r.status_code == 404
    assert r.json()["detail"] == "Incident nope not found"
    assert client.post(f"/api/incidents/{incident['id']}/assign", json={"ambulance_id": "zz"}).status_code == 404
    assert client.post(f"/api/incidents/{incident['id']}/assign", json={}).status_code == 400
    assert client.post(f"/api/incidents/{incident['id']}/assign", json={"ambulance_id": "a4"}).status_code == 409


def test_resolve_unknown_is_404(client):
    assert client.post("/api/incidents/nope/resolve").status_code == 404
    assert client.get("/api/incidents/nope").status_code == 404


def test_progress_endpoint(client):
    incident = client.post("/api/sos", json={"patient_id": "p1", "latitude": 26.9, "longitude": 75.8}).json()["incident"]
    url = f"/api/incidents/{incident['id']}/progress"

    assert client.post(url, json={"status": "en_route"}).json()["status"] == "en_route"
    assert client.post(url, json={"status": "arrived"}).json()["status"] == "arrived"
    assert client.post(url, json={"status": "en_route"}).status_code == 409
    assert client.post(url, json={"status": "resolved"}).status_code == 400
    assert client.post(url, json={"status": "flying"}).status_code == 400


def test_incidents_listed_newest_first(client):
    first = client.post("/api/sos", json={"patient_id": "p1", "latitude": 26.9, "longitude": 75.8}).json()
    second = client.post("/api/sos", json={"patient_id": "p2", "latitude": 26.85, "longitude": 75.81}).json()
    ids = [i["id"] for i in client.get("/api/incidents").json()]
    assert ids == [second["incident"]["id"], first["incident"]["id"]]


def test_register_ambulance(client):
    payload = {
        "vehicle_number": "RJ-14-AM-4242",
        "driver_name": "Kiran Meena",
        "driver_phone": "+91 98666 77889",
        "latitude": 26.90,
        "longitude": 75.80,
    }
    r = client.post("/api/ambulances", json=payload)
    assert r.status_code == 201
    assert r.json()["status"] == "available"
    assert client.post("/api/ambulances", json=payload).status_code == 409


def test_ambulance_shift_change(client):
    r = client.post("/api/ambulances/a2/status", json={"status": "offline"})
    assert r.status_code == 200
    assert r.json()["status"] == "offline"
    assert client.post("/api/ambulances/a2/status", json={"status": "busy"}).status_code == 400
    assert client.post("/api/ambulances/zz/status", json={"status": "offline"}).status_code == 404


def test_websocket_feed(client):
    with client.websocket_connect("/ws") as ws:
        snap = ws.receive_json()
        assert snap["type"] == "snapshot"
        assert len(snap["ambulances"]) == 5
        assert snap["incidents"] == []

        ws.send_text("ping")
        assert ws.receive_json() == {"type": "pong"}

        client.post("/api/sos", json={"patient_id": "p1", "latitude": 26.9, "longitude": 75.8})
        event = ws.receive_json()
        assert event["type"] == "incident:update"
        assert event["incident"]["status"] == "assigned"
        fleet_event = ws.receive_json()
        assert fleet_event["type"] == "ambulance:update"
        assert any(a["status"] == "busy" for a in fleet_event["ambulances"])


def test_console_dropped_when_feed_errors(app):
    endpoint = next(r.endpoint for r in app.routes if getattr(r, "path", None) == "/ws")
    console = BrokenConsole()

    asyncio.run(endpoint(console))

    assert console.sent[0]["type"] == "snapshot"
    assert app.state.manager.active == []


def test_main_module_builds_no_app_on_import():
    assert not hasattr(main, "app")
    assert callable(main.create_app)
