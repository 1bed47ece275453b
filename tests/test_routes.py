"""HTTP / WebSocket surface tests with fake feed clients."""

import asyncio
import logging
import threading

import pytest
from fastapi.testclient import TestClient

from meteorwatch import iss, nasa
from meteorwatch.errors import FetchFailure
from meteorwatch.main import app
from meteorwatch.models import Phase, PositionSnapshot
from meteorwatch.poller import PositionPoller
from meteorwatch.routes import meteors
from meteorwatch.routes import websocket as ws_routes


class FakeNasa:
    def __init__(self, catalog):
        self.catalog = catalog
        self.calls = 0

    async def fetch_catalog(self):
        self.calls += 1
        return self.catalog


class FakeIss:
    def __init__(self, result):
        self.result = result

    async def fetch_position(self):
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


@pytest.fixture
def fake_nasa(monkeypatch, example_catalog):
    fake = FakeNasa(example_catalog)
    monkeypatch.setattr(nasa, "get_client", lambda: fake)
    meteors.reset_feed()
    yield fake
    meteors.reset_feed()


@pytest.fixture
def client():
    return TestClient(app)


def test_health(client):
    resp = client.get("/api/health")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_get_meteors_fetches_once(client, fake_nasa):
    first = client.get("/api/meteors").json()
    second = client.get("/api/meteors").json()

    assert first["status"] == "ready"
    assert first["loading"] is False
    assert [item["name"] for item in first["items"]] == ["B", "A"]
    assert first["cards"][1]["visuals"]["background"] == "meteor_bg2.png"
    assert second == first
    assert fake_nasa.calls == 1


def test_refresh_meteors(client, fake_nasa):
    client.get("/api/meteors")
    fake_nasa.catalog = {}

    body = client.post("/api/meteors/refresh").json()

    assert body["status"] == "empty"
    assert body["items"] == []
    assert fake_nasa.calls == 2


def test_get_iss(client, monkeypatch):
    snapshot = PositionSnapshot(latitude=1.5, longitude=2.5, altitude=420.0, velocity=27600.0)
    monkeypatch.setattr(iss, "get_client", lambda: FakeIss(snapshot))

    body = client.get("/api/iss").json()

    assert body["latitude"] == 1.5
    assert body["velocity"] == 27600.0


def test_get_iss_failure_is_bad_gateway(client, monkeypatch):
    monkeypatch.setattr(iss, "get_client", lambda: FakeIss(FetchFailure("wheretheiss", "HTTP 500")))

    resp = client.get("/api/iss")

    assert resp.status_code == 502
    assert resp.json() == {"error": "HTTP 500", "source": "wheretheiss"}


def test_meteor_screen_navigation(client, fake_nasa):
    with client.websocket_connect("/ws/meteors") as ws:
        loading = ws.receive_json()
        ready = ws.receive_json()
        initial = ws.receive_json()

        assert loading["type"] == "feed" and loading["data"]["loading"] is True
        assert ready["data"]["status"] == "ready"
        assert initial["type"] == "carousel"
        assert initial["data"]["index"] == 0
        assert initial["data"]["can_prev"] is False
        assert initial["data"]["can_next"] is True

        ws.send_json({"type": "next"})
        started = ws.receive_json()
        assert started["data"]["phase"] == "animating"
        assert started["data"]["pending_index"] == 1
        assert started["data"]["incoming"]["title"] == "A"

        settled = None
        for _ in range(100):
            frame = ws.receive_json()
            assert frame["type"] == "carousel"
            if frame["data"]["phase"] == "idle":
                settled = frame["data"]
                break

        assert settled is not None
        assert settled["index"] == 1
        assert settled["pending_index"] is None
        assert settled["can_next"] is False

        ws.send_json({"type": "ping"})
        assert ws.receive_json() == {"type": "pong", "data": None}


def test_meteor_screen_unknown_message(client, fake_nasa):
    with client.websocket_connect("/ws/meteors") as ws:
        for _ in range(3):
            ws.receive_json()

        ws.send_json({"type": "dance"})

        assert ws.receive_json()["type"] == "error"


def test_meteor_screen_refresh_reports_loading_first(client, fake_nasa):
    with client.websocket_connect("/ws/meteors") as ws:
        for _ in range(3):
            ws.receive_json()

        ws.send_json({"type": "refresh"})
        notice = ws.receive_json()
        ready = ws.receive_json()
        reloaded = ws.receive_json()

    assert notice["type"] == "feed"
    assert notice["data"]["loading"] is True
    assert notice["data"]["status"] == "loading"
    assert ready["data"]["loading"] is False
    assert ready["data"]["status"] == "ready"
    assert reloaded["type"] == "carousel"
    assert fake_nasa.calls == 2


def test_meteor_screen_cancels_slide_on_disconnect(client, fake_nasa, monkeypatch):
    started = threading.Event()
    interrupted = []
    real_transition = ws_routes.run_transition

    async def slow_transition(controller, on_frame, **kwargs):
        started.set()
        try:
            await real_transition(controller, on_frame, **kwargs)
        except asyncio.CancelledError:
            interrupted.append(controller.state())
            raise

    monkeypatch.setattr(ws_routes, "FRAME_MS", 60_000.0)
    monkeypatch.setattr(ws_routes, "run_transition", slow_transition)

    with client.websocket_connect("/ws/meteors") as ws:
        for _ in range(3):
            ws.receive_json()
        ws.send_json({"type": "next"})
        assert ws.receive_json()["data"]["phase"] == "animating"
        assert started.wait(timeout=5)

    assert len(interrupted) == 1
    assert interrupted[0].phase is Phase.ANIMATING
    assert interrupted[0].index == 0


def test_meteor_screen_survives_failed_frame_send(client, fake_nasa, monkeypatch, caplog):
    finished = threading.Event()

    async def unsendable_frames(controller, on_frame, **kwargs):
        await on_frame(None)
        controller.complete()
        finished.set()

    monkeypatch.setattr(ws_routes, "run_transition", unsendable_frames)

    with caplog.at_level(logging.WARNING, logger="meteorwatch.routes.websocket"):
        with client.websocket_connect("/ws/meteors") as ws:
            for _ in range(3):
                ws.receive_json()
            ws.send_json({"type": "next"})
            ws.receive_json()
            assert finished.wait(timeout=5)

            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong", "data": None}

    assert "Failed to send WS message" in caplog.text


def test_iss_screen_publishes_position(client, monkeypatch):
    snapshot = PositionSnapshot(latitude=-33.9, longitude=151.2, altitude=418.2, velocity=27580.4)
    monkeypatch.setattr(iss, "get_client", lambda: FakeIss(snapshot))

    with client.websocket_connect("/ws/iss") as ws:
        msg = ws.receive_json()

    assert msg["type"] == "position"
    assert msg["data"]["latitude"] == -33.9


def test_iss_screen_reports_errors(client, monkeypatch):
    monkeypatch.setattr(iss, "get_client", lambda: FakeIss(FetchFailure("wheretheiss", "HTTP 429")))

    with client.websocket_connect("/ws/iss") as ws:
        msg = ws.receive_json()

    assert msg == {"type": "error", "data": "HTTP 429"}


def test_iss_screen_stops_poller_on_disconnect(client, monkeypatch):
    snapshot = PositionSnapshot(latitude=51.5, longitude=-0.1)
    monkeypatch.setattr(iss, "get_client", lambda: FakeIss(snapshot))
    pollers = []

    class RecordingPoller(PositionPoller):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            self.stop_calls = 0
            pollers.append(self)

        def stop(self):
            self.stop_calls += 1
            super().stop()

    monkeypatch.setattr(ws_routes, "PositionPoller", RecordingPoller)

    with client.websocket_connect("/ws/iss") as ws:
        assert ws.receive_json()["type"] == "position"
        (poller,) = pollers
        assert poller.running is True
        stops_while_connected = poller.stop_calls

    assert poller.stop_calls == stops_while_connected + 1
    assert poller.running is False
    assert poller.snapshot == snapshot
