"""
Integration tests for the GPX generation API.
"""

import logging
import threading
from xml.etree.ElementTree import fromstring

from fastapi import FastAPI
from fastapi.testclient import TestClient

from gpx_backend import main
from gpx_backend.document import GPX_NAMESPACE
from gpx_backend.errors import CommandError
from gpx_backend.main import mount_frontend
from gpx_backend.post_processing import GpxFileStore

NS = {"gpx": GPX_NAMESPACE}

PAYLOAD = {
    "title": "Station loop",
    "speed": "car",
    "markers": [
        {"lat": 35.6812, "lng": 139.7671},
        {"lat": 35.6830, "lng": 139.7650},
        {"lat": 35.6812, "lng": 139.7671},
    ],
}


class FailingCommand:
    async def run(self, title, document):
        raise CommandError("'push-gpx' exited with 1: device not found")


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_generate_returns_gpx(client):
    response = client.post("/api/generateGpx", json=PAYLOAD)
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/gpx+xml")

    root = fromstring(response.content)
    assert root.find("gpx:metadata/gpx:name", NS).text == "Station loop"
    wpts = root.findall("gpx:wpt", NS)
    anchors = [w for w in wpts if w.find("gpx:type", NS).text == "anchor"]
    assert len(anchors) == 3
    assert len(wpts) > 3
    assert wpts[0].find("gpx:type", NS).text == "anchor"
    assert wpts[-1].find("gpx:type", NS).text == "anchor"


def test_single_marker(client):
    payload = dict(PAYLOAD, markers=[{"lat": 1.5, "lng": 2.5}])
    response = client.post("/api/generateGpx", json=payload)
    assert response.status_code == 200
    wpts = fromstring(response.content).findall("gpx:wpt", NS)
    assert [(w.get("lat"), w.get("lon")) for w in wpts] == [("1.5", "2.5")]


def test_default_speed_is_bicycle(client):
    payload = {"title": "t", "markers": [{"lat": 0.0, "lng": 0.0}, {"lat": 0.0, "lng": 0.001}]}
    response = client.post("/api/generateGpx", json=payload)
    assert response.status_code == 200
    # 0.001 / 0.000025 = 40 steps -> 39 interpolated + 2 anchors
    assert len(fromstring(response.content).findall("gpx:wpt", NS)) == 41


def test_save_mode_returns_saved(client, post_processors, tmp_path):
    post_processors.append(GpxFileStore(tmp_path))
    response = client.post("/api/generateGpx", json=PAYLOAD)
    assert response.status_code == 200
    assert response.text == "saved"

    saved = (tmp_path / "Station loop.gpx").read_text(encoding="utf-8")
    assert "<gpx" in saved


def test_unknown_speed_rejected(client):
    response = client.post("/api/generateGpx", json=dict(PAYLOAD, speed="rocket"))
    assert response.status_code == 400
    assert response.json()["result"] == "failed"


def test_empty_markers_rejected(client):
    response = client.post("/api/generateGpx", json=dict(PAYLOAD, markers=[]))
    assert response.status_code == 400
    assert response.json()["result"] == "failed"


def test_missing_title_rejected(client):
    payload = {"speed": "walk", "markers": PAYLOAD["markers"]}
    response = client.post("/api/generateGpx", json=payload)
    assert response.status_code == 400


def test_route_too_long_rejected(client):
    payload = dict(PAYLOAD, speed="walk", markers=[{"lat": -80.0, "lng": -170.0}, {"lat": 80.0, "lng": 170.0}])
    response = client.post("/api/generateGpx", json=payload)
    assert response.status_code == 400
    body = response.json()
    assert body["result"] == "failed"
    assert "limit" in body["detail"]


def test_command_failure_reports_failed_even_after_save(client, post_processors, tmp_path):
    post_processors.extend([GpxFileStore(tmp_path), FailingCommand()])
    response = client.post("/api/generateGpx", json=PAYLOAD)
    assert response.status_code == 500
    body = response.json()
    assert body["result"] == "failed"
    assert "device not found" in body["detail"]


def test_persistence_failure(client, post_processors):
    post_processors.append(GpxFileStore("/tmp"))
    response = client.post("/api/generateGpx", json=dict(PAYLOAD, title="../outside"))
    assert response.status_code == 500
    assert response.json()["result"] == "failed"


def test_non_finite_coordinates_rejected(client):
    for value in ("NaN", "Infinity", "-Infinity"):
        body = '{"title": "t", "speed": "car", "markers": [{"lat": %s, "lng": 0.0}]}' % value
        response = client.post(
            "/api/generateGpx",
            content=body,
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400, value
        assert response.json()["result"] == "failed"


def test_api_requests_are_logged(client, caplog):
    caplog.set_level(logging.INFO, logger="gpx_backend.main")
    client.get("/api/health")
    assert "[REQUEST] path: /api/health" in caplog.text
    assert "[REQUEST] started:" in caplog.text
    assert "[REQUEST] finished:" in caplog.text


class TestFrontendMount:
    def test_serves_build_in_prod(self, tmp_path):
        (tmp_path / "index.html").write_text("<html>map</html>", encoding="utf-8")
        frontend_app = FastAPI()
        assert mount_frontend(frontend_app, "prod", tmp_path) is True

        with TestClient(frontend_app) as c:
            response = c.get("/")
        assert response.status_code == 200
        assert "map" in response.text

    def test_missing_build_is_logged_and_skipped(self, tmp_path, caplog):
        caplog.set_level(logging.WARNING, logger="gpx_backend.main")
        frontend_app = FastAPI()
        assert mount_frontend(frontend_app, "prod", tmp_path / "missing") is False
        assert "[STATIC] frontend build not found" in caplog.text

        with TestClient(frontend_app) as c:
            assert c.get("/").status_code == 404

    def test_not_mounted_outside_prod(self, tmp_path):
        (tmp_path / "index.html").write_text("<html>map</html>", encoding="utf-8")
        frontend_app = FastAPI()
        assert mount_frontend(frontend_app, "dev", tmp_path) is False
        assert all(getattr(r, "name", None) != "frontend" for r in frontend_app.routes)

        with TestClient(frontend_app) as c:
            assert c.get("/").status_code == 404


def test_route_is_built_off_the_event_loop(client, post_processors, monkeypatch):
    threads = {}
    real_interpolate = main.interpolate

    def recording_interpolate(markers, speed):
        threads["build"] = threading.get_ident()
        return real_interpolate(markers, speed)

    class RecordingProcessor:
        async def run(self, title, document):
            threads["loop"] = threading.get_ident()

    monkeypatch.setattr(main, "interpolate", recording_interpolate)
    post_processors.append(RecordingProcessor())

    response = client.post("/api/generateGpx", json=PAYLOAD)
    assert response.status_code == 200
    assert threads["build"] != threads["loop"]
