"""
Tests for the HTTP API.

Run with: pytest tests/test_api_routes.py -v
"""
import asyncio
import json
from unittest.mock import MagicMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.routes import export as export_routes
from api.routes import layout as layout_routes
from api.routes import palette as palette_routes
from domain.models import FALLBACK_DOMINANT, StyleSuggestion
from storage.file_storage import FileStorage


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(export_routes, "storage", FileStorage(str(tmp_path)))
    app = FastAPI()
    app.include_router(layout_routes.router)
    app.include_router(palette_routes.router)
    app.include_router(export_routes.router)
    return TestClient(app)


class TestLayoutRoutes:
    def test_presets(self, client):
        resp = client.get("/presets")
        assert resp.status_code == 200
        data = resp.json()
        assert len(data["gradients"]) == 10
        assert data["defaults"]["padding"] == 64

    def test_layout(self, client):
        resp = client.post(
            "/layout",
            json={
                "settings": {"aspectRatio": "1/1"},
                "natural_size": {"width": 1000, "height": 500},
                "container": {"width": 1000, "height": 800},
            },
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["ready"] is True
        assert data["layout"]["exportWidth"] == pytest.approx(1160)
        assert data["layout"]["exportHeight"] == pytest.approx(1160)
        assert data["viewport_scale"] == pytest.approx(600 / 1160)
        assert data["shadow_css"] == "-17px 17px 48px -4px rgba(0,0,0,0.31)"
        assert data["light_angle"] == 315
        assert data["outer_radius"] == 48

    def test_layout_not_ready(self, client):
        resp = client.post("/layout", json={"natural_size": {"width": 0, "height": 0}})
        assert resp.status_code == 200
        assert resp.json()["ready"] is False
        assert resp.json()["viewport_scale"] is None

    def test_non_finite_setting_rejected(self, client):
        resp = client.post(
            "/layout",
            content='{"settings": {"padding": NaN}, "natural_size": {"width": 1000, "height": 500}}',
            headers={"content-type": "application/json"},
        )
        assert resp.status_code == 422

    def test_non_finite_natural_size_rejected(self, client):
        resp = client.post(
            "/layout",
            content='{"natural_size": {"width": NaN, "height": 500}}',
            headers={"content-type": "application/json"},
        )
        assert resp.status_code == 422

    def test_invalid_settings(self, client):
        resp = client.post(
            "/layout",
            json={"settings": {"aspectRatio": "16:9"}, "natural_size": {"width": 10, "height": 10}},
        )
        assert resp.status_code == 422


class TestPaletteRoutes:
    def test_palette(self, client, make_png):
        resp = client.post("/palette", files={"file": ("a.png", make_png(), "image/png")})
        assert resp.status_code == 200
        assert len(resp.json()["palette"]) == 5

    def test_palette_for_garbage_falls_back(self, client):
        resp = client.post("/palette", files={"file": ("a.jpg", b"nope", "image/jpeg")})
        assert resp.status_code == 200
        assert resp.json()["dominant"] == FALLBACK_DOMINANT

    def test_mesh(self, client):
        resp = client.post("/mesh", json={"palette": ["a", "b", "c", "d", "e"], "seed": 1})
        assert resp.status_code == 200
        data = resp.json()
        assert data["colors"] == ["c", "b", "a", "e", "d"]
        assert len(data["blobs"]) == 5


class TestExportRoutes:
    def test_export_png(self, client, make_png, monkeypatch):
        monkeypatch.setattr(export_routes.app_settings, "EXPORT_PIXEL_RATIO", 1.0)
        resp = client.post(
            "/export",
            files={"file": ("a.png", make_png(size=(40, 20)), "image/png")},
            data={"settings": json.dumps({"padding": 10, "inset": 4})},
        )
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "image/png"
        assert resp.content.startswith(b"\x89PNG")

    def test_export_bad_image(self, client):
        resp = client.post("/export", files={"file": ("a.png", b"nope", "image/png")})
        assert resp.status_code == 400

    def test_export_bad_mesh_seed(self, client, make_png):
        resp = client.post(
            "/export",
            files={"file": ("a.png", make_png(), "image/png")},
            data={"settings": json.dumps({"meshSeed": "x"})},
        )
        assert resp.status_code == 422

    def test_export_bad_settings_json(self, client, make_png):
        resp = client.post(
            "/export",
            files={"file": ("a.png", make_png(), "image/png")},
            data={"settings": "{not json"},
        )
        assert resp.status_code == 422

    def test_style_suggestion_applied(self, client, make_png):
        style_client = MagicMock()
        style_client.suggest.return_value = StyleSuggestion("#222222", 80)
        with patch.object(export_routes, "get_default_style_client", return_value=style_client):
            resp = client.post("/style-suggestion", files={"file": ("a.png", make_png(), "image/png")})
        assert resp.status_code == 200
        data = resp.json()
        assert data["applied"] is True
        assert data["settings"]["background"] == "#222222"
        assert data["settings"]["backgroundType"] == "ai"

    def test_style_suggestion_runs_off_event_loop(self, client, make_png):
        loop_running = []

        def fake_suggest(image_bytes, mime_type):
            try:
                asyncio.get_running_loop()
                loop_running.append(True)
            except RuntimeError:
                loop_running.append(False)
            return None

        style_client = MagicMock()
        style_client.suggest.side_effect = fake_suggest
        with patch.object(export_routes, "get_default_style_client", return_value=style_client):
            resp = client.post("/style-suggestion", files={"file": ("a.png", make_png(), "image/png")})
        assert resp.status_code == 200
        assert loop_running == [False]

    def test_style_suggestion_unavailable(self, client, make_png):
        style_client = MagicMock()
        style_client.suggest.return_value = None
        with patch.object(export_routes, "get_default_style_client", return_value=style_client):
            resp = client.post(
                "/style-suggestion",
                files={"file": ("a.png", make_png(), "image/png")},
                data={"settings": json.dumps({"shadow": 12})},
            )
        assert resp.status_code == 200
        assert resp.json()["applied"] is False
        assert resp.json()["settings"]["shadow"] == 12
