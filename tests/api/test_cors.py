"""Tests for origin allow-list CORS handling."""

import pytest
from fastapi.testclient import TestClient

from render_worker.api.bindings import WorkerBindings
from render_worker.api.cors import AllowListCORSMiddleware, resolve_allowed_origin
from render_worker.api.main import create_app
from render_worker.config import WorkerConfig

ALLOWED = ("https://example.com", "http://localhost:3000")


@pytest.fixture
def client(launcher, store):
    app = create_app(WorkerConfig.for_testing(), WorkerBindings(browser=launcher, screenshots=store))
    with TestClient(app) as test_client:
        yield test_client


class TestResolveAllowedOrigin:
    def test_allow_listed_origin_reflected(self):
        assert resolve_allowed_origin("http://localhost:3000", ALLOWED) == "http://localhost:3000"

    @pytest.mark.parametrize("origin", [None, "", "https://evil.example", "https://example.com.evil.example"])
    def test_other_origins_get_first_entry(self, origin):
        assert resolve_allowed_origin(origin, ALLOWED) == "https://example.com"

    def test_empty_allow_list_rejected(self):
        with pytest.raises(ValueError):
            AllowListCORSMiddleware(app=None, allowed_origins=[])


class TestPreflight:
    """Tests for OPTIONS handling."""

    def test_preflight(self, client, launcher):
        response = client.options("/screenshot", headers={"Origin": "http://localhost:3000"})

        assert response.status_code == 204
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
        assert response.headers["access-control-allow-methods"] == "GET, POST, OPTIONS"
        assert response.headers["access-control-allow-headers"] == "Content-Type, Authorization"
        assert response.headers["access-control-max-age"] == "86400"
        assert launcher.launched == []

    def test_preflight_from_unknown_origin(self, client):
        response = client.options("/content", headers={"Origin": "https://evil.example"})

        assert response.status_code == 204
        assert response.headers["access-control-allow-origin"] == "https://example.com"

    def test_preflight_on_any_path(self, client):
        assert client.options("/anything").status_code == 204


class TestResponseHeaders:
    """Tests that every response carries the CORS origin."""

    def test_success_response(self, client):
        response = client.post(
            "/content",
            json={"url": "https://example.com"},
            headers={"Origin": "http://localhost:3000"}
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
        assert response.headers["vary"] == "Origin"

    def test_error_response(self, client):
        response = client.post("/screenshot", json={}, headers={"Origin": "https://evil.example"})

        assert response.status_code == 400
        assert response.headers["access-control-allow-origin"] == "https://example.com"

    def test_not_found_response(self, client):
        response = client.get("/nope", headers={"Origin": "https://example.com"})

        assert response.status_code == 404
        assert response.headers["access-control-allow-origin"] == "https://example.com"

    def test_image_response(self, client):
        locator = client.post("/screenshot", json={"url": "https://example.com"}).json()["url"]

        response = client.get(locator.replace("http://testserver", ""), headers={"Origin": "http://localhost:3000"})

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
