"""Integration tests for API endpoints.

Exercises the HTTP surface end to end with mock browsers and an in-memory
artifact store: request parsing, error mapping, and the screenshot to image
round trip.
"""

import pytest
from fastapi.testclient import TestClient
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from render_worker.api.bindings import WorkerBindings
from render_worker.api.main import create_app
from render_worker.api.schemas import ENDPOINTS
from render_worker.config import ServerSettings, WorkerConfig


@pytest.fixture
def config():
    return WorkerConfig.for_testing()


@pytest.fixture
def make_client(config):
    """Build a TestClient for a given set of bindings."""
    clients = []

    def _make(bindings, worker_config=None):
        client = TestClient(create_app(worker_config or config, bindings))
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client, launcher, store):
    return make_client(WorkerBindings(browser=launcher, screenshots=store))


class TestSystemEndpoints:
    """Tests for health and unmatched routes."""

    def test_health_check(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["bindings"] == {"browser": "configured", "screenshots": "configured"}
        assert "version" in data
        assert "timestamp" in data
        assert "uptime_seconds" in data

    def test_health_degraded_without_browser(self, make_client, store):
        client = make_client(WorkerBindings(browser=None, screenshots=store))

        data = client.get("/health").json()

        assert data["status"] == "degraded"
        assert data["bindings"]["browser"] == "unavailable"

    @pytest.mark.parametrize("method,path", [
        ("GET", "/"),
        ("GET", "/unknown"),
        ("GET", "/screenshot"),
        ("POST", "/image/abc123"),
        ("GET", "/image/not-an-id!"),
    ])
    def test_unmatched_routes_list_endpoints(self, client, method, path):
        response = client.request(method, path)

        assert response.status_code == 404
        assert response.json() == {"error": "Not found", "endpoints": ENDPOINTS}

    def test_request_id_header(self, client):
        response = client.get("/health")

        assert "X-Request-ID" in response.headers


class TestScreenshotEndpoint:
    """Tests for POST /screenshot."""

    def test_missing_url(self, client, launcher):
        response = client.post("/screenshot", json={})

        assert response.status_code == 400
        assert response.json() == {"error": "URL is required"}
        assert launcher.launched == []

    def test_invalid_url(self, client):
        response = client.post("/screenshot", json={"url": "example.com"})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid URL: example.com"

    def test_malformed_json(self, client):
        response = client.post(
            "/screenshot",
            content=b"{not json",
            headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert "error" in response.json()

    def test_invalid_field_type(self, client):
        response = client.post("/screenshot", json={"url": "https://example.com", "width": "wide"})

        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid value for width")

    def test_success(self, client):
        response = client.post("/screenshot", json={"url": "https://example.com", "width": 2000, "height": 2000})

        assert response.status_code == 200
        data = response.json()
        assert data["url"] == f"http://testserver/image/{data['id']}"
        assert data["width"] == 1600
        assert data["height"] == 1200
        assert data["format"] == "jpeg"
        assert data["fullPage"] is False
        assert data["expiresIn"] == "3600 seconds"

    def test_public_origin_used_for_locator(self, make_client, launcher, store):
        config = WorkerConfig.for_testing().model_copy(
            update={"server": ServerSettings(public_origin="https://render.example.com")}
        )
        client = make_client(WorkerBindings(browser=launcher, screenshots=store), config)

        data = client.post("/screenshot", json={"url": "https://example.com"}).json()

        assert data["url"] == f"https://render.example.com/image/{data['id']}"

    def test_missing_browser_binding(self, make_client, store):
        client = make_client(WorkerBindings(browser=None, screenshots=store))

        response = client.post("/screenshot", json={"url": "https://example.com"})

        assert response.status_code == 500
        assert response.json() == {"error": "Browser binding is not available"}

    def test_missing_store_binding(self, make_client, launcher):
        client = make_client(WorkerBindings(browser=launcher, screenshots=None))

        response = client.post("/screenshot", json={"url": "https://example.com"})

        assert response.status_code == 500
        assert response.json() == {"error": "SCREENSHOTS KV binding is not available"}
        assert launcher.launched == []

    def test_capture_failure(self, make_client, launcher_factory, page_factory, store):
        def timing_out_page():
            page = page_factory()
            page.goto.side_effect = PlaywrightTimeoutError("Timeout 30000ms exceeded.")
            return page

        launcher = launcher_factory(page_factory=timing_out_page)
        client = make_client(WorkerBindings(browser=launcher, screenshots=store))

        response = client.post("/screenshot", json={"url": "https://slow.example.com"})

        assert response.status_code == 500
        data = response.json()
        assert data["type"] == "screenshot_error"
        assert "Navigation timeout" in data["error"]
        assert data["details"]
        assert launcher.live_browsers == 0


class TestImageEndpoint:
    """Tests for GET /image/{id}."""

    def test_round_trip(self, client, sample_jpeg):
        locator = client.post("/screenshot", json={"url": "https://example.com"}).json()["url"]

        response = client.get(locator.replace("http://testserver", ""))

        assert response.status_code == 200
        assert response.content == sample_jpeg
        assert response.headers["content-type"] == "image/jpeg"
        cache_control = response.headers["cache-control"]
        assert cache_control.startswith("public, max-age=")
        assert 3590 <= int(cache_control.split("=")[1]) <= 3600

    def test_unknown_id(self, client):
        response = client.get("/image/doesnotexist123")

        assert response.status_code == 404
        assert response.text == "Image not found"

    def test_metadata_without_payload(self, client, store):
        client.post("/screenshot", json={"url": "https://example.com"})
        data_keys = [key for key in list(store._entries) if key.endswith(":data")]
        artifact_id = data_keys[0].split(":")[0]
        del store._entries[data_keys[0]]

        response = client.get(f"/image/{artifact_id}")

        assert response.status_code == 404
        assert response.text == "Image data not found"

    def test_missing_store_binding(self, make_client, launcher):
        client = make_client(WorkerBindings(browser=launcher, screenshots=None))

        response = client.get("/image/abc123")

        assert response.status_code == 500
        assert response.text == "SCREENSHOTS KV binding is not available"


class TestContentEndpoint:
    """Tests for POST /content."""

    def test_success(self, client, sample_html):
        response = client.post("/content", json={"url": "https://example.com"})

        assert response.status_code == 200
        assert response.json() == {"content": sample_html}

    def test_reject_resource_types(self, client, launcher):
        client.post("/content", json={"url": "https://example.com", "rejectResourceTypes": ["image"]})

        page = launcher.launched[0].new_page.return_value
        page.route.assert_awaited_once()

    def test_missing_url(self, client):
        response = client.post("/content", json={"waitUntil": "load"})

        assert response.status_code == 400
        assert response.json() == {"error": "URL is required"}

    def test_works_without_store(self, make_client, launcher, sample_html):
        client = make_client(WorkerBindings(browser=launcher, screenshots=None))

        response = client.post("/content", json={"url": "https://example.com"})

        assert response.status_code == 200
        assert response.json()["content"] == sample_html

    def test_missing_browser_binding(self, make_client, store):
        client = make_client(WorkerBindings(browser=None, screenshots=store))

        response = client.post("/content", json={"url": "https://example.com"})

        assert response.status_code == 500
        assert response.json() == {"error": "Browser binding is not available"}

    def test_render_failure_includes_stack(self, make_client, launcher_factory):
        launcher = launcher_factory(launch_error=RuntimeError("Executable doesn't exist"))
        client = make_client(WorkerBindings(browser=launcher, screenshots=None))

        response = client.post("/content", json={"url": "https://example.com"})

        assert response.status_code == 500
        data = response.json()
        assert "Browser unavailable" in data["error"]
        assert "Traceback" in data["stack"]
