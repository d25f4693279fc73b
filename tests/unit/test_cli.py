"""Unit tests for the command-line interface."""

import pytest
from typer.testing import CliRunner

from render_worker import __version__
from render_worker.cli import main as cli_module
from render_worker.cli.main import ExitCode, app
from render_worker.client import ClientError, WorkerUnavailableError

runner = CliRunner()


class StubClient:
    """Stands in for BrowserRenderingClient."""

    html = "<html><head><title>Stub</title></head><body><p>Hello &amp; welcome</p></body></html>"
    error = None
    calls = []

    def __init__(self, endpoint=None):
        self.endpoint = endpoint

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return None

    async def fetch_content(self, url):
        StubClient.calls.append(("fetch", url, self.endpoint))
        if StubClient.error:
            raise StubClient.error
        return StubClient.html

    async def take_screenshot(self, url, **kwargs):
        StubClient.calls.append(("screenshot", url, kwargs))
        if StubClient.error:
            raise StubClient.error
        return "https://worker.test/image/abc123"


@pytest.fixture(autouse=True)
def stub_client(monkeypatch):
    StubClient.error = None
    StubClient.calls = []
    monkeypatch.setattr(cli_module, "BrowserRenderingClient", StubClient)
    yield StubClient


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_screenshot_prints_locator():
    result = runner.invoke(app, ["screenshot", "https://example.com", "--width", "1024", "--full-page"])

    assert result.exit_code == 0
    assert result.output.strip() == "https://worker.test/image/abc123"
    _, url, kwargs = StubClient.calls[0]
    assert url == "https://example.com"
    assert kwargs["width"] == 1024
    assert kwargs["full_page"] is True


def test_fetch_prints_processed_text():
    result = runner.invoke(app, ["fetch", "https://example.com", "--endpoint", "https://worker.test"])

    assert result.exit_code == 0
    assert "Title: Stub" in result.output
    assert "Hello & welcome" in result.output
    assert StubClient.calls[0] == ("fetch", "https://example.com", "https://worker.test")


def test_fetch_raw_and_truncated():
    result = runner.invoke(app, ["fetch", "https://example.com", "--raw", "--max-length", "6"])

    assert result.exit_code == 0
    assert result.output.strip() == "<html>..."


def test_unavailable_worker_exit_code():
    StubClient.error = WorkerUnavailableError("Render worker is unavailable")

    result = runner.invoke(app, ["fetch", "https://example.com"])

    assert result.exit_code == ExitCode.WORKER_UNAVAILABLE.value


def test_request_error_exit_code():
    StubClient.error = ClientError("Invalid URL provided: nope")

    result = runner.invoke(app, ["screenshot", "nope"])

    assert result.exit_code == ExitCode.REQUEST_ERROR.value
