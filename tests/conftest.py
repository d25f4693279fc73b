"""Shared test fixtures and configuration for render worker tests."""

import asyncio
import sys
from pathlib import Path
from typing import Callable, List, Optional
from unittest.mock import AsyncMock

import pytest

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from render_worker.cache.artifacts import ArtifactCache
from render_worker.cache.storage import InMemoryKeyValueStore
from render_worker.capture.browser_factory import BrowserConfig, BrowserLauncher
from render_worker.capture.pipeline import CapturePipeline
from render_worker.config import CaptureSettings

SAMPLE_HTML = """<html>
<head><title>Example Domain</title></head>
<body><main><h1>Example Domain</h1><p>For use in examples.</p></main></body>
</html>"""

# JPEG start-of-image marker followed by filler.
SAMPLE_JPEG = b"\xff\xd8\xff\xe0" + b"\x00fake-jpeg-body" * 8 + b"\xff\xd9"


def make_page(html: str = SAMPLE_HTML, image: bytes = SAMPLE_JPEG) -> AsyncMock:
    """Mock Playwright page that renders ``html`` and screenshots to ``image``."""
    page = AsyncMock()
    page.content.return_value = html
    page.screenshot.return_value = image
    return page


class FakeLauncher(BrowserLauncher):
    """BrowserLauncher whose browsers are mocks.

    Slot accounting, deadlines and release run through the real launcher;
    only the Playwright launch itself is replaced.
    """

    def __init__(
        self,
        page_factory: Callable[[], AsyncMock] = make_page,
        launch_delay: float = 0.0,
        launch_error: Optional[Exception] = None,
        max_concurrent_sessions: int = 4,
        launch_timeout_ms: int = 1000
    ):
        super().__init__(BrowserConfig(
            launch_timeout_ms=launch_timeout_ms,
            max_concurrent_sessions=max_concurrent_sessions
        ))
        self.page_factory = page_factory
        self.launch_delay = launch_delay
        self.launch_error = launch_error
        self.launched: List[AsyncMock] = []

    async def _launch(self):
        if self.launch_delay:
            await asyncio.sleep(self.launch_delay)
        if self.launch_error is not None:
            raise self.launch_error

        browser = AsyncMock()
        browser.new_page.return_value = self.page_factory()
        self.launched.append(browser)
        return browser


@pytest.fixture
def launcher():
    """Launcher producing mock browsers."""
    return FakeLauncher()


@pytest.fixture
def store():
    """In-memory key-value store."""
    return InMemoryKeyValueStore()


@pytest.fixture
def cache(store):
    """Artifact cache over the in-memory store."""
    return ArtifactCache(store, ttl_seconds=3600)


@pytest.fixture
def capture_settings():
    """Default capture limits."""
    return CaptureSettings()


@pytest.fixture
def pipeline(launcher, cache, capture_settings):
    """Capture pipeline wired to mock browsers and an in-memory cache."""
    return CapturePipeline(launcher, cache, capture_settings)


@pytest.fixture
def launcher_factory():
    """FakeLauncher class, for tests that need a custom launcher."""
    return FakeLauncher


@pytest.fixture
def page_factory():
    """Factory for mock pages."""
    return make_page


@pytest.fixture
def sample_html():
    return SAMPLE_HTML


@pytest.fixture
def sample_jpeg():
    return SAMPLE_JPEG
