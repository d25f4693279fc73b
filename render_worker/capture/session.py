"""Browser session lifecycle for a single capture request.

A BrowserSession owns exactly one browser and one page for the duration of
one request and walks them through a fixed sequence of states:

    idle -> launching -> configuring -> navigating -> capturing -> closing -> closed

``failed`` can be entered from any non-terminal state. The session is an
async context manager; leaving the ``async with`` block always closes the
browser, whether the body returned, raised, or was cancelled.
"""

import asyncio
import logging
import uuid
from enum import Enum
from typing import List, Optional

from playwright.async_api import (
    Browser,
    Page,
    Error as PlaywrightError,
    TimeoutError as PlaywrightTimeoutError,
)

from ..errors import (
    BrowserError,
    CaptureError,
    LaunchError,
    RenderWorkerError,
    NavigationTimeoutError,
    TargetUnreachableError,
)
from .browser_factory import BrowserLauncher
from .resource_filter import ResourceFilter

logger = logging.getLogger(__name__)

# Network error markers reported by Chromium, Firefox and WebKit when the
# target cannot be reached at all.
UNREACHABLE_MARKERS = (
    "ERR_NAME_NOT_RESOLVED",
    "ERR_NAME_RESOLUTION_FAILED",
    "ERR_CONNECTION_REFUSED",
    "ERR_CONNECTION_RESET",
    "ERR_CONNECTION_CLOSED",
    "ERR_ADDRESS_UNREACHABLE",
    "ERR_INTERNET_DISCONNECTED",
    "NS_ERROR_UNKNOWN_HOST",
    "NS_ERROR_CONNECTION_REFUSED",
    "Could not resolve host",
    "Could not connect to server",
)


class SessionState(str, Enum):
    """States of a browser session."""
    IDLE = "idle"
    LAUNCHING = "launching"
    CONFIGURING = "configuring"
    NAVIGATING = "navigating"
    CAPTURING = "capturing"
    CLOSING = "closing"
    CLOSED = "closed"
    FAILED = "failed"


TERMINAL_STATES = frozenset({SessionState.CLOSED})


def classify_navigation_error(error: Exception, url: str, timeout_ms: int) -> CaptureError:
    """Map a Playwright navigation failure onto the capture error taxonomy."""
    if isinstance(error, PlaywrightTimeoutError):
        return NavigationTimeoutError(f"Navigation timeout of {timeout_ms} ms exceeded: {url}")

    message = str(error)
    if any(marker in message for marker in UNREACHABLE_MARKERS):
        return TargetUnreachableError(f"Target unreachable: {url} ({message.splitlines()[0]})")

    return BrowserError(f"Navigation failed: {message}")


class BrowserSession:
    """One browser plus one page, used for a single capture and then closed."""

    def __init__(self, launcher: BrowserLauncher):
        """Initialize an idle session.

        Args:
            launcher: Browser binding used to obtain and release the browser
        """
        self.launcher = launcher
        self.session_id = uuid.uuid4().hex[:12]
        self.browser: Optional[Browser] = None
        self.page: Optional[Page] = None
        self.state = SessionState.IDLE
        self.history: List[SessionState] = [SessionState.IDLE]
        self.failure: Optional[RenderWorkerError] = None

    def _transition(self, state: SessionState) -> None:
        logger.debug(f"Session {self.session_id}: {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    def _fail(self, error: RenderWorkerError) -> RenderWorkerError:
        self.failure = error
        if self.state not in TERMINAL_STATES and self.state != SessionState.FAILED:
            self._transition(SessionState.FAILED)
        return error

    def _require_page(self) -> Page:
        if self.page is None:
            raise RuntimeError("Session has no page. Call configure() first.")
        return self.page

    @property
    def failed(self) -> bool:
        return self.failure is not None

    @property
    def is_closed(self) -> bool:
        """True once the browser has been released, or was never acquired."""
        return self.browser is None

    async def __aenter__(self) -> "BrowserSession":
        await self.launch()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc is not None and not self.failed:
            if isinstance(exc, RenderWorkerError):
                self._fail(exc)
            elif isinstance(exc, asyncio.CancelledError):
                self._fail(BrowserError("Capture cancelled"))
            else:
                self._fail(BrowserError(f"Unexpected error during capture: {exc!r}"))
        # Shield so a second cancellation cannot interrupt the release.
        await asyncio.shield(self.close())
        return False

    async def launch(self) -> None:
        """Acquire a browser from the launcher."""
        if self.state != SessionState.IDLE:
            raise RuntimeError(f"Cannot launch from state {self.state.value}")

        self._transition(SessionState.LAUNCHING)
        try:
            self.browser = await self.launcher.acquire()
        except LaunchError as e:
            raise self._fail(e)
        except asyncio.CancelledError:
            self._fail(BrowserError("Capture cancelled"))
            raise

        logger.debug(f"Session {self.session_id}: browser launched")

    async def configure(
        self,
        width: int,
        height: int,
        resource_filter: Optional[ResourceFilter] = None
    ) -> Page:
        """Open the session's single page, size it and install interception.

        Args:
            width: Viewport width, already clamped
            height: Viewport height, already clamped
            resource_filter: Filter to install as a route hook, if any

        Returns:
            The configured page
        """
        if self.browser is None:
            raise RuntimeError("Session has no browser. Call launch() first.")
        if self.page is not None:
            raise RuntimeError("Session already has an open page")

        self._transition(SessionState.CONFIGURING)
        try:
            self.page = await self.browser.new_page()
            await self.page.set_viewport_size({'width': width, 'height': height})

            if resource_filter is not None and resource_filter.is_active:
                await self.page.route("**/*", resource_filter.handle)
        except PlaywrightError as e:
            raise self._fail(BrowserError(f"Failed to configure page: {e}"))

        return self.page

    async def navigate(self, url: str, wait_until: str, timeout_ms: int) -> None:
        """Load ``url`` and wait for the ready condition within ``timeout_ms``."""
        page = self._require_page()
        self._transition(SessionState.NAVIGATING)

        logger.info(f"Navigating to {url} (wait_until={wait_until}, timeout={timeout_ms}ms)")
        try:
            await page.goto(url, wait_until=wait_until, timeout=timeout_ms)
        except PlaywrightError as e:
            error = classify_navigation_error(e, url, timeout_ms)
            logger.warning(f"Session {self.session_id}: {error.message}")
            raise self._fail(error)

    async def screenshot(self, full_page: bool, quality: int, image_type: str = "jpeg") -> bytes:
        """Capture exactly one image of the current page state."""
        page = self._require_page()
        self._transition(SessionState.CAPTURING)

        try:
            return await page.screenshot(full_page=full_page, type=image_type, quality=quality)
        except PlaywrightError as e:
            raise self._fail(BrowserError(f"Screenshot failed: {e}"))

    async def content(self) -> str:
        """Capture the full rendered document markup."""
        page = self._require_page()
        self._transition(SessionState.CAPTURING)

        try:
            return await page.content()
        except PlaywrightError as e:
            raise self._fail(BrowserError(f"Content capture failed: {e}"))

    async def close(self) -> None:
        """Release the browser. Safe to call more than once."""
        if self.browser is None:
            return

        browser = self.browser
        self._transition(SessionState.CLOSING)
        try:
            await self.launcher.release(browser)
        except Exception as e:
            logger.error(f"Session {self.session_id}: error closing browser: {e}")
        finally:
            self.browser = None
            self.page = None
            self._transition(SessionState.CLOSED)

    def __repr__(self) -> str:
        return f"BrowserSession(id={self.session_id}, state={self.state.value})"
