"""Browser launcher for per-request Playwright browsers.

This module provides the BrowserLauncher class, the worker's browser binding.
It owns the Playwright driver for the process lifetime and hands out one
freshly launched browser per capture request, under a launch deadline and a
bound on the number of simultaneously live browsers. Browsers are never
pooled or reused across requests.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Set

from playwright.async_api import Browser, Playwright, async_playwright

from ..errors import LaunchError

logger = logging.getLogger(__name__)


class BrowserEngineType:
    """Supported browser engine types."""
    CHROMIUM = "chromium"
    FIREFOX = "firefox"
    WEBKIT = "webkit"


class BrowserConfig:
    """Configuration for browser launching."""

    def __init__(
        self,
        engine: str = BrowserEngineType.CHROMIUM,
        headless: bool = True,
        launch_timeout_ms: int = 15000,
        max_concurrent_sessions: int = 10,
        args: Optional[List[str]] = None,
        **kwargs
    ):
        """Initialize browser configuration.

        Args:
            engine: Browser engine to use (chromium, firefox, webkit)
            headless: Run browser in headless mode
            launch_timeout_ms: Deadline for one browser launch, including waiting for a slot
            max_concurrent_sessions: Maximum number of browsers alive at once
            args: Extra browser command line switches
        """
        self.engine = engine
        self.headless = headless
        self.launch_timeout_ms = launch_timeout_ms
        self.max_concurrent_sessions = max_concurrent_sessions
        self.args = args or []
        self.extra_options = kwargs

    @classmethod
    def from_settings(cls, settings) -> "BrowserConfig":
        """Create from the ``browser`` section of WorkerConfig."""
        return cls(
            engine=settings.engine,
            headless=settings.headless,
            launch_timeout_ms=settings.launch_timeout_ms,
            max_concurrent_sessions=settings.max_concurrent_sessions,
            args=list(settings.launch_args),
        )

    def to_browser_options(self) -> Dict[str, Any]:
        """Convert to Playwright browser launch options."""
        options: Dict[str, Any] = {'headless': self.headless}

        if self.args:
            options['args'] = self.args

        options.update(self.extra_options)
        return options


class BrowserLauncher:
    """Launches and releases one browser per capture request."""

    def __init__(self, config: Optional[BrowserConfig] = None):
        """Initialize launcher with configuration.

        Args:
            config: Browser configuration object
        """
        self.config = config or BrowserConfig()
        self.playwright: Optional[Playwright] = None
        self._start_lock = asyncio.Lock()
        self._slots = asyncio.Semaphore(self.config.max_concurrent_sessions)
        self._live_browsers = 0
        self._closing: Set[asyncio.Task] = set()

    async def start(self) -> None:
        """Start the Playwright driver."""
        async with self._start_lock:
            if self.playwright is not None:
                return

            logger.info(f"Starting Playwright driver for engine: {self.config.engine}")
            self.playwright = await async_playwright().start()

    async def stop(self) -> None:
        """Stop the Playwright driver. Live browsers are closed by their sessions."""
        if self.playwright is None:
            return

        logger.info("Stopping Playwright driver")
        try:
            await self.playwright.stop()
        except Exception as e:
            logger.error(f"Error stopping Playwright driver: {e}")
        finally:
            self.playwright = None

    def _browser_type(self):
        if self.config.engine == BrowserEngineType.FIREFOX:
            return self.playwright.firefox
        if self.config.engine == BrowserEngineType.WEBKIT:
            return self.playwright.webkit
        return self.playwright.chromium

    async def _launch(self) -> Browser:
        await self.start()
        return await self._browser_type().launch(**self.config.to_browser_options())

    async def acquire(self) -> Browser:
        """Launch a new browser within the launch deadline.

        Returns:
            A live browser owned exclusively by the caller, who must hand it
            back through release()

        Raises:
            LaunchError: If no slot frees up or the launch does not finish in time,
                or the browser cannot be started at all
        """
        timeout = self.config.launch_timeout_ms / 1000
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout

        try:
            await asyncio.wait_for(self._slots.acquire(), timeout=timeout)
        except asyncio.TimeoutError:
            raise LaunchError("Browser launch timed out", cause="launch_timeout")

        launch = asyncio.ensure_future(self._launch())
        try:
            browser = await asyncio.wait_for(asyncio.shield(launch), timeout=max(deadline - loop.time(), 0))
        except asyncio.TimeoutError:
            self._abandon_launch(launch)
            self._slots.release()
            logger.error(f"Browser launch exceeded {self.config.launch_timeout_ms}ms")
            raise LaunchError("Browser launch timed out", cause="launch_timeout")
        except asyncio.CancelledError:
            self._abandon_launch(launch)
            self._slots.release()
            logger.info("Browser launch cancelled")
            raise
        except Exception as e:
            self._slots.release()
            logger.error(f"Failed to launch browser: {e}")
            raise LaunchError(f"Browser unavailable: {e}", cause="launch_unavailable")

        self._live_browsers += 1
        logger.debug(f"Browser launched ({self._live_browsers} live)")
        return browser

    def _abandon_launch(self, launch: asyncio.Future) -> None:
        """Stop a launch nobody will receive; close its browser if it got one."""
        launch.cancel()
        launch.add_done_callback(self._close_abandoned)

    def _close_abandoned(self, launch: asyncio.Future) -> None:
        if launch.cancelled() or launch.exception() is not None:
            return

        task = asyncio.ensure_future(self._close_quietly(launch.result()))
        self._closing.add(task)
        task.add_done_callback(self._closing.discard)

    async def _close_quietly(self, browser: Browser) -> None:
        try:
            await browser.close()
        except Exception as e:
            logger.warning(f"Error closing abandoned browser: {e}")
        else:
            logger.debug("Closed browser from abandoned launch")

    async def release(self, browser: Browser) -> None:
        """Close a browser obtained from acquire() and free its slot."""
        try:
            await browser.close()
        finally:
            self._live_browsers -= 1
            self._slots.release()
            logger.debug(f"Browser closed ({self._live_browsers} live)")

    @property
    def live_browsers(self) -> int:
        """Number of browsers currently launched and not yet released."""
        return self._live_browsers

    def __repr__(self) -> str:
        return (
            f"BrowserLauncher(engine={self.config.engine}, "
            f"headless={self.config.headless}, "
            f"live={self._live_browsers})"
        )
