"""HTTP client for a deployed render worker.

BrowserRenderingClient wraps the worker's ``/content`` and ``/screenshot``
endpoints for callers that want rendered pages without running a browser
themselves.
"""

import logging
import os
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import httpx

logger = logging.getLogger(__name__)

ENDPOINT_ENV_VAR = "BROWSER_RENDERING_API"
DEFAULT_ENDPOINT = "http://localhost:8787"
CONTENT_REJECT_TYPES = ["image", "font", "media"]
# Added on top of the navigation deadline so the worker can answer first.
TIMEOUT_GRACE_MS = 5000


class ClientError(Exception):
    """Base exception for render worker client failures."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class WorkerUnavailableError(ClientError):
    """The worker endpoint could not be reached or is not configured."""


class ScreenshotTimeoutError(ClientError):
    """The screenshot request did not complete in time."""


def _is_http_url(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class BrowserRenderingClient:
    """Async client for the render worker HTTP API.

    Args:
        endpoint: Base URL of the worker. Defaults to ``BROWSER_RENDERING_API``
        transport: Optional httpx transport, used to stub the worker in tests
    """

    def __init__(
        self,
        endpoint: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        configured = endpoint or os.environ.get(ENDPOINT_ENV_VAR)
        if not configured:
            logger.warning(
                f"{ENDPOINT_ENV_VAR} is not set; using {DEFAULT_ENDPOINT}"
            )
        self.endpoint = (configured or DEFAULT_ENDPOINT).rstrip("/")

        self.client = httpx.AsyncClient(
            base_url=self.endpoint,
            transport=transport,
            timeout=httpx.Timeout(timeout=60.0, connect=10.0),
            limits=httpx.Limits(max_connections=10, max_keepalive_connections=5)
        )
        logger.info(f"Initialized BrowserRenderingClient with endpoint: {self.endpoint}")

    async def __aenter__(self) -> "BrowserRenderingClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self.client.aclose()

    async def fetch_content(self, url: str) -> str:
        """Fetch the rendered HTML of ``url``.

        Raises:
            WorkerUnavailableError: If the worker cannot be reached
            ClientError: If the worker rejects the request or answers unexpectedly
        """
        logger.info(f"Fetching content from: {url}")
        payload = {
            "url": url,
            "rejectResourceTypes": CONTENT_REJECT_TYPES,
            "waitUntil": "networkidle0",
        }

        try:
            response = await self.client.post("/content", json=payload)
            response.raise_for_status()
        except httpx.ConnectError as e:
            raise WorkerUnavailableError(f"Render worker is unavailable at {self.endpoint}: {e}")
        except httpx.HTTPStatusError as e:
            raise ClientError(
                f"Failed to fetch content: {self._describe(e.response)}",
                status_code=e.response.status_code
            )
        except httpx.HTTPError as e:
            raise ClientError(f"Failed to fetch content: {e}")

        data = self._json(response)
        content = data.get("content")
        if not content:
            logger.error(f"Unexpected response structure: {data}")
            raise ClientError("Unexpected response structure from render worker")

        return content

    async def take_screenshot(
        self,
        url: str,
        width: int = 1280,
        height: int = 800,
        full_page: bool = False,
        wait_until: str = "networkidle0",
        timeout: int = 30000
    ) -> str:
        """Capture a screenshot of ``url`` and return its retrieval locator.

        Args:
            url: Page to capture
            width: Viewport width in pixels
            height: Viewport height in pixels
            full_page: Request a full-page capture
            wait_until: Navigation ready condition
            timeout: Navigation deadline in milliseconds

        Returns:
            Absolute URL of the stored image

        Raises:
            ClientError: If ``url`` is invalid or the worker answers unexpectedly
            WorkerUnavailableError: If the worker cannot be reached
            ScreenshotTimeoutError: If the request exceeds the deadline
        """
        if not _is_http_url(url):
            raise ClientError(f"Invalid URL provided: {url}")

        logger.info(f"Taking screenshot of: {url}")
        payload: Dict[str, Any] = {
            "url": url,
            "width": width,
            "height": height,
            "fullPage": full_page,
            "forceFullPage": full_page,
            "waitUntil": wait_until,
            "timeout": timeout,
        }
        request_timeout = (timeout + TIMEOUT_GRACE_MS) / 1000

        try:
            response = await self.client.post("/screenshot", json=payload, timeout=request_timeout)
            response.raise_for_status()
        except httpx.ConnectError as e:
            raise WorkerUnavailableError(
                f"Render worker is unavailable at {self.endpoint}. "
                f"Check the {ENDPOINT_ENV_VAR} environment variable. ({e})"
            )
        except httpx.TimeoutException:
            raise ScreenshotTimeoutError(
                f"Screenshot request timed out for URL: {url}. Try increasing the timeout value."
            )
        except httpx.HTTPStatusError as e:
            raise ClientError(
                f"Failed to take screenshot: {self._describe(e.response)}",
                status_code=e.response.status_code
            )
        except httpx.HTTPError as e:
            raise ClientError(f"Failed to take screenshot: {e}")

        data = self._json(response)
        locator = data.get("url")
        if not locator:
            logger.error(f"Unexpected response structure: {data}")
            raise ClientError("Screenshot URL not found in render worker response")
        if not _is_http_url(locator):
            raise ClientError(f"Invalid screenshot URL returned: {locator}")

        return locator

    @staticmethod
    def _json(response: httpx.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            raise ClientError("Render worker returned a non-JSON response")
        if not isinstance(data, dict):
            raise ClientError("Unexpected response structure from render worker")
        return data

    @staticmethod
    def _describe(response: httpx.Response) -> str:
        try:
            error = response.json().get("error")
        except (ValueError, AttributeError):
            error = None
        return f"HTTP {response.status_code}: {error or response.text[:200]}"

    def __repr__(self) -> str:
        return f"BrowserRenderingClient(endpoint={self.endpoint})"
