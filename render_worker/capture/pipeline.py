"""Capture pipeline orchestration.

The CapturePipeline validates a capture request, checks that the worker's
bindings are configured, drives one BrowserSession through its lifecycle and,
for screenshots, persists the artifact and builds its retrieval locator.
Validation and configuration checks run before any browser is acquired.
"""

import logging
import time
from typing import Optional
from urllib.parse import urlparse

from ..cache.artifacts import ArtifactCache, generate_artifact_id
from ..config import CaptureSettings
from ..errors import BindingUnavailableError, RequestValidationFailed
from ..models.capture import (
    ArtifactMetadata,
    CaptureResult,
    ContentRequest,
    ImageFormat,
    ScreenshotRequest,
    WaitUntil,
)
from .browser_factory import BrowserLauncher
from .resource_filter import ResourceFilter
from .session import BrowserSession

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = ("http", "https")


def validate_url(url: Optional[str]) -> str:
    """Check that ``url`` is present and a well-formed http(s) URL.

    Raises:
        RequestValidationFailed: If the URL is missing or malformed
    """
    if not url:
        raise RequestValidationFailed("URL is required")

    try:
        parsed = urlparse(url)
    except ValueError:
        raise RequestValidationFailed(f"Invalid URL: {url}")

    if parsed.scheme not in ALLOWED_SCHEMES or not parsed.netloc:
        raise RequestValidationFailed(f"Invalid URL: {url}")

    return url


class CapturePipeline:
    """Runs content and screenshot captures end to end."""

    def __init__(
        self,
        launcher: Optional[BrowserLauncher],
        cache: Optional[ArtifactCache],
        settings: Optional[CaptureSettings] = None
    ):
        """Initialize pipeline.

        Args:
            launcher: Browser binding; None when no browser is configured
            cache: Artifact cache binding; None when no store is configured
            settings: Capture defaults and limits
        """
        self.launcher = launcher
        self.cache = cache
        self.settings = settings or CaptureSettings()

    def _require_launcher(self) -> BrowserLauncher:
        if self.launcher is None:
            raise BindingUnavailableError("Browser binding is not available")
        return self.launcher

    def _require_cache(self) -> ArtifactCache:
        if self.cache is None:
            raise BindingUnavailableError("SCREENSHOTS KV binding is not available")
        return self.cache

    def new_session(self) -> BrowserSession:
        return BrowserSession(self._require_launcher())

    async def capture_content(self, request: ContentRequest) -> str:
        """Render ``request.url`` and return the document markup."""
        url = validate_url(request.url)
        self._require_launcher()

        wait_until = (request.wait_until or WaitUntil.NETWORKIDLE0).to_load_state()
        timeout_ms = self.settings.clamp_timeout(request.timeout)
        resource_filter = ResourceFilter.from_reject_list(request.reject_resource_types)

        logger.info(f"Processing content request for URL: {url}")

        async with self.new_session() as session:
            await session.configure(
                self.settings.default_width,
                self.settings.default_height,
                resource_filter
            )
            await session.navigate(url, wait_until, timeout_ms)
            content = await session.content()

        logger.info(f"Captured {len(content)} characters of content from {url}")
        return content

    async def capture_screenshot(self, request: ScreenshotRequest, origin: str) -> CaptureResult:
        """Capture a screenshot, store it and return its locator.

        Args:
            request: Validated screenshot request
            origin: Serving origin used to build the retrieval locator

        Returns:
            CaptureResult with the locator and stored metadata
        """
        url = validate_url(request.url)
        self._require_launcher()
        cache = self._require_cache()

        width, height = self.settings.clamp_viewport(request.width, request.height)
        timeout_ms = self.settings.clamp_timeout(request.timeout)
        wait_until = (request.wait_until or WaitUntil.NETWORKIDLE2).to_load_state()
        full_page = request.effective_full_page
        resource_filter = ResourceFilter.for_screenshot(
            include_resources=request.include_resources,
            default_reject_types=self.settings.default_reject_types
        )
        image_format = ImageFormat.JPEG

        logger.info(f"Processing screenshot request for URL: {url} ({width}x{height}, full_page={full_page})")

        async with self.new_session() as session:
            await session.configure(width, height, resource_filter)
            await session.navigate(url, wait_until, timeout_ms)
            payload = await session.screenshot(
                full_page=full_page,
                quality=self.settings.jpeg_quality,
                image_type=image_format.value
            )

            artifact_id = generate_artifact_id()
            metadata = ArtifactMetadata(
                content_type=image_format.content_type,
                width=width,
                height=height,
                full_page=full_page,
                format=image_format,
                timestamp=int(time.time() * 1000),
                original_url=url,
            )
            await cache.put(artifact_id, payload, metadata)

        locator = f"{origin.rstrip('/')}/image/{artifact_id}"
        logger.info(f"Screenshot processed successfully, assigned ID: {artifact_id}")

        return CaptureResult(
            id=artifact_id,
            url=locator,
            metadata=metadata,
            expires_in=cache.ttl_seconds,
        )
