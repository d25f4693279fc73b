"""Client for calling a render worker and preparing its output for language models."""

from .browser_client import (
    BrowserRenderingClient,
    ClientError,
    ScreenshotTimeoutError,
    WorkerUnavailableError,
)
from .content_processor import ContentProcessor

__all__ = [
    "BrowserRenderingClient",
    "ClientError",
    "ScreenshotTimeoutError",
    "WorkerUnavailableError",
    "ContentProcessor",
]
