"""Data models for render worker requests and artifacts."""

from .capture import (
    WaitUntil,
    ImageFormat,
    ScreenshotRequest,
    ContentRequest,
    ArtifactMetadata,
    CaptureResult,
)

__all__ = [
    "WaitUntil",
    "ImageFormat",
    "ScreenshotRequest",
    "ContentRequest",
    "ArtifactMetadata",
    "CaptureResult",
]
