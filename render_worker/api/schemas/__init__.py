"""API schemas for the render worker.

Request bodies are validated into the models in ``render_worker.models``;
this package holds the response shapes.
"""

from .responses import (
    ENDPOINTS,
    ScreenshotResponse,
    ContentResponse,
    ErrorResponse,
    ScreenshotErrorResponse,
    ContentErrorResponse,
    NotFoundResponse,
    HealthResponse,
)

__all__ = [
    "ENDPOINTS",
    "ScreenshotResponse",
    "ContentResponse",
    "ErrorResponse",
    "ScreenshotErrorResponse",
    "ContentErrorResponse",
    "NotFoundResponse",
    "HealthResponse",
]
