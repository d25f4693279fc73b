"""API response schemas for the render worker.

These models define the JSON bodies returned by the HTTP surface. Field
names follow the wire format (camelCase) via aliases.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ...models.capture import CaptureResult

ENDPOINTS = ["/content", "/screenshot", "/image/{id}"]


class ScreenshotResponse(BaseModel):
    """Successful screenshot capture."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "url": "https://render.example.com/image/lxk2n4q8a1b2c3d4e5f6g",
                "width": 1280,
                "height": 800,
                "format": "jpeg",
                "fullPage": False,
                "expiresIn": "3600 seconds",
                "id": "lxk2n4q8a1b2c3d4e5f6g"
            }
        }
    )

    url: str = Field(..., description="Retrieval locator for the screenshot")
    width: int
    height: int
    format: str = "jpeg"
    full_page: bool = Field(alias="fullPage")
    expires_in: str = Field(alias="expiresIn", description="Lifetime, e.g. '3600 seconds'")
    id: str

    @classmethod
    def from_result(cls, result: CaptureResult) -> "ScreenshotResponse":
        return cls(
            url=result.url,
            width=result.metadata.width,
            height=result.metadata.height,
            format=result.metadata.format.value,
            full_page=result.metadata.full_page,
            expires_in=f"{result.expires_in} seconds",
            id=result.id,
        )


class ContentResponse(BaseModel):
    """Rendered document markup."""

    content: str


class ErrorResponse(BaseModel):
    """Validation and configuration errors."""

    error: str = Field(..., description="Human-readable error message")


class ScreenshotErrorResponse(ErrorResponse):
    """Capture failure on the screenshot endpoint."""

    details: Optional[str] = Field(default=None, description="Diagnostic detail")
    type: str = "screenshot_error"


class ContentErrorResponse(ErrorResponse):
    """Capture failure on the content endpoint."""

    stack: Optional[str] = Field(default=None, description="Diagnostic stack trace")


class NotFoundResponse(ErrorResponse):
    """Unmatched path."""

    error: str = "Not found"
    endpoints: List[str] = Field(default_factory=lambda: list(ENDPOINTS))


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: datetime
    bindings: Dict[str, str]
    uptime_seconds: float
