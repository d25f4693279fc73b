"""Pydantic models for capture requests and stored artifact metadata.

Request models mirror the JSON bodies accepted by the HTTP surface (camelCase
aliases) and carry the defaults applied when a field is omitted. Clamping to
system maxima happens in the pipeline, where the limits live.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class WaitUntil(str, Enum):
    """Navigation ready conditions accepted from callers."""
    LOAD = "load"
    DOMCONTENTLOADED = "domcontentloaded"
    NETWORKIDLE0 = "networkidle0"
    NETWORKIDLE2 = "networkidle2"
    NETWORKIDLE = "networkidle"
    COMMIT = "commit"

    def to_load_state(self) -> str:
        """Map to the Playwright ``wait_until`` value."""
        if self in (WaitUntil.NETWORKIDLE0, WaitUntil.NETWORKIDLE2, WaitUntil.NETWORKIDLE):
            return "networkidle"
        return self.value


class ImageFormat(str, Enum):
    """Encoded formats an artifact can be stored in."""
    JPEG = "jpeg"
    PNG = "png"

    @property
    def content_type(self) -> str:
        return f"image/{self.value}"


class _CaptureRequestBase(BaseModel):
    """Fields shared by every capture request."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    url: Optional[str] = Field(
        default=None,
        description="Target URL to render"
    )

    wait_until: Optional[WaitUntil] = Field(
        default=None,
        alias="waitUntil",
        description="Navigation ready condition"
    )

    timeout: Optional[int] = Field(
        default=None,
        gt=0,
        description="Navigation deadline in milliseconds"
    )


class ScreenshotRequest(_CaptureRequestBase):
    """Body of ``POST /screenshot``."""

    width: Optional[int] = Field(
        default=None,
        gt=0,
        description="Viewport width in pixels"
    )

    height: Optional[int] = Field(
        default=None,
        gt=0,
        description="Viewport height in pixels"
    )

    full_page: bool = Field(
        default=False,
        alias="fullPage",
        description="Capture the full scrollable page instead of the viewport"
    )

    force_full_page: bool = Field(
        default=False,
        alias="forceFullPage",
        description="Confirm a full-page capture despite its memory cost"
    )

    include_resources: bool = Field(
        default=False,
        alias="includeResources",
        description="Load images, fonts and media instead of aborting them"
    )

    @property
    def effective_full_page(self) -> bool:
        """Full-page capture is honoured only when explicitly forced."""
        return self.full_page and self.force_full_page


class ContentRequest(_CaptureRequestBase):
    """Body of ``POST /content``."""

    reject_resource_types: Optional[List[str]] = Field(
        default=None,
        alias="rejectResourceTypes",
        description="Resource types to abort while the page loads"
    )

    @field_validator('reject_resource_types')
    @classmethod
    def normalize_types(cls, v):
        if v is None:
            return v
        return [t.strip().lower() for t in v if t and t.strip()]


class ArtifactMetadata(BaseModel):
    """Descriptive record stored next to an artifact payload."""

    model_config = ConfigDict(populate_by_name=True)

    content_type: str = Field(alias="contentType")
    width: int
    height: int
    full_page: bool = Field(alias="fullPage")
    format: ImageFormat
    timestamp: int = Field(description="Creation time in milliseconds since the epoch")
    original_url: str = Field(alias="originalUrl")

    @property
    def created_at(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp / 1000, tz=timezone.utc)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class CaptureResult(BaseModel):
    """Outcome of a successful screenshot capture."""

    id: str
    url: str = Field(description="Retrieval locator for the stored artifact")
    metadata: ArtifactMetadata
    expires_in: int = Field(description="Seconds until the artifact expires")
