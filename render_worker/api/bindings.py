"""Worker bindings and request-scoped dependencies.

Bindings are the external capabilities the worker needs: a browser launcher
and a key-value store for screenshots. Either can be absent, in which case
requests that need it fail with a configuration error instead of a runtime
error.
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional, Type, TypeVar

from fastapi import Request
from pydantic import BaseModel, ValidationError

from ..cache.artifacts import ArtifactCache
from ..cache.storage import KeyValueStore, create_store
from ..capture.browser_factory import BrowserConfig, BrowserLauncher
from ..capture.pipeline import CapturePipeline
from ..config import WorkerConfig
from ..errors import RequestValidationFailed

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass
class WorkerBindings:
    """External capabilities available to the worker."""
    browser: Optional[BrowserLauncher] = None
    screenshots: Optional[KeyValueStore] = None

    async def close(self) -> None:
        if self.browser is not None:
            await self.browser.stop()
        if self.screenshots is not None:
            await self.screenshots.close()


def build_bindings(config: WorkerConfig) -> WorkerBindings:
    """Create bindings from configuration."""
    bindings = WorkerBindings()

    if config.browser.enabled:
        bindings.browser = BrowserLauncher(BrowserConfig.from_settings(config.browser))
    else:
        logger.warning("Browser binding disabled by configuration")

    if config.cache.enabled:
        bindings.screenshots = create_store(config.cache)
    else:
        logger.warning("Screenshot store binding disabled by configuration")

    return bindings


def build_pipeline(config: WorkerConfig, bindings: WorkerBindings) -> CapturePipeline:
    """Wire the capture pipeline to the configured bindings."""
    cache = None
    if bindings.screenshots is not None:
        cache = ArtifactCache(bindings.screenshots, ttl_seconds=config.cache.ttl_seconds)

    return CapturePipeline(bindings.browser, cache, config.capture)


def get_pipeline(request: Request) -> CapturePipeline:
    """Dependency to provide the application's capture pipeline."""
    return request.app.state.pipeline


def get_public_origin(request: Request) -> str:
    """Origin used when building retrieval locators."""
    configured = request.app.state.config.server.public_origin
    if configured:
        return configured.rstrip("/")
    return str(request.base_url).rstrip("/")


async def parse_body(request: Request, model: Type[ModelT]) -> ModelT:
    """Read a JSON body and validate it into ``model``.

    Raises:
        RequestValidationFailed: If the body is not a JSON object or fails validation
    """
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise RequestValidationFailed("Request body must be valid JSON")

    if not isinstance(body, dict):
        raise RequestValidationFailed("Request body must be a JSON object")

    try:
        return model.model_validate(body)
    except ValidationError as e:
        first = e.errors()[0]
        field_path = ".".join(str(loc) for loc in first["loc"])
        raise RequestValidationFailed(f"Invalid value for {field_path}: {first['msg']}")
