"""Browser capture: launcher, session lifecycle, interception and pipeline."""

from .browser_factory import BrowserConfig, BrowserEngineType, BrowserLauncher
from .resource_filter import ResourceFilter, DEFAULT_REJECT_TYPES
from .session import BrowserSession, SessionState, classify_navigation_error
from .pipeline import CapturePipeline, validate_url

__all__ = [
    "BrowserConfig",
    "BrowserEngineType",
    "BrowserLauncher",
    "ResourceFilter",
    "DEFAULT_REJECT_TYPES",
    "BrowserSession",
    "SessionState",
    "classify_navigation_error",
    "CapturePipeline",
    "validate_url",
]
