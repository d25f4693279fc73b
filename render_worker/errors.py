"""Error taxonomy for capture, storage and retrieval failures.

Every failure the worker can report to a caller is a subclass of
RenderWorkerError. Each class carries the HTTP status it maps to so the
API layer can convert it without inspecting messages.
"""

from typing import Optional


class RenderWorkerError(Exception):
    """Base class for all worker errors."""

    status_code: int = 500

    def __init__(self, message: str, cause: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class RequestValidationFailed(RenderWorkerError):
    """Caller supplied a missing or malformed input. No resource acquired."""

    status_code = 400


class BindingUnavailableError(RenderWorkerError):
    """A required binding (browser launcher or artifact store) is not configured."""

    status_code = 500


class CaptureError(RenderWorkerError):
    """Base class for failures while a browser session is live."""

    status_code = 500


class LaunchError(CaptureError):
    """Browser could not be launched within the launch deadline."""


class NavigationTimeoutError(CaptureError):
    """Navigation did not reach its ready condition before the deadline."""

    def __init__(self, message: str):
        super().__init__(message, cause="navigation_timeout")


class TargetUnreachableError(CaptureError):
    """Target host could not be resolved or refused the connection."""

    def __init__(self, message: str):
        super().__init__(message, cause="unreachable")


class BrowserError(CaptureError):
    """Any other browser-side failure (crash, protocol error, capture failure)."""

    def __init__(self, message: str):
        super().__init__(message, cause="browser_error")


class CacheUnavailableError(RenderWorkerError):
    """The backing key-value store rejected or failed a write."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message, cause="cache_unavailable")


class ArtifactNotFoundError(RenderWorkerError):
    """Identifier is unknown, expired, or only one of its records survives."""

    status_code = 404
