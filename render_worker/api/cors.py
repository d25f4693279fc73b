"""Origin allow-list CORS handling.

Unlike a wildcard policy, the worker reflects the caller's origin only when it
is on a fixed allow-list and otherwise advertises the first allow-listed
origin, so browsers on other sites are refused by their own CORS check.
"""

import logging
from typing import Callable, Iterable, Optional, Tuple

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

ALLOW_METHODS = "GET, POST, OPTIONS"
ALLOW_HEADERS = "Content-Type, Authorization"
MAX_AGE = "86400"


def resolve_allowed_origin(origin: Optional[str], allowed_origins: Tuple[str, ...]) -> str:
    """Return ``origin`` if allow-listed, else the first allow-listed origin."""
    if origin and origin in allowed_origins:
        return origin
    return allowed_origins[0]


class AllowListCORSMiddleware(BaseHTTPMiddleware):
    """Answers preflight requests and stamps every response with an allowed origin."""

    def __init__(self, app, allowed_origins: Iterable[str]):
        """Initialize CORS middleware.

        Args:
            app: ASGI application
            allowed_origins: Origin allow-list, fixed for the process lifetime
        """
        super().__init__(app)
        self.allowed_origins: Tuple[str, ...] = tuple(allowed_origins)
        if not self.allowed_origins:
            raise ValueError("At least one allowed origin is required")

        logger.info(f"CORS allow-list: {', '.join(self.allowed_origins)}")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        allow_origin = resolve_allowed_origin(request.headers.get("origin"), self.allowed_origins)

        if request.method == "OPTIONS":
            return Response(
                status_code=204,
                headers={
                    "Access-Control-Allow-Origin": allow_origin,
                    "Access-Control-Allow-Methods": ALLOW_METHODS,
                    "Access-Control-Allow-Headers": ALLOW_HEADERS,
                    "Access-Control-Max-Age": MAX_AGE,
                    "Vary": "Origin",
                },
            )

        response = await call_next(request)
        response.headers["Access-Control-Allow-Origin"] = allow_origin
        response.headers["Vary"] = "Origin"
        return response
