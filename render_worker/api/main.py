"""FastAPI application for the render worker.

This module configures the FastAPI application with bindings, CORS
allow-list handling, request logging and error handling.
"""

import logging
import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import __version__
from ..config import WorkerConfig, get_config
from ..errors import RenderWorkerError
from .bindings import WorkerBindings, build_bindings, build_pipeline
from .cors import AllowListCORSMiddleware
from .routes import content_router, images_router, screenshots_router
from .schemas import ErrorResponse, HealthResponse, NotFoundResponse


# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

APP_TITLE = "Render Worker"
APP_DESCRIPTION = """
Render Worker exposes a headless browser over HTTP.

## Endpoints

* **POST /content**: render a page and return its HTML
* **POST /screenshot**: render a page, store a JPEG and return a short-lived link
* **GET /image/{id}**: serve a stored screenshot until it expires
"""


def create_app(
    config: Optional[WorkerConfig] = None,
    bindings: Optional[WorkerBindings] = None
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Worker configuration; loaded from file and environment when omitted
        bindings: Browser and store bindings; built from ``config`` when omitted

    Returns:
        Configured FastAPI application instance
    """
    config = config or get_config()
    bindings = bindings if bindings is not None else build_bindings(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"{APP_TITLE} {__version__} starting")
        yield
        await bindings.close()
        logger.info(f"{APP_TITLE} stopped")

    app = FastAPI(
        title=APP_TITLE,
        description=APP_DESCRIPTION,
        version=__version__,
        docs_url="/docs",
        redoc_url=None,
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.bindings = bindings
    app.state.pipeline = build_pipeline(config, bindings)
    app.state.start_time = datetime.utcnow()

    app.add_middleware(AllowListCORSMiddleware, allowed_origins=config.cors.allowed_origins)

    # Add request tracking middleware
    @app.middleware("http")
    async def add_request_id_and_logging(request: Request, call_next):
        """Add request ID and logging middleware."""
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.time()
        logger.info(
            f"Request started: {request.method} {request.url.path}",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "client_host": request.client.host if request.client else None,
            }
        )

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id

            duration = time.time() - start_time
            logger.info(
                f"Request completed: {request.method} {request.url.path} - {response.status_code}",
                extra={
                    "request_id": request_id,
                    "status_code": response.status_code,
                    "duration_ms": round(duration * 1000, 2),
                }
            )

            return response

        except Exception as e:
            duration = time.time() - start_time
            logger.error(
                f"Request failed: {request.method} {request.url.path} - {str(e)}",
                extra={
                    "request_id": request_id,
                    "error": str(e),
                    "duration_ms": round(duration * 1000, 2),
                },
                exc_info=True
            )
            raise

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Unmatched routes list the valid endpoints; other HTTP errors keep their status."""
        if exc.status_code in (404, 405):
            return JSONResponse(status_code=404, content=NotFoundResponse().model_dump())

        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(error=str(exc.detail)).model_dump(),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Malformed path or query parameters."""
        errors = exc.errors()
        message = errors[0]["msg"] if errors else "Request validation failed"
        return JSONResponse(status_code=400, content=ErrorResponse(error=message).model_dump())

    @app.exception_handler(RenderWorkerError)
    async def worker_exception_handler(request: Request, exc: RenderWorkerError):
        """Worker errors that escaped a route keep their mapped status."""
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(error=exc.message).model_dump()
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        request_id = getattr(request.state, "request_id", None)

        logger.error(
            f"Unhandled exception in request {request_id}: {str(exc)}",
            exc_info=True
        )

        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error="An unexpected error occurred").model_dump()
        )

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
        description="Reports which bindings are configured and how long the worker has been up"
    )
    async def health_check():
        """Health check endpoint for monitoring and operational purposes."""
        uptime = (datetime.utcnow() - app.state.start_time).total_seconds()

        bound = {
            "browser": "configured" if bindings.browser is not None else "unavailable",
            "screenshots": "configured" if bindings.screenshots is not None else "unavailable",
        }
        overall_status = "healthy" if all(v == "configured" for v in bound.values()) else "degraded"

        return HealthResponse(
            status=overall_status,
            version=__version__,
            timestamp=datetime.utcnow(),
            bindings=bound,
            uptime_seconds=uptime
        )

    app.include_router(content_router)
    app.include_router(screenshots_router)
    app.include_router(images_router)

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    config = get_config()
    uvicorn.run(
        "render_worker.api.main:app",
        host=config.server.host,
        port=config.server.port,
        log_level="info",
        access_log=True,
    )
