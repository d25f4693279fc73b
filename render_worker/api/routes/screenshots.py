"""Screenshot capture API route.

``POST /screenshot`` renders a page, stores a JPEG in the artifact cache and
returns a short-lived retrieval locator instead of the image bytes.
"""

import logging
import traceback

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ...capture.pipeline import CapturePipeline
from ...errors import BindingUnavailableError, RequestValidationFailed
from ...models.capture import ScreenshotRequest
from ..bindings import get_pipeline, get_public_origin, parse_body
from ..schemas import ErrorResponse, ScreenshotErrorResponse, ScreenshotResponse

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Screenshots"],
    responses={
        400: {"model": ErrorResponse, "description": "Bad Request"},
        500: {"model": ScreenshotErrorResponse, "description": "Capture Failed"},
    }
)


@router.post(
    "/screenshot",
    response_model=ScreenshotResponse,
    response_model_by_alias=True,
    summary="Capture a screenshot",
    description="""
    Render a page in a fresh headless browser and store a JPEG screenshot.

    The viewport is clamped to 1600x1200 and the navigation deadline to 60
    seconds. Images, fonts and media are not loaded unless
    `includeResources` is set. A full-page capture requires both `fullPage`
    and `forceFullPage`.

    The returned `url` serves the image until it expires.
    """,
)
async def take_screenshot(
    http_request: Request,
    pipeline: CapturePipeline = Depends(get_pipeline),
):
    """Capture, store and return the retrieval locator."""
    request_id = getattr(http_request.state, "request_id", None)

    try:
        body = await parse_body(http_request, ScreenshotRequest)
        result = await pipeline.capture_screenshot(body, origin=get_public_origin(http_request))

    except RequestValidationFailed as e:
        return JSONResponse(status_code=e.status_code, content=ErrorResponse(error=e.message).model_dump())

    except BindingUnavailableError as e:
        logger.error(f"Screenshot binding missing: {e.message}", extra={"request_id": request_id})
        return JSONResponse(status_code=e.status_code, content=ErrorResponse(error=e.message).model_dump())

    except Exception as e:
        logger.error(
            f"Error in screenshot process: {e}",
            extra={"request_id": request_id, "cause": getattr(e, "cause", None)},
            exc_info=True
        )
        return JSONResponse(
            status_code=getattr(e, "status_code", 500),
            content=ScreenshotErrorResponse(
                error=getattr(e, "message", None) or str(e) or type(e).__name__,
                details="".join(traceback.format_exception(type(e), e, e.__traceback__)),
            ).model_dump()
        )

    logger.info(
        f"Screenshot stored as {result.id}",
        extra={"request_id": request_id, "artifact_id": result.id}
    )
    return JSONResponse(content=ScreenshotResponse.from_result(result).model_dump(by_alias=True))
