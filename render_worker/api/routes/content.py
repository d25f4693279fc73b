"""Rendered content API route."""

import logging
import traceback

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ...capture.pipeline import CapturePipeline
from ...errors import BindingUnavailableError, RequestValidationFailed
from ...models.capture import ContentRequest
from ..bindings import get_pipeline, parse_body
from ..schemas import ContentErrorResponse, ContentResponse, ErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Content"],
    responses={
        400: {"model": ErrorResponse, "description": "Bad Request"},
        500: {"model": ContentErrorResponse, "description": "Render Failed"},
    }
)


@router.post(
    "/content",
    response_model=ContentResponse,
    summary="Fetch rendered page markup",
    description="Render a page in a fresh headless browser and return the resulting HTML.",
)
async def fetch_content(
    http_request: Request,
    pipeline: CapturePipeline = Depends(get_pipeline),
):
    """Render ``url`` and return the full document markup."""
    request_id = getattr(http_request.state, "request_id", None)

    try:
        body = await parse_body(http_request, ContentRequest)
        content = await pipeline.capture_content(body)

    except (RequestValidationFailed, BindingUnavailableError) as e:
        return JSONResponse(status_code=e.status_code, content=ErrorResponse(error=e.message).model_dump())

    except Exception as e:
        logger.error(
            f"Error fetching content: {e}",
            extra={"request_id": request_id, "cause": getattr(e, "cause", None)},
            exc_info=True
        )
        return JSONResponse(
            status_code=getattr(e, "status_code", 500),
            content=ContentErrorResponse(
                error=getattr(e, "message", None) or str(e) or type(e).__name__,
                stack="".join(traceback.format_exception(type(e), e, e.__traceback__)),
            ).model_dump()
        )

    return ContentResponse(content=content)
