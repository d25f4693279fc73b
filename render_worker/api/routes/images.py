"""Artifact serving API route.

``GET /image/{id}`` resolves an identifier issued by the screenshot endpoint
and serves the stored bytes. Possession of the identifier is the only access
check; it stops working when the artifact expires.
"""

import logging
import re

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from ...errors import ArtifactNotFoundError, RenderWorkerError
from ..schemas import NotFoundResponse

logger = logging.getLogger(__name__)

IMAGE_ID_PATTERN = re.compile(r"^[a-z0-9]+$")

router = APIRouter(tags=["Images"])


@router.get(
    "/image/{image_id}",
    summary="Serve a cached screenshot",
    responses={
        200: {"content": {"image/jpeg": {}}, "description": "Stored image bytes"},
        404: {"content": {"text/plain": {}}, "description": "Unknown or expired identifier"},
    },
)
async def serve_image(image_id: str, http_request: Request) -> Response:
    """Serve a stored artifact with its content type."""
    if not IMAGE_ID_PATTERN.match(image_id):
        return JSONResponse(status_code=404, content=NotFoundResponse().model_dump())

    pipeline = http_request.app.state.pipeline
    if pipeline.cache is None:
        return PlainTextResponse("SCREENSHOTS KV binding is not available", status_code=500)

    logger.info(f"Requested image with ID: {image_id}")

    try:
        artifact = await pipeline.cache.get(image_id)
    except ArtifactNotFoundError as e:
        return PlainTextResponse(e.message, status_code=404)
    except RenderWorkerError as e:
        logger.error(f"Error serving image {image_id}: {e.message}")
        return PlainTextResponse(f"Error serving image: {e.message}", status_code=500)

    max_age = pipeline.cache.remaining_ttl(artifact.metadata)
    logger.info(f"Serving image {image_id} with content type: {artifact.metadata.content_type}")

    return Response(
        content=artifact.payload,
        media_type=artifact.metadata.content_type,
        headers={"Cache-Control": f"public, max-age={max_age}"},
    )
