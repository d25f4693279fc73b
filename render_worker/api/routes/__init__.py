"""API routes for the render worker."""

from .content import router as content_router
from .screenshots import router as screenshots_router
from .images import router as images_router

__all__ = [
    "content_router",
    "screenshots_router",
    "images_router",
]
