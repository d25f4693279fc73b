"""Sub-resource interception for page loads.

The ResourceFilter decides, for every request a page issues while it loads,
whether to let it through or abort it, based on the request's resource type.
"""

import logging
from typing import Iterable, Optional, FrozenSet

from playwright.async_api import Route

logger = logging.getLogger(__name__)

DEFAULT_REJECT_TYPES: FrozenSet[str] = frozenset({"image", "font", "media"})


class ResourceFilter:
    """Allow/abort decision for intercepted sub-resource requests."""

    def __init__(self, reject_types: Iterable[str]):
        """Initialize filter.

        Args:
            reject_types: Resource type categories to abort (image, font, media, ...)
        """
        self.reject_types: FrozenSet[str] = frozenset(t.lower() for t in reject_types)
        self.aborted = 0
        self.allowed = 0

    @classmethod
    def for_screenshot(
        cls,
        include_resources: bool = False,
        default_reject_types: Optional[Iterable[str]] = None
    ) -> "ResourceFilter":
        """Build the screenshot filter: reject heavy types unless resources are included."""
        if include_resources:
            return cls(())
        return cls(DEFAULT_REJECT_TYPES if default_reject_types is None else default_reject_types)

    @classmethod
    def from_reject_list(cls, reject_types: Optional[Iterable[str]]) -> Optional["ResourceFilter"]:
        """Build a filter from a caller-supplied list; None when nothing is rejected."""
        if not reject_types:
            return None
        return cls(reject_types)

    @property
    def is_active(self) -> bool:
        return bool(self.reject_types)

    def should_abort(self, resource_type: Optional[str]) -> bool:
        """Return True if a request of ``resource_type`` must be aborted.

        Unknown or missing types are allowed through.
        """
        if not resource_type:
            return False
        return resource_type.lower() in self.reject_types

    async def handle(self, route: Route) -> None:
        """Playwright route handler: abort or continue one intercepted request."""
        resource_type = route.request.resource_type
        if self.should_abort(resource_type):
            self.aborted += 1
            await route.abort()
        else:
            self.allowed += 1
            await route.continue_()

    def get_stats(self):
        return {
            'reject_types': sorted(self.reject_types),
            'aborted': self.aborted,
            'allowed': self.allowed,
        }

    def __repr__(self) -> str:
        return f"ResourceFilter(reject={sorted(self.reject_types)})"
