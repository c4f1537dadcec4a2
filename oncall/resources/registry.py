"""In-process resource handler registry (the "bring your own" lookup interface).

Teams register an async handler for their resource pattern at process start:

    registry.register("ord-*", fetch_order_status)

    async def fetch_order_status(resource_id: str) -> dict[str, Any] | None:
        order = await orders_db.get(resource_id)
        if order is None:
            return None
        return {"id": resource_id, "status": order.status, "namespace": f"orders-{order.region}"}

Registrations are not persisted and must be repeated on every start. A
handler that fails or has nothing to say is a capability gap, not an error:
the registry logs it and falls back to what the catalog knows.
"""

import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from pydantic import ValidationError

from oncall.catalog.matcher import matches
from oncall.catalog.models import ResourceInfo
from oncall.observability.metrics import HANDLER_CALL_DURATION, HANDLER_CALLS_TOTAL
from oncall.resources.resolver import OwnershipResolver

logger = logging.getLogger(__name__)

type HandlerResult = ResourceInfo | Mapping[str, Any] | None
type ResourceHandler = Callable[[str], Awaitable[HandlerResult]]

CATALOG_ONLY_NOTE = (
    "No handler registered. This is catalog-only info. "
    "For full resource status, the owning team should register a get_resource handler."
)


def coerce_resource_info(resource_id: str, result: HandlerResult) -> ResourceInfo | None:
    """Normalize a handler's return value. None if it carries no usable status."""
    if result is None or isinstance(result, ResourceInfo):
        return result
    if not isinstance(result, Mapping):
        logger.warning(
            "Handler result for %s is a %s, not a mapping; ignoring it", resource_id, type(result).__name__
        )
        return None
    payload = dict(result)
    if payload.get("id") is None:
        payload["id"] = resource_id
    if payload.get("status") is None:
        logger.warning("Handler result for %s has no status field; ignoring it", resource_id)
        return None
    payload["id"] = str(payload["id"])
    payload["status"] = str(payload["status"])
    try:
        return ResourceInfo.model_validate(payload)
    except ValidationError:
        logger.warning("Handler result for %s is not a valid resource payload", resource_id, exc_info=True)
        return None


class HandlerRegistry:
    """Ordered pattern -> handler map. The first registered matching pattern wins."""

    def __init__(self, resolver: OwnershipResolver) -> None:
        self.resolver = resolver
        self._handlers: dict[str, ResourceHandler] = {}

    def register(self, pattern: str, handler: ResourceHandler) -> None:
        """Register (or replace) the handler for ``pattern``.

        Replacing keeps the pattern's original position in the match order.
        """
        if pattern in self._handlers:
            logger.info("Replacing resource handler for pattern %r", pattern)
        else:
            logger.info("Registered resource handler for pattern %r", pattern)
        self._handlers[pattern] = handler

    @property
    def patterns(self) -> list[str]:
        return list(self._handlers)

    def _find_handler(self, resource_id: str) -> tuple[str, ResourceHandler] | None:
        for pattern, handler in list(self._handlers.items()):
            if matches(pattern, resource_id):
                return pattern, handler
        return None

    async def fetch_live(self, resource_id: str) -> ResourceInfo | None:
        """Ask the matching registered handler for live status.

        The handler is called at most once. Exceptions, ``None`` and payloads
        without a status all come back as None.
        """
        found = self._find_handler(resource_id)
        if found is None:
            return None
        pattern, handler = found

        start = time.monotonic()
        try:
            result = await handler(resource_id)
        except Exception:
            HANDLER_CALLS_TOTAL.labels(source="registry", status="error").inc()
            logger.warning("Resource handler for %r failed on %s", pattern, resource_id, exc_info=True)
            return None
        finally:
            HANDLER_CALL_DURATION.labels(source="registry").observe(time.monotonic() - start)

        info = coerce_resource_info(resource_id, result)
        HANDLER_CALLS_TOTAL.labels(source="registry", status="success" if info else "empty").inc()
        return info

    async def get(self, resource_id: str) -> ResourceInfo | None:
        """Live status if a handler provides it, otherwise catalog-only info, otherwise None.

        Raises:
            CatalogUnavailableError: If the catalog fallback can't read the store.
        """
        info = await self.fetch_live(resource_id)
        if info is not None:
            return info
        return self._lookup_from_catalog(resource_id)

    def find_owner(self, resource_id: str) -> str | None:
        """Owning service name from catalog patterns alone; handlers play no part."""
        return self.resolver.find_owner(resource_id)

    def _lookup_from_catalog(self, resource_id: str) -> ResourceInfo | None:
        found = self.resolver.match(resource_id)
        if found is None:
            return None
        service = found.service
        return ResourceInfo(
            id=resource_id,
            status="unknown",
            type=found.resource.type,
            owner_service=service.name,
            owner_team=service.team,
            resource_description=found.resource.description,
            service_description=service.description,
            dependencies=[dep.model_dump(mode="json", exclude_none=True) for dep in service.dependencies],
            observability=service.observability.model_dump(mode="json", exclude_none=True),
            note=CATALOG_ONLY_NOTE,
        )
