"""Resource lookup: live status plus ownership context for one resource ID.

Per call:

    START -> PATTERN_RESOLVED -> LIVE_STATUS_ATTEMPTED -> RESPONSE_ASSEMBLED -> DONE

1. Resolve the ID against catalog resource patterns (type, owner, handler_url).
2. If the pattern declares a handler_url, GET it once (5s timeout by default).
3. Otherwise, or if that produced nothing, ask the in-process handler registry.
4. Nothing live: status is "not_found" with a note saying whether the owner is known.
5. Optionally attach owner context and one-hop related services.

Unknown resources and unreachable handlers are data in the response. Only a
malformed resource ID (ValueError) and CatalogUnavailableError propagate.
"""

import logging
import time
from typing import Any

import httpx

from oncall.catalog.models import ResourceInfo, ServiceRecord
from oncall.observability.metrics import HANDLER_CALL_DURATION, HANDLER_CALLS_TOTAL, RESOURCE_LOOKUPS_TOTAL
from oncall.resources.registry import HandlerRegistry, coerce_resource_info
from oncall.resources.resolver import OwnershipResolver, PatternMatch

logger = logging.getLogger(__name__)

DEFAULT_HANDLER_TIMEOUT_SECONDS = 5.0
NOT_FOUND_STATUS = "not_found"
UNKNOWN_STATUS = "unknown"

NOTE_UNKNOWN_RESOURCE = (
    "No handler registered and resource ID doesn't match any catalog patterns. "
    "Either the resource doesn't exist or the owning service hasn't registered a handler."
)


def _owner_without_status_note(owner: str, handler_failed: bool) -> str:
    if handler_failed:
        return (
            f"Resource pattern is owned by '{owner}', but its live status handler failed (see handler_error) "
            "and no in-process handler returned data. Ownership context is still valid."
        )
    return (
        f"Resource pattern is owned by '{owner}', but no live status is available: the pattern declares "
        "no handler_url and no in-process handler is registered. Ownership context is still valid."
    )


def _owner_context(owner: ServiceRecord) -> dict[str, Any]:
    return {
        "service": owner.name,
        "team": owner.team,
        "description": owner.description,
        "slack_channel": owner.slack_channel,
        "pager_alias": owner.pager_alias,
        "pagerduty_service": owner.pagerduty_service or owner.pager_alias,
        "dependencies": [dep.model_dump(mode="json", exclude_none=True) for dep in owner.dependencies],
        "observability": owner.observability.model_dump(mode="json", exclude_none=True),
    }


def _related_summary(service: ServiceRecord) -> dict[str, str]:
    return {
        "name": service.name,
        "team": service.team,
        "description": service.description,
        "purpose": service.purpose,
    }


class ResourceLookup:
    """Top-level entry point for "what is resource X and who owns it"."""

    def __init__(
        self,
        resolver: OwnershipResolver,
        registry: HandlerRegistry,
        timeout: float = DEFAULT_HANDLER_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.resolver = resolver
        self.registry = registry
        self.timeout = timeout
        self._transport = transport

    async def _fetch_handler_url(self, resource_id: str, url: str) -> tuple[ResourceInfo | None, str | None]:
        """GET a team's live-status URL. Returns (info, handler_error); never raises for HTTP trouble."""
        start = time.monotonic()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url, headers={"Accept": "application/json"})
        except httpx.TimeoutException as e:
            error = f"Handler timed out after {self.timeout}s: {e}"
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            error = f"Handler call failed: {e}"
        else:
            error = None
        finally:
            HANDLER_CALL_DURATION.labels(source="handler_url").observe(time.monotonic() - start)

        if error is None:
            if not response.is_success:
                error = f"Handler returned {response.status_code}"
            else:
                try:
                    data: Any = response.json()
                except ValueError:
                    data = None
                    error = "Handler returned malformed JSON"
                if error is None and not isinstance(data, dict):
                    error = "Handler returned a non-object JSON payload"

        if error is not None:
            HANDLER_CALLS_TOTAL.labels(source="handler_url", status="error").inc()
            logger.warning("Live status handler for %s failed (%s): %s", resource_id, url, error)
            return None, error

        payload = dict(data)
        if not payload.get("status"):
            payload["status"] = UNKNOWN_STATUS
        info = coerce_resource_info(resource_id, payload)
        HANDLER_CALLS_TOTAL.labels(source="handler_url", status="success").inc()
        return info, None

    async def lookup(self, resource_id: str, include_context: bool = True) -> dict[str, Any]:
        """Build the semi-structured resource response for the agent.

        Raises:
            ValueError: If ``resource_id`` is not a non-empty string.
            CatalogUnavailableError: If the catalog store can't be read.
        """
        if not isinstance(resource_id, str) or not resource_id.strip():
            msg = f"resource_id must be a non-empty string, got {resource_id!r}"
            raise ValueError(msg)

        logger.info("Resource lookup: %s (include_context=%s)", resource_id, include_context)

        services = self.resolver.snapshot()
        found: PatternMatch | None = self.resolver.match(resource_id, services)
        logger.debug("%s: PATTERN_RESOLVED owner=%s", resource_id, found.service.name if found else None)

        response: dict[str, Any] = {"resource_id": resource_id}
        handler_url: str | None = None
        if found is not None:
            response["resource_type"] = found.resource.type
            response["resource_pattern"] = found.resource.pattern
            response["resource_description"] = found.resource.description
            response["owner_service"] = found.service.name
            handler_url = found.resource.handler_url_for(resource_id)
            if handler_url:
                response["handler_url"] = handler_url

        info: ResourceInfo | None = None
        handler_error: str | None = None
        outcome = NOT_FOUND_STATUS
        if handler_url:
            info, handler_error = await self._fetch_handler_url(resource_id, handler_url)
            if info is not None:
                outcome = "live_url"
        if info is None:
            info = await self.registry.fetch_live(resource_id)
            if info is not None:
                outcome = "live_registry"
        logger.debug("%s: LIVE_STATUS_ATTEMPTED outcome=%s", resource_id, outcome)
        RESOURCE_LOOKUPS_TOTAL.labels(outcome=outcome).inc()

        if info is not None:
            response["status"] = info.status
            response["resource_data"] = info.to_payload()
        else:
            response["status"] = NOT_FOUND_STATUS
        if handler_error:
            response["handler_error"] = handler_error
        if info is None:
            if found is None:
                response["note"] = NOTE_UNKNOWN_RESOURCE
            else:
                response["note"] = _owner_without_status_note(found.service.name, handler_error is not None)

        if include_context and found is not None:
            response["owner_context"] = _owner_context(found.service)
            related = self.resolver.related_services(found.service, services)
            if related:
                response["related_services"] = [_related_summary(s) for s in related]
        logger.debug("%s: RESPONSE_ASSEMBLED context=%s", resource_id, "owner_context" in response)
        return response
