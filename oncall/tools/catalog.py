"""LangChain tools for querying the service catalog and resolving resource ownership.

The tools close over an explicit ``Runtime`` (see ``build_catalog_tools``)
instead of reaching for global state. Every tool returns a JSON string; a
missing service or resource is reported inside that JSON, and only an
unreachable catalog store becomes a ToolException.
"""

import json
import logging
from typing import Any

from langchain_core.tools import BaseTool, ToolException, tool  # pyright: ignore[reportUnknownVariableType]
from pydantic import BaseModel, Field

from oncall.catalog.errors import CatalogUnavailableError
from oncall.observability.metrics import TOOL_CALLS_TOTAL
from oncall.resources.resolver import NO_OWNER_ERROR
from oncall.runtime import Runtime

logger = logging.getLogger(__name__)

MAX_RESOURCE_ID_LENGTH = 256


# --- Input schemas ---


class ServiceInput(BaseModel):
    service: str = Field(description="Service name to look up (e.g. 'order-service')", min_length=1)


class ListServicesInput(BaseModel):
    team: str | None = Field(default=None, description="Filter by team name. Omit to list every service.")


class GetDependenciesInput(BaseModel):
    service: str = Field(description="Service name", min_length=1)
    include_transitive: bool = Field(
        default=False,
        description="Include dependencies of internal dependencies (one level deep)",
    )


class GetResourceInput(BaseModel):
    resource_id: str = Field(
        description="Resource ID to look up (e.g. 'ord-1234', 'usr-5678')",
        min_length=1,
        max_length=MAX_RESOURCE_ID_LENGTH,
    )
    include_context: bool = Field(
        default=True,
        description="Include service catalog context (owner, dependencies, observability, related services)",
    )


class FindResourceOwnerInput(BaseModel):
    resource_id: str = Field(
        description="Resource ID to find the owner for",
        min_length=1,
        max_length=MAX_RESOURCE_ID_LENGTH,
    )


# --- Helpers ---


def _result(tool_name: str, payload: dict[str, Any]) -> str:
    TOOL_CALLS_TOTAL.labels(tool_name=tool_name, status="success").inc()
    return json.dumps(payload, indent=2)


def _catalog_unavailable(tool_name: str, exc: CatalogUnavailableError) -> ToolException:
    TOOL_CALLS_TOTAL.labels(tool_name=tool_name, status="error").inc()
    logger.error("%s failed, catalog unavailable: %s", tool_name, exc)
    return ToolException(f"Service catalog unavailable: {exc}")


def _service_not_found(service: str) -> dict[str, Any]:
    return {
        "error": f"Service '{service}' not found in catalog",
        "suggestion": "Check the service name or list all services",
    }


# --- Tool descriptions ---

TOOL_DESCRIPTION_SERVICE_CATALOG = (
    "Get the full catalog entry for a service: team, Slack channel, pager alias, dependencies, "
    "observability config (log index, Prometheus job, dashboards), deployment info, automation "
    "policy and the resource ID patterns it is the system of record for."
)

TOOL_DESCRIPTION_LIST_SERVICES = "List all services in the catalog, optionally filtered by team."

TOOL_DESCRIPTION_DEPENDENCIES = (
    "Get what a service depends on (internal services, databases, external APIs, AWS resources), "
    "with a critical flag per dependency. Set include_transitive to also see the dependencies of "
    "its internal dependencies."
)

TOOL_DESCRIPTION_DEPENDENTS = (
    "Reverse dependency lookup: which services depend on the given service. "
    "Use this to size the blast radius, e.g. 'if auth-service is down, what else breaks?'."
)

TOOL_DESCRIPTION_ESCALATION = "Get escalation info for a service: team, Slack channel, pager alias."

TOOL_DESCRIPTION_GET_RESOURCE = (
    "Get a resource's status and context by ID. This is the main tool for debugging a stuck "
    "resource (order, user account, session, ...).\n\n"
    "Returns the resource's live status when the owning service exposes one, plus the owner "
    "service's team, dependencies and observability config and the services directly related "
    "to it. The resource_data field is semi-structured: look in it for namespace, cluster, error "
    "and similar hints.\n\n"
    "status 'not_found' with owner_context still present means the owner is known but exposes no "
    "live status; without owner_context it means no service claims this ID."
)

TOOL_DESCRIPTION_FIND_OWNER = (
    "Find which service owns a resource ID by matching it against the catalog's resource patterns. "
    "Quick lookup to decide where to investigate; does not fetch live status."
)


# --- Tools ---


def build_catalog_tools(runtime: Runtime) -> list[BaseTool]:
    """Create the catalog tools bound to ``runtime``."""
    store = runtime.store

    @tool("get_service_catalog", args_schema=ServiceInput)
    async def get_service_catalog(service: str) -> str:
        """Get the catalog entry for a service. See TOOL_DESCRIPTION_SERVICE_CATALOG."""
        logger.info("Catalog lookup: %s", service)
        try:
            record = store.get_service(service)
        except CatalogUnavailableError as e:
            raise _catalog_unavailable("get_service_catalog", e) from e
        if record is None:
            return _result("get_service_catalog", _service_not_found(service))
        return _result("get_service_catalog", record.to_payload())

    @tool("list_services", args_schema=ListServicesInput)
    async def list_services(team: str | None = None) -> str:
        """List catalog services. See TOOL_DESCRIPTION_LIST_SERVICES."""
        logger.info("Listing services (team=%s)", team)
        try:
            records = store.list_services(team=team)
        except CatalogUnavailableError as e:
            raise _catalog_unavailable("list_services", e) from e
        records = sorted(records, key=lambda r: r.name)
        return _result(
            "list_services",
            {
                "count": len(records),
                "services": [{"name": r.name, "team": r.team, "slack_channel": r.slack_channel} for r in records],
            },
        )

    @tool("get_dependencies", args_schema=GetDependenciesInput)
    async def get_dependencies(service: str, include_transitive: bool = False) -> str:
        """Get a service's dependencies. See TOOL_DESCRIPTION_DEPENDENCIES."""
        logger.info("Dependencies lookup: %s (transitive=%s)", service, include_transitive)
        try:
            record = store.get_service(service)
            if record is None:
                return _result("get_dependencies", {"error": f"Service '{service}' not found"})

            result: dict[str, Any] = {
                "service": service,
                "dependencies": [d.model_dump(mode="json", exclude_none=True) for d in record.dependencies],
            }
            if include_transitive:
                transitive: dict[str, list[dict[str, Any]]] = {}
                for dep in record.dependencies:
                    if dep.type != "internal":
                        continue
                    dep_record = store.get_service(dep.name)
                    if dep_record is not None:
                        transitive[dep.name] = [
                            d.model_dump(mode="json", exclude_none=True) for d in dep_record.dependencies
                        ]
                result["transitive"] = transitive
        except CatalogUnavailableError as e:
            raise _catalog_unavailable("get_dependencies", e) from e
        return _result("get_dependencies", result)

    @tool("get_dependents", args_schema=ServiceInput)
    async def get_dependents(service: str) -> str:
        """Find services that depend on a service. See TOOL_DESCRIPTION_DEPENDENTS."""
        logger.info("Dependents lookup: %s", service)
        try:
            records = store.list_services()
        except CatalogUnavailableError as e:
            raise _catalog_unavailable("get_dependents", e) from e

        dependents: list[dict[str, Any]] = []
        for record in records:
            for dep in record.dependencies:
                if dep.name == service:
                    dependents.append({"name": record.name, "team": record.team, "critical": dep.critical})
                    break
        return _result(
            "get_dependents",
            {"service": service, "dependent_count": len(dependents), "dependents": dependents},
        )

    @tool("get_escalation_path", args_schema=ServiceInput)
    async def get_escalation_path(service: str) -> str:
        """Get who to page for a service. See TOOL_DESCRIPTION_ESCALATION."""
        logger.info("Escalation lookup: %s", service)
        try:
            record = store.get_service(service)
        except CatalogUnavailableError as e:
            raise _catalog_unavailable("get_escalation_path", e) from e
        if record is None:
            return _result("get_escalation_path", {"error": f"Service '{service}' not found"})
        return _result(
            "get_escalation_path",
            {
                "service": service,
                "team": record.team,
                "slack_channel": record.slack_channel,
                "pager_alias": record.pager_alias,
                "escalation_command": f"pd trigger -s {record.pager_alias}",
            },
        )

    @tool("get_resource", args_schema=GetResourceInput)
    async def get_resource(resource_id: str, include_context: bool = True) -> str:
        """Get resource status with ownership context. See TOOL_DESCRIPTION_GET_RESOURCE."""
        try:
            response = await runtime.lookup.lookup(resource_id, include_context=include_context)
        except CatalogUnavailableError as e:
            raise _catalog_unavailable("get_resource", e) from e
        except ValueError as e:
            TOOL_CALLS_TOTAL.labels(tool_name="get_resource", status="error").inc()
            raise ToolException(str(e)) from e
        return _result("get_resource", response)

    @tool("find_resource_owner", args_schema=FindResourceOwnerInput)
    async def find_resource_owner(resource_id: str) -> str:
        """Find which service owns a resource ID. See TOOL_DESCRIPTION_FIND_OWNER."""
        logger.info("Owner lookup: %s", resource_id)
        try:
            owner_name = runtime.registry.find_owner(resource_id)
            service = store.get_service(owner_name) if owner_name else None
        except CatalogUnavailableError as e:
            raise _catalog_unavailable("find_resource_owner", e) from e

        if owner_name is None:
            return _result(
                "find_resource_owner",
                {
                    "resource_id": resource_id,
                    "owner": None,
                    "error": NO_OWNER_ERROR,
                },
            )
        if service is None:
            # Deleted between the pattern scan and the fetch.
            return _result(
                "find_resource_owner",
                {
                    "resource_id": resource_id,
                    "owner": owner_name,
                    "error": "Service found in pattern match but not in catalog",
                },
            )
        return _result(
            "find_resource_owner",
            {
                "resource_id": resource_id,
                "owner": {
                    "service": service.name,
                    "team": service.team,
                    "description": service.description,
                    "slack_channel": service.slack_channel,
                    "dependencies": [d.name for d in service.dependencies],
                },
            },
        )

    descriptions: dict[str, str] = {
        "get_service_catalog": TOOL_DESCRIPTION_SERVICE_CATALOG,
        "list_services": TOOL_DESCRIPTION_LIST_SERVICES,
        "get_dependencies": TOOL_DESCRIPTION_DEPENDENCIES,
        "get_dependents": TOOL_DESCRIPTION_DEPENDENTS,
        "get_escalation_path": TOOL_DESCRIPTION_ESCALATION,
        "get_resource": TOOL_DESCRIPTION_GET_RESOURCE,
        "find_resource_owner": TOOL_DESCRIPTION_FIND_OWNER,
    }
    tools: list[BaseTool] = [
        get_service_catalog,
        list_services,
        get_dependencies,
        get_dependents,
        get_escalation_path,
        get_resource,
        find_resource_owner,
    ]
    for t in tools:
        t.description = descriptions[t.name]
        t.handle_tool_error = True
    return tools
