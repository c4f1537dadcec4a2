"""FastAPI backend for the service catalog.

Used by GitOps automation (webhook on service.yaml changes), admin tooling
and anything that wants resource lookups over HTTP. The runtime is built once
at startup and shared across requests.
"""

import hashlib
import hmac
import json
import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel, ValidationError

from oncall.catalog.errors import CatalogUnavailableError
from oncall.catalog.loader import parse_service_documents
from oncall.catalog.models import UPDATABLE_FIELDS, ServiceRecord
from oncall.config import get_settings
from oncall.observability.metrics import API_REQUEST_DURATION, API_REQUESTS_TOTAL, APP_INFO, COMPONENT_HEALTHY
from oncall.resources.resolver import NO_OWNER_ERROR
from oncall.runtime import Runtime, build_runtime

logger = logging.getLogger(__name__)

SERVICE_FILE_NAME = "service.yaml"
MAIN_BRANCH_REF = "refs/heads/main"


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------


class ServiceListResponse(BaseModel):
    count: int
    services: list[dict[str, Any]]


class MessageResponse(BaseModel):
    message: str
    name: str


class ComponentHealth(BaseModel):
    """Health status of a single component."""

    name: str
    status: str
    detail: str | None = None


class HealthResponse(BaseModel):
    """Response body for GET /health."""

    status: str
    backend: str
    registered_handlers: int
    components: list[ComponentHealth]


# ---------------------------------------------------------------------------
# Application lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the runtime once at startup."""
    settings = get_settings()
    APP_INFO.info({"version": "0.1.0", "backend": settings.backend_mode})

    logger.info("Building catalog runtime (backend=%s)...", settings.backend_mode)
    try:
        app.state.runtime = build_runtime(settings)
    except Exception:
        logger.exception("Failed to build catalog runtime at startup")
        raise
    logger.info("Catalog API ready")
    yield
    close = getattr(app.state.runtime.store, "close", None)
    if callable(close):
        close()
    logger.info("Shutting down catalog API")


app = FastAPI(title="On-Call Service Catalog", lifespan=lifespan)


def _runtime(request: Request) -> Runtime:
    return request.app.state.runtime


@app.exception_handler(CatalogUnavailableError)
async def catalog_unavailable_handler(_request: Request, exc: CatalogUnavailableError) -> JSONResponse:
    logger.error("Catalog unavailable: %s", exc)
    return JSONResponse(status_code=503, content={"detail": f"Service catalog unavailable: {exc}"})


@app.middleware("http")
async def record_request_metrics(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    start = time.monotonic()
    response = await call_next(request)
    route = request.scope.get("route")
    endpoint = getattr(route, "path", "unmatched")
    API_REQUESTS_TOTAL.labels(endpoint=endpoint, status=str(response.status_code)).inc()
    API_REQUEST_DURATION.labels(endpoint=endpoint).observe(time.monotonic() - start)
    return response


# ---------------------------------------------------------------------------
# Health / metrics
# ---------------------------------------------------------------------------


@app.get("/metrics")
async def metrics() -> Response:
    """Expose Prometheus metrics in exposition format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.get("/health", response_model=HealthResponse)
async def health(request: Request, response: Response) -> HealthResponse:
    """Check that the catalog store is reachable."""
    runtime = _runtime(request)
    settings = get_settings()

    if runtime.store.check_health():
        component = ComponentHealth(name="catalog_store", status="healthy")
    else:
        component = ComponentHealth(name="catalog_store", status="unhealthy", detail="store unreachable")
    COMPONENT_HEALTHY.labels(component=component.name).set(1.0 if component.status == "healthy" else 0.0)

    if component.status != "healthy":
        response.status_code = 503
    return HealthResponse(
        status=component.status,
        backend=settings.backend_mode,
        registered_handlers=len(runtime.registry.patterns),
        components=[component],
    )


# ---------------------------------------------------------------------------
# Services CRUD
# ---------------------------------------------------------------------------


@app.get("/api/services", response_model=ServiceListResponse)
async def list_services(request: Request, team: str | None = None) -> ServiceListResponse:
    records = sorted(_runtime(request).store.list_services(team=team), key=lambda r: r.name)
    return ServiceListResponse(count=len(records), services=[r.to_payload() for r in records])


@app.get("/api/services/{name}")
async def get_service(name: str, request: Request) -> dict[str, Any]:
    record = _runtime(request).store.get_service(name)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Service '{name}' not found")
    return record.to_payload()


@app.post("/api/services", status_code=201, response_model=MessageResponse)
async def create_service(record: ServiceRecord, request: Request) -> MessageResponse:
    store = _runtime(request).store
    if store.get_service(record.name) is not None:
        raise HTTPException(status_code=409, detail=f"Service '{record.name}' already exists")
    store.upsert_service(record)
    logger.info("Created service %s", record.name)
    return MessageResponse(message="Service created", name=record.name)


@app.put("/api/services/{name}", response_model=MessageResponse)
async def replace_service(name: str, record: ServiceRecord, request: Request) -> MessageResponse:
    if record.name != name:
        raise HTTPException(status_code=400, detail=f"Body name '{record.name}' does not match path '{name}'")
    _runtime(request).store.upsert_service(record)
    logger.info("Upserted service %s", name)
    return MessageResponse(message="Service saved", name=name)


@app.patch("/api/services/{name}", response_model=MessageResponse)
async def update_service(name: str, updates: dict[str, Any], request: Request) -> MessageResponse:
    """Partial update, as sent by CI when a service.yaml field changes."""
    store = _runtime(request).store
    existing = store.get_service(name)
    if existing is None:
        raise HTTPException(status_code=404, detail=f"Service '{name}' not found")

    changes = {k: v for k, v in updates.items() if k in UPDATABLE_FIELDS}
    if not changes:
        raise HTTPException(status_code=400, detail="No valid fields to update")

    merged = existing.model_dump(mode="json") | changes
    try:
        record = ServiceRecord.model_validate(merged)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=json.loads(exc.json())) from exc
    store.upsert_service(record)
    logger.info("Updated service %s (%s)", name, ", ".join(sorted(changes)))
    return MessageResponse(message="Service updated", name=name)


@app.delete("/api/services/{name}", response_model=MessageResponse)
async def delete_service(name: str, request: Request) -> MessageResponse:
    if not _runtime(request).store.delete_service(name):
        raise HTTPException(status_code=404, detail=f"Service '{name}' not found")
    logger.info("Deleted service %s", name)
    return MessageResponse(message="Service deleted", name=name)


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


@app.get("/api/resources/{resource_id}")
async def get_resource(resource_id: str, request: Request, include_context: bool = True) -> dict[str, Any]:
    try:
        return await _runtime(request).lookup.lookup(resource_id, include_context=include_context)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.get("/api/resources/{resource_id}/owner")
async def get_resource_owner(resource_id: str, request: Request) -> dict[str, Any]:
    owner = _runtime(request).registry.find_owner(resource_id)
    if owner is None:
        return {"resource_id": resource_id, "owner": None, "error": NO_OWNER_ERROR}
    return {"resource_id": resource_id, "owner": owner}


# ---------------------------------------------------------------------------
# GitOps webhook
# ---------------------------------------------------------------------------


def _signature_valid(secret: str, body: bytes, signature: str | None) -> bool:
    if not signature:
        return False
    expected = "sha256=" + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature)


def _is_service_file(path: Any) -> bool:
    return isinstance(path, str) and (path == SERVICE_FILE_NAME or path.endswith(f"/{SERVICE_FILE_NAME}"))


def _service_file_changed(payload: dict[str, Any]) -> bool:
    """Whether any commit adds or modifies a service.yaml. Malformed entries are skipped."""
    commits = payload.get("commits")
    if not isinstance(commits, list):
        return False
    for commit in commits:
        if not isinstance(commit, dict):
            continue
        for key in ("added", "modified"):
            paths = commit.get(key)
            if isinstance(paths, list) and any(_is_service_file(p) for p in paths):
                return True
    return False


@app.post("/webhooks/github")
async def github_webhook(request: Request) -> dict[str, Any]:
    """Handle GitHub push events that change a repo's service.yaml.

    When the payload carries the parsed document under ``service`` it is
    upserted directly; otherwise the update is only acknowledged.
    """
    body = await request.body()
    secret = get_settings().github_webhook_secret
    if secret and not _signature_valid(secret, body, request.headers.get("x-hub-signature-256")):
        raise HTTPException(status_code=401, detail="Invalid signature")

    try:
        payload: Any = json.loads(body or b"{}")
    except json.JSONDecodeError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid JSON payload: {exc}") from exc
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Webhook payload must be a JSON object")

    event = request.headers.get("x-github-event", "")
    repository = payload.get("repository")
    repo = repository.get("full_name") if isinstance(repository, dict) else None
    logger.info("GitHub webhook: event=%s repo=%s", event, repo)

    if event != "push" or payload.get("ref") != MAIN_BRANCH_REF or not _service_file_changed(payload):
        return {"received": True, "action": "ignored"}

    if payload.get("service") is None:
        return {"received": True, "action": "catalog_update_triggered", "repo": repo}

    try:
        records = parse_service_documents(payload["service"], source=f"{repo}/{SERVICE_FILE_NAME}")
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    store = _runtime(request).store
    for record in records:
        store.upsert_service(record)
    logger.info("Catalog synced from %s: %s", repo, ", ".join(r.name for r in records))
    return {"received": True, "action": "catalog_updated", "repo": repo, "services": [r.name for r in records]}
