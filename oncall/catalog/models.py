"""Pydantic models for service catalog records and resource lookups."""

from typing import Annotated, Any, Literal
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field

ID_PLACEHOLDER = "${id}"

# --- Dependencies (discriminated on "type") ---


class InternalDependency(BaseModel):
    """Another service in this catalog."""

    type: Literal["internal"] = "internal"
    name: str
    critical: bool = False


class DatabaseDependency(BaseModel):
    """An internally managed database."""

    type: Literal["database"] = "database"
    name: str
    critical: bool = False


class ExternalDependency(BaseModel):
    """A third-party API, optionally with a public status page."""

    type: Literal["external"] = "external"
    name: str
    critical: bool = False
    health_endpoint: str | None = None


class AwsDependency(BaseModel):
    """An AWS managed service (RDS, SQS, ...)."""

    type: Literal["aws"] = "aws"
    name: str
    critical: bool = False
    aws_service: Literal["rds", "sqs", "sns", "elasticache", "dynamodb", "s3", "lambda", "elb"]
    aws_resource_id: str
    aws_region: str


Dependency = Annotated[
    InternalDependency | DatabaseDependency | ExternalDependency | AwsDependency,
    Field(discriminator="type"),
]


# --- Service configuration blocks ---


class Observability(BaseModel):
    """Where to find logs, metrics and dashboards. Passed through to the agent untouched."""

    model_config = ConfigDict(extra="allow")

    logs_index: str | None = None
    prometheus_job: str | None = None
    grafana_dashboard: str | None = None
    trace_service: str | None = None


class DeploymentConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    repo: str | None = None
    gitops_path: str | None = None
    argocd_app: str | None = None
    environment: str | None = None


class AutomationPolicy(BaseModel):
    allowed_actions: list[str] = Field(default_factory=list)
    requires_approval: list[str] = Field(default_factory=list)


class ResourcePattern(BaseModel):
    """A family of resource IDs this service is the system of record for."""

    pattern: str = Field(description="Glob over resource IDs, e.g. 'ord-*'")
    type: str
    description: str = ""
    handler_url: str | None = Field(
        default=None,
        description="Optional live-status URL; '${id}' is replaced with the resource ID",
    )

    def handler_url_for(self, resource_id: str) -> str | None:
        if not self.handler_url:
            return None
        return self.handler_url.replace(ID_PLACEHOLDER, quote(resource_id, safe=""))


class ServiceRecord(BaseModel):
    """One catalog entry. ``name`` is the identity and never changes."""

    name: str = Field(min_length=1)
    description: str = ""
    team: str
    slack_channel: str = ""
    pager_alias: str = ""
    pagerduty_service: str | None = None
    language: str | None = None
    observability: Observability = Field(default_factory=Observability)
    dependencies: list[Dependency] = Field(default_factory=list)
    deployment: DeploymentConfig = Field(default_factory=DeploymentConfig)
    automation: AutomationPolicy | None = None
    runbook_path: str | None = None
    resources: list[ResourcePattern] = Field(default_factory=list)

    def depends_on(self, service_name: str) -> bool:
        """Whether this service declares an internal dependency on ``service_name``."""
        return any(dep.type == "internal" and dep.name == service_name for dep in self.dependencies)

    @property
    def purpose(self) -> str:
        """First sentence of the description, for one-line summaries."""
        return self.description.split(".")[0].strip()

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


# Fields a PATCH may touch; name is the identity and is excluded.
UPDATABLE_FIELDS = frozenset(ServiceRecord.model_fields) - {"name"}


class ResourceInfo(BaseModel):
    """Live status of one resource.

    Only ``id`` and ``status`` are fixed. Everything else a handler returns
    (spec, namespace, cluster, error, ...) is kept as-is for the agent.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    status: str

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
