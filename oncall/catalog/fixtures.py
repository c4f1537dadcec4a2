"""Built-in catalog served in mock mode (BACKEND_MODE=mock) and used by tests."""

from typing import Any

from oncall.catalog.models import ServiceRecord

MOCK_SERVICES: list[dict[str, Any]] = [
    {
        "name": "user-service",
        "description": (
            "System of record for user accounts. Handles registration, authentication, and profile management."
        ),
        "team": "payments",
        "slack_channel": "#payments-oncall",
        "pager_alias": "payments-escalation",
        "pagerduty_service": "user-service-prod",
        "language": "java",
        "observability": {
            "grafana_dashboard": "https://grafana.internal/d/user-service",
            "grafana_uid": "user-service-prod",
            "logs_index": "prod-user-service-*",
            "prometheus_job": "user-service",
        },
        "dependencies": [
            {"name": "auth-service", "type": "internal", "critical": True},
            {"name": "postgres-users", "type": "database", "critical": True},
        ],
        "deployment": {
            "repo": "github.com/acme/user-service",
            "gitops_path": "deploy/prod/deployment.yaml",
            "argocd_app": "user-service-prod",
            "environment": "production",
        },
        "automation": {
            "allowed_actions": ["restart_pod", "scale_up"],
            "requires_approval": ["rollback"],
        },
        "runbook_path": "/runbooks/user-service/",
        "resources": [
            {
                "pattern": "usr-*",
                "type": "user-account",
                "description": "User account resource. Contains profile, preferences, and auth tokens.",
            },
        ],
    },
    {
        "name": "auth-service",
        "description": "Authentication and authorization service. Handles login, tokens, and permissions.",
        "team": "identity",
        "slack_channel": "#identity-oncall",
        "pager_alias": "identity-escalation",
        "pagerduty_service": "auth-service-prod",
        "language": "go",
        "observability": {
            "grafana_dashboard": "https://grafana.internal/d/auth-service",
            "logs_index": "prod-auth-service-*",
            "prometheus_job": "auth-service",
        },
        "dependencies": [
            {"name": "postgres-auth", "type": "database", "critical": True},
            {"name": "okta", "type": "external", "critical": True, "health_endpoint": "https://status.okta.com"},
        ],
        "deployment": {
            "repo": "github.com/acme/auth-service",
            "gitops_path": "deploy/prod/deployment.yaml",
            "argocd_app": "auth-service-prod",
            "environment": "production",
        },
        "automation": {
            "allowed_actions": ["restart_pod"],
            "requires_approval": ["rollback", "scale_up"],
        },
        "runbook_path": "/runbooks/auth-service/",
        "resources": [
            {
                "pattern": "tok-*",
                "type": "auth-token",
                "description": "Authentication token. Short-lived, tied to user session.",
            },
            {
                "pattern": "sess-*",
                "type": "session",
                "description": "User session. Tracks login state and refresh tokens.",
            },
        ],
    },
    {
        "name": "order-service",
        "description": (
            "System of record for customer orders. Handles order lifecycle from creation to fulfillment."
        ),
        "team": "commerce",
        "slack_channel": "#commerce-oncall",
        "pager_alias": "commerce-escalation",
        "pagerduty_service": "order-service-prod",
        "language": "java",
        "observability": {
            "grafana_dashboard": "https://grafana.internal/d/order-service",
            "logs_index": "prod-order-service-*",
            "prometheus_job": "order-service",
        },
        "dependencies": [
            {"name": "user-service", "type": "internal", "critical": True},
            {"name": "inventory-service", "type": "internal", "critical": True},
            {
                "name": "orders-queue",
                "type": "aws",
                "critical": False,
                "aws_service": "sqs",
                "aws_resource_id": "arn:aws:sqs:us-east-1:123456789012:orders",
                "aws_region": "us-east-1",
            },
        ],
        "deployment": {
            "repo": "github.com/acme/order-service",
            "gitops_path": "deploy/prod/deployment.yaml",
            "environment": "production",
        },
        "resources": [
            {
                "pattern": "ord-*",
                "type": "order",
                "description": (
                    "Customer order. May spawn fulfillment workloads on data plane. "
                    "Common issues: stuck in PENDING when inventory service is slow."
                ),
            },
        ],
    },
    {
        "name": "inventory-service",
        "description": "Tracks stock levels per warehouse. Reserves items for pending orders.",
        "team": "commerce",
        "slack_channel": "#commerce-oncall",
        "pager_alias": "commerce-escalation",
        "language": "go",
        "observability": {
            "logs_index": "prod-inventory-service-*",
            "prometheus_job": "inventory-service",
        },
        "dependencies": [
            {"name": "postgres-inventory", "type": "database", "critical": True},
        ],
        "deployment": {"repo": "github.com/acme/inventory-service", "environment": "production"},
        "resources": [
            {
                "pattern": "inv-*",
                "type": "stock-reservation",
                "description": "Stock reservation held for an order until it ships or expires.",
            },
        ],
    },
]


def mock_service_records() -> list[ServiceRecord]:
    """Fresh validated copies of the mock catalog, in catalog order."""
    return [ServiceRecord.model_validate(raw) for raw in MOCK_SERVICES]
