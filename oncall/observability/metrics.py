"""Prometheus metric definitions for catalog self-instrumentation.

All metrics are module-level singletons registered with the default
prometheus_client registry.  Import them wherever instrumentation is needed.
"""

from prometheus_client import Counter, Gauge, Histogram, Info

# ---------------------------------------------------------------------------
# Histogram bucket definitions
# ---------------------------------------------------------------------------

HANDLER_DURATION_BUCKETS = (0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0)
REQUEST_DURATION_BUCKETS = (0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)

# ---------------------------------------------------------------------------
# Resource lookups
# ---------------------------------------------------------------------------

RESOURCE_LOOKUPS_TOTAL = Counter(
    "oncall_resource_lookups_total",
    "Resource lookups by where the status came from (live_url, live_registry, not_found)",
    labelnames=["outcome"],
)

HANDLER_CALLS_TOTAL = Counter(
    "oncall_handler_calls_total",
    "Live-status handler calls",
    labelnames=["source", "status"],
)

HANDLER_CALL_DURATION = Histogram(
    "oncall_handler_call_duration_seconds",
    "Duration of live-status handler calls in seconds",
    labelnames=["source"],
    buckets=HANDLER_DURATION_BUCKETS,
)

# ---------------------------------------------------------------------------
# API / tools
# ---------------------------------------------------------------------------

API_REQUESTS_TOTAL = Counter(
    "oncall_api_requests_total",
    "Catalog API requests",
    labelnames=["endpoint", "status"],
)

API_REQUEST_DURATION = Histogram(
    "oncall_api_request_duration_seconds",
    "Catalog API request duration in seconds",
    labelnames=["endpoint"],
    buckets=REQUEST_DURATION_BUCKETS,
)

TOOL_CALLS_TOTAL = Counter(
    "oncall_tool_calls_total",
    "Agent tool calls",
    labelnames=["tool_name", "status"],
)

# ---------------------------------------------------------------------------
# Health / info metrics
# ---------------------------------------------------------------------------

COMPONENT_HEALTHY = Gauge(
    "oncall_component_healthy",
    "Whether a dependency component is healthy (1=healthy, 0=unhealthy)",
    labelnames=["component"],
)

APP_INFO = Info(
    "oncall",
    "On-call catalog build information",
)
