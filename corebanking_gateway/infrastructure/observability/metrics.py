"""Prometheus metrics for core-banking calls, reconciliation and audit writes"""

from prometheus_client import Counter, Histogram

# Bridge metrics
symxchange_request_counter = Counter(
    "symxchange_requests_total",
    "Core banking bridge invocations",
    ["operation", "outcome"],  # outcome: success | validation | transport | fault | business | internal
)

symxchange_latency_histogram = Histogram(
    "symxchange_latency_seconds",
    "SymXchange SOAP round-trip time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# Side effects
reconciliation_failure_counter = Counter(
    "reconciliation_failures_total",
    "Local record updates that failed after a confirmed core banking result",
    ["operation"],
)

audit_write_failure_counter = Counter(
    "audit_write_failures_total",
    "Audit log entries that could not be written",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_bridge_outcome(operation: str, success: bool, failure_kind: str) -> None:
    """Count one bridge invocation by operation and outcome"""
    outcome = "success" if success else failure_kind
    symxchange_request_counter.labels(operation=operation, outcome=outcome).inc()
