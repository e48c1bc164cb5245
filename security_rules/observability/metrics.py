"""
Prometheus metrics for the security rules client

Counts and times every backend call, and tracks releases and rulesets
left unbound by a failed release.
"""
from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Registry kept separate from the process default
REGISTRY = CollectorRegistry()


backend_requests_total = Counter(
    name="rules_backend_requests_total",
    documentation="Total number of calls made to the rules backend",
    labelnames=["operation", "outcome"],  # outcome: success or an error code
    registry=REGISTRY,
)

backend_request_duration_seconds = Histogram(
    name="rules_backend_request_duration_seconds",
    documentation="Time spent waiting on the rules backend in seconds",
    labelnames=["operation"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
    registry=REGISTRY,
)

releases_total = Counter(
    name="rules_releases_total",
    documentation="Total number of successful ruleset releases",
    labelnames=["target"],  # target: firestore, storage
    registry=REGISTRY,
)

orphaned_rulesets_total = Counter(
    name="rules_orphaned_rulesets_total",
    documentation="Rulesets created by a release whose binding step failed",
    labelnames=["target"],
    registry=REGISTRY,
)


def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics in text exposition format

    Returns:
        Metrics data as bytes
    """
    return generate_latest(REGISTRY)


def record_backend_call(operation: str, outcome: str, duration_seconds: float) -> None:
    """
    Record a completed backend call.

    Args:
        operation: Backend operation name (create_ruleset, get_release, ...)
        outcome: "success" or the classified error code
        duration_seconds: Time spent in the call
    """
    backend_requests_total.labels(operation=operation, outcome=outcome).inc()
    backend_request_duration_seconds.labels(operation=operation).observe(duration_seconds)


def record_release(target: str) -> None:
    releases_total.labels(target=target).inc()


def record_orphaned_ruleset(target: str) -> None:
    orphaned_rulesets_total.labels(target=target).inc()


def get_sample_value(name: str, labels: dict[str, str]) -> float:
    """Read the current value of a sample, 0.0 when it was never recorded."""
    value = REGISTRY.get_sample_value(name, labels)
    return value or 0.0
