"""Prometheus metrics for tenancy and the audit trail."""

from prometheus_client import Counter, Histogram

# Tenant resolution outcomes: profile, selection, denied, no_session, error
tenant_resolutions_total = Counter(
    "tenant_resolutions_total",
    "Total tenant resolutions by outcome",
    ["outcome"],
)

# Audit trail metrics
audit_write_latency_ms = Histogram(
    "audit_write_latency_ms",
    "Audit log write latency in milliseconds",
    ["entity_type", "outcome"],
    buckets=[5, 10, 25, 50, 100, 250, 500, 1000, 2500],
)

audit_writes_total = Counter(
    "audit_writes_total",
    "Total audit log writes",
    ["entity_type", "action", "outcome"],
)

audit_skipped_total = Counter(
    "audit_skipped_total",
    "Audit entries skipped before writing",
    ["entity_type", "reason"],
)


class PrometheusAuditMetrics:
    """Prometheus-based audit metrics implementation."""

    def record_write(self, entity_type: str, action: str, outcome: str, latency_ms: float) -> None:
        """Record one audit write attempt."""
        audit_writes_total.labels(entity_type=entity_type, action=action, outcome=outcome).inc()
        audit_write_latency_ms.labels(entity_type=entity_type, outcome=outcome).observe(latency_ms)

    def inc_skipped(self, entity_type: str, reason: str) -> None:
        """Increment skipped counter."""
        audit_skipped_total.labels(entity_type=entity_type, reason=reason).inc()
