"""
Prometheus metrics for the BoothGuard verification service.
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

verify_requests_total = Counter(
    "verify_requests_total",
    "Scan attempts handled, by terminal outcome",
    ["outcome"],
)
verify_duration_seconds = Histogram(
    "verify_duration_seconds",
    "Time spent handling one scan attempt",
)
audit_write_failures_total = Counter(
    "audit_write_failures_total",
    "Audit entries that could not be appended",
)
audit_anchors_total = Counter(
    "audit_anchors_total",
    "Merkle anchors written over the audit trail",
)


def count_audit_failure() -> None:
    audit_write_failures_total.inc()
