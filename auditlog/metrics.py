"""Prometheus counters derived from parsed audit log records."""

import threading
from urllib.parse import unquote, urlsplit

from prometheus_client import REGISTRY, CollectorRegistry, Counter

from auditlog.models import AuditLog

UNKNOWN = "unknown"


def request_labels(record: AuditLog) -> tuple[str, str, str]:
    """Return (method, host, path) for a record, 'unknown' where absent."""
    request = record.transaction.request
    if request is None:
        return UNKNOWN, UNKNOWN, UNKNOWN
    try:
        uri = urlsplit(request.uri)
    except ValueError:
        return request.method, UNKNOWN, UNKNOWN
    return request.method, uri.netloc, unquote(uri.path)


class AuditMetrics:
    """Transaction and rule violation counters.

    Pass a private CollectorRegistry to keep instances independent (tests);
    the default registers on the process-wide registry.
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        self.registry = registry if registry is not None else REGISTRY
        self.transactions = Counter(
            "audit_log_transactions",
            "The total number of audit log transactions processed",
            ["status_code", "method", "host", "path"],
            registry=self.registry,
        )
        self.rule_violations = Counter(
            "audit_log_rule_violations",
            "The total number of audit log rule violations",
            ["rule_id", "method", "host", "path"],
            registry=self.registry,
        )

    def record_transaction(self, record: AuditLog):
        response = record.transaction.response
        status_code = str(response.status) if response is not None else UNKNOWN
        method, host, path = request_labels(record)
        self.transactions.labels(status_code, method, host, path).inc()

    def record_rule_violations(self, record: AuditLog):
        method, host, path = request_labels(record)
        for msg in record.messages:
            self.rule_violations.labels(msg.data.rule_id, method, host, path).inc()

    def transaction_count(self, status_code: str, method: str, host: str, path: str) -> float:
        value = self.registry.get_sample_value(
            "audit_log_transactions_total",
            {"status_code": status_code, "method": method, "host": host, "path": path},
        )
        return value or 0.0

    def rule_violation_count(self, rule_id: str, method: str, host: str, path: str) -> float:
        value = self.registry.get_sample_value(
            "audit_log_rule_violations_total",
            {"rule_id": rule_id, "method": method, "host": host, "path": path},
        )
        return value or 0.0


_default_metrics: AuditMetrics | None = None
_default_metrics_lock = threading.Lock()


def default_metrics() -> AuditMetrics:
    """Process-wide AuditMetrics on the global registry, created on first use."""
    global _default_metrics
    with _default_metrics_lock:
        if _default_metrics is None:
            _default_metrics = AuditMetrics()
        return _default_metrics
