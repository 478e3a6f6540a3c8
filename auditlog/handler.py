"""Record handlers invoked once per parsed audit log entry."""

import logging
from typing import Protocol, runtime_checkable

from auditlog.metrics import AuditMetrics, default_metrics
from auditlog.models import AuditLog

logger = logging.getLogger(__name__)


@runtime_checkable
class RecordHandler(Protocol):
    def handle(self, record: AuditLog) -> None: ...


class DefaultRecordHandler:
    """Logs rule violations and forwards them to the metrics counters.

    Records without messages matched no rules and are ignored.
    """

    def __init__(self, metrics: AuditMetrics | None = None):
        self._metrics = metrics if metrics is not None else default_metrics()

    def handle(self, record: AuditLog) -> None:
        txn = record.transaction
        logger.debug("Processing log entry id=%s messages=%d", txn.id, len(record.messages))

        if not record.messages:
            return

        fields = {"id": txn.id, "client_ip": txn.client_ip}
        if txn.request is not None:
            fields["method"] = txn.request.method
            fields["uri"] = txn.request.uri
            fields["protocol"] = txn.request.protocol

        rules = []
        for msg in record.messages:
            rules.append({"rule_id": msg.data.rule_id, "message": msg.data.msg})
        fields["rules"] = rules

        logger.warning(
            "Rule violations: %s",
            " ".join(f"{k}={v}" for k, v in fields.items()),
            extra={"audit": fields},
        )

        self._metrics.record_transaction(record)
        self._metrics.record_rule_violations(record)
