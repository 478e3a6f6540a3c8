"""Tests for the default record handler and metrics counters."""

import logging
import threading
import time

import auditlog.metrics as audit_metrics
from auditlog.handler import DefaultRecordHandler, RecordHandler
from auditlog.metrics import request_labels
from auditlog.models import AuditLog, TransactionRequest
from auditlog.parser import parse_line

LFI_FILE = "@owasp_crs/REQUEST-930-APPLICATION-ATTACK-LFI.conf"


class TestDefaultRecordHandler:
    def test_satisfies_protocol(self, metrics):
        assert isinstance(DefaultRecordHandler(metrics), RecordHandler)

    def test_no_messages_is_noop(self, metrics, sample_lines, caplog):
        handler = DefaultRecordHandler(metrics)
        with caplog.at_level(logging.WARNING, logger="auditlog.handler"):
            handler.handle(parse_line(sample_lines[1]))

        assert caplog.records == []
        assert metrics.transaction_count("200", "GET", "", "/products") == 0

    def test_rule_violation_logged_and_counted(self, metrics, sample_lines, caplog):
        handler = DefaultRecordHandler(metrics)
        with caplog.at_level(logging.WARNING, logger="auditlog.handler"):
            handler.handle(parse_line(sample_lines[0]))

        assert len(caplog.records) == 1
        record = caplog.records[0]
        assert "Rule violations" in record.getMessage()
        assert "EcNxIrskXYJttXoioLH" in record.getMessage()
        assert record.audit["client_ip"] == "203.0.113.7"
        assert record.audit["method"] == "GET"
        assert record.audit["rules"] == [
            {"rule_id": f"{LFI_FILE}-930100", "message": "Path Traversal Attack (/../) or (/.../)"},
            {"rule_id": f"{LFI_FILE}-930120", "message": "OS File Access Attempt"},
        ]

        assert metrics.transaction_count("403", "GET", "", "/") == 1
        assert metrics.rule_violation_count(f"{LFI_FILE}-930100", "GET", "", "/") == 1
        assert metrics.rule_violation_count(f"{LFI_FILE}-930120", "GET", "", "/") == 1

    def test_missing_response_counts_as_unknown_status(self, metrics, sample_lines):
        DefaultRecordHandler(metrics).handle(parse_line(sample_lines[3]))
        assert metrics.transaction_count("unknown", "GET", "", "/search") == 1

    def test_missing_request(self, metrics, caplog):
        log = AuditLog.from_dict({
            "transaction": {"id": "no-request", "client_ip": "192.0.2.1"},
            "messages": [{"message": "m", "data": {"file": "rules.conf", "id": 7, "msg": "m"}}],
        })
        with caplog.at_level(logging.WARNING, logger="auditlog.handler"):
            DefaultRecordHandler(metrics).handle(log)

        assert "method" not in caplog.records[0].audit
        assert metrics.transaction_count("unknown", "unknown", "unknown", "unknown") == 1
        assert metrics.rule_violation_count("rules.conf-7", "unknown", "unknown", "unknown") == 1


class TestRequestLabels:
    def test_absolute_uri(self):
        log = AuditLog()
        log.transaction.request = TransactionRequest(method="POST", uri="https://shop.example.com/login?x=1")
        assert request_labels(log) == ("POST", "shop.example.com", "/login")

    def test_relative_uri(self):
        log = AuditLog()
        log.transaction.request = TransactionRequest(method="GET", uri="/products?page=2")
        assert request_labels(log) == ("GET", "", "/products")

    def test_no_request(self):
        assert request_labels(AuditLog()) == ("unknown", "unknown", "unknown")

    def test_percent_encoded_path_is_decoded(self):
        log = AuditLog()
        log.transaction.request = TransactionRequest(method="GET", uri="/a%20b/%C3%A9t%C3%A9?q=%20")
        assert request_labels(log) == ("GET", "", "/a b/été")


class TestDefaultMetrics:
    def test_concurrent_first_use_creates_one_instance(self, monkeypatch):
        created = []

        class SlowMetrics:
            def __init__(self):
                time.sleep(0.05)
                created.append(self)

        monkeypatch.setattr(audit_metrics, "_default_metrics", None)
        monkeypatch.setattr(audit_metrics, "AuditMetrics", SlowMetrics)

        results = []
        threads = [
            threading.Thread(target=lambda: results.append(audit_metrics.default_metrics()))
            for _ in range(8)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)

        assert len(created) == 1
        assert len(results) == 8
        assert all(r is created[0] for r in results)
