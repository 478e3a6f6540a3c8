import os
import shutil

import pytest
from prometheus_client import CollectorRegistry

from auditlog.config import ProcessorConfig
from auditlog.metrics import AuditMetrics

TESTDATA_DIR = os.path.join(os.path.dirname(__file__), "testdata")
SAMPLE_LOG = os.path.join(TESTDATA_DIR, "audit.log")


class CapturingHandler:
    """Record handler that keeps every record it is given."""

    def __init__(self):
        self.records = []

    def handle(self, record):
        self.records.append(record)


@pytest.fixture
def sample_lines():
    with open(SAMPLE_LOG, "r", encoding="utf-8") as f:
        return [line.rstrip("\n") for line in f if line.strip()]


@pytest.fixture
def audit_log_path(tmp_path):
    return str(tmp_path / "audit.log")


@pytest.fixture
def sample_audit_log(audit_log_path):
    shutil.copyfile(SAMPLE_LOG, audit_log_path)
    return audit_log_path


@pytest.fixture
def capturing_handler():
    return CapturingHandler()


@pytest.fixture
def metrics():
    return AuditMetrics(registry=CollectorRegistry())


@pytest.fixture
def make_config(audit_log_path):
    def _make(**overrides):
        defaults = dict(
            audit_log_path=audit_log_path,
            processing_interval=None,
            expiration_interval=None,
            log_expiration=None,
        )
        defaults.update(overrides)
        return ProcessorConfig(**defaults)
    return _make
