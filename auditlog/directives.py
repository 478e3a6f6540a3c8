"""Audit-output directives for the inspection engine."""

from typing import Protocol

# A: header, F: response headers, H: trailer, K: matched rules, Z: end marker
AUDIT_LOG_PARTS = "AFHKZ"


class EngineConfig(Protocol):
    def with_directives(self, directives: str) -> "EngineConfig": ...


def audit_log_directives(audit_log_path: str) -> str:
    """Directives pointing the engine's serial JSON audit writer at *audit_log_path*."""
    return "\n".join([
        f"SecAuditLog {audit_log_path}",
        f"SecAuditLogParts {AUDIT_LOG_PARTS}",
        "SecAuditLogFormat JSON",
        "SecAuditLogType Serial",
        "SecAuditEngine On",
    ])


def apply_audit_directives(cfg: EngineConfig, audit_log_path: str) -> EngineConfig:
    """Return *cfg* amended with the audit log directives."""
    return cfg.with_directives(audit_log_directives(audit_log_path))
