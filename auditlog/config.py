"""Configuration: frozen dataclass loaded from an optional YAML file and environment variables."""

import logging
import math
import os
import re
from dataclasses import dataclass

import yaml

from auditlog.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_PROCESSING_INTERVAL = "10s"
DEFAULT_EXPIRATION_INTERVAL = "1h"
DEFAULT_EXPIRATION = "24h"

_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
    "d": 86400.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ns|us|µs|ms|s|m|h|d)")


def parse_duration(value) -> float | None:
    """Parse a duration such as "10s", "1h30m", "500ms" or "90" into seconds.

    Empty values and zero mean "disabled" and return None.
    """
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        seconds = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            seconds = float(text)
        except ValueError:
            pos = 0
            seconds = 0.0
            for match in _DURATION_PART.finditer(text):
                if match.start() != pos:
                    break
                seconds += float(match.group(1)) * _UNITS[match.group(2)]
                pos = match.end()
            if pos != len(text) or pos == 0:
                raise ConfigError(f"invalid duration: {value!r}")
    if not math.isfinite(seconds):
        raise ConfigError(f"invalid duration: {value!r}")
    if seconds < 0:
        raise ConfigError(f"duration must not be negative: {value!r}")
    return seconds or None


@dataclass(frozen=True)
class ProcessorConfig:
    audit_log_path: str
    processing_interval: float | None = 10.0
    expiration_interval: float | None = 3600.0
    log_expiration: float | None = 86400.0

    @property
    def log_dir(self) -> str:
        return os.path.dirname(self.audit_log_path) or "."

    @property
    def log_filename(self) -> str:
        return os.path.basename(self.audit_log_path)

    def validate(self) -> "ProcessorConfig":
        if not self.audit_log_path or not self.log_filename:
            raise ConfigError("audit log path is required")
        for name in ("processing_interval", "expiration_interval", "log_expiration"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ConfigError(f"{name} must not be negative")
        return self


def load_yaml_config(path: str | None) -> dict:
    """Load the ``audit_log`` section of a YAML file. Returns empty dict if no path."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping")
    section = data.get("audit_log") or {}
    if not isinstance(section, dict):
        raise ConfigError(f"{path}: audit_log must be a mapping")
    logger.info("Loaded YAML config from %s", path)
    return section


def load_config(yaml_path: str | None = None) -> ProcessorConfig:
    """Build ProcessorConfig from YAML (optional) overridden by environment variables."""
    section = load_yaml_config(yaml_path or os.environ.get("CONFIG_PATH"))

    def _setting(env_var: str, key: str, default=None):
        value = os.environ.get(env_var)
        if value:
            return value
        return section.get(key, default)

    path = _setting("AUDIT_LOG_PATH", "path")
    if not path:
        raise ConfigError("AUDIT_LOG_PATH is required but not set")

    return ProcessorConfig(
        audit_log_path=str(path),
        processing_interval=parse_duration(
            _setting("AUDIT_LOG_PROCESSING_JOB_INTERVAL", "processing_interval", DEFAULT_PROCESSING_INTERVAL)
        ),
        expiration_interval=parse_duration(
            _setting("AUDIT_LOG_EXPIRATION_JOB_INTERVAL", "expiration_interval", DEFAULT_EXPIRATION_INTERVAL)
        ),
        log_expiration=parse_duration(
            _setting("AUDIT_LOG_EXPIRATION", "expiration", DEFAULT_EXPIRATION)
        ),
    ).validate()
