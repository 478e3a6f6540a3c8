"""Audit log processor service: rotates, parses and expires the inspection engine's audit log."""

import logging
import os
import signal
import sys
import threading

from auditlog.config import load_config
from auditlog.errors import ConfigError, ShutdownTimeout
from auditlog.processor import LogProcessor

SHUTDOWN_TIMEOUT_SECONDS = 30.0

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def configure_logging(level_name: str | None = None) -> None:
    level = _LEVELS.get((level_name or "info").strip().lower(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [audit-log] %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )


def main(shutdown_event: threading.Event | None = None) -> int:
    configure_logging(os.environ.get("LOG_LEVEL"))
    logger = logging.getLogger(__name__)

    try:
        config = load_config()
    except ConfigError as e:
        logger.error("Invalid audit log configuration: %s", e)
        return 1

    logger.info(
        "Config: path=%s, processing_interval=%ss, expiration_interval=%ss, expiration=%ss",
        config.audit_log_path, config.processing_interval,
        config.expiration_interval, config.log_expiration,
    )

    if shutdown_event is None:
        shutdown_event = threading.Event()

    def handle_signal(signum, frame):
        logger.info("Received signal %d, shutting down...", signum)
        shutdown_event.set()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    processor = LogProcessor(config)
    processor.start_processing_job()
    processor.start_expiration_job()

    shutdown_event.wait()

    try:
        processor.stop(timeout=SHUTDOWN_TIMEOUT_SECONDS)
    except ShutdownTimeout as e:
        logger.error("Log processor forced to shutdown: %s", e)
        return 1

    logger.info("Audit log processor exited gracefully")
    return 0


if __name__ == "__main__":
    sys.exit(main())
