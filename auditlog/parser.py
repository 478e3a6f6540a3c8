"""Streaming parser for JSON audit log files with per-line fault isolation."""

import json
import logging

from auditlog.errors import LogFileError, ParseError, ProcessingError
from auditlog.models import AuditLog

logger = logging.getLogger(__name__)


def parse_line(line: str) -> AuditLog:
    """Decode one JSON line into an AuditLog. Raises ParseError."""
    try:
        data = json.loads(line)
    except (json.JSONDecodeError, TypeError) as e:
        raise ParseError(f"invalid JSON: {e}", line) from e

    if not isinstance(data, dict):
        raise ParseError(f"expected a JSON object, got {type(data).__name__}", line)

    try:
        return AuditLog.from_dict(data)
    except (TypeError, ValueError, AttributeError) as e:
        raise ParseError(f"malformed log entry: {e}", line) from e


def process_file(path: str, handler) -> int:
    """Parse every line of *path* and pass each record to ``handler.handle``.

    Bad lines and handler failures are logged and skipped; once the whole file
    has been read a ProcessingError is raised if any occurred. Failing to open
    or read the file raises LogFileError. Returns the number of records
    dispatched.
    """
    logger.info("Processing audit log file %s", path)

    dispatched = 0
    failed = 0
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            for line_num, line in enumerate(f, 1):
                line = line.rstrip("\r\n")
                if not line.strip():
                    continue
                logger.debug("Processing audit log entry %s:%d", path, line_num)

                try:
                    record = parse_line(line)
                except ParseError as e:
                    logger.warning("Failed to parse log entry %s:%d, skipping: %s", path, line_num, e)
                    failed += 1
                    continue

                try:
                    handler.handle(record)
                except Exception as e:
                    logger.warning("Failed to process log entry %s:%d: %s", path, line_num, e)
                    failed += 1
                    continue
                dispatched += 1
    except OSError as e:
        raise LogFileError(f"failed to read log file {path}: {e}") from e

    if failed:
        raise ProcessingError(path, dispatched, failed)

    logger.info("Completed processing audit log file %s (%d entries)", path, dispatched)
    return dispatched
