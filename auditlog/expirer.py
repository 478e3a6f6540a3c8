"""Retention sweep: deletes backup files older than the configured age."""

import logging
import os
import time

from auditlog.errors import LogFileError
from auditlog.rotator import parse_backup_timestamp

logger = logging.getLogger(__name__)


def list_backup_files(log_dir: str, log_filename: str) -> list[tuple[str, int]]:
    """Return (name, unix timestamp) of every backup file, oldest first."""
    try:
        entries = list(os.scandir(log_dir))
    except OSError as e:
        raise LogFileError(f"failed to read audit log directory: {e}") from e

    backups = []
    for entry in entries:
        if not entry.is_file(follow_symlinks=False):
            continue
        ts = parse_backup_timestamp(entry.name, log_filename)
        if ts is None:
            continue
        backups.append((entry.name, ts))
    backups.sort(key=lambda b: (b[1], b[0]))
    return backups


def expire_backup_files(log_dir: str, log_filename: str, max_age_seconds: float | None,
                        time_func=None) -> list[str]:
    """Delete backups whose timestamp is more than *max_age_seconds* old.

    Returns the deleted filenames. A failure to delete one file is logged and
    the sweep moves on. A retention of None or 0 deletes nothing.
    """
    if not max_age_seconds:
        logger.debug("Audit log expiration disabled, nothing to delete")
        return []

    now = (time_func or time.time)()
    logger.info("Checking for expired audit log files to delete (expiration=%ss)", max_age_seconds)

    deleted = []
    for name, ts in list_backup_files(log_dir, log_filename):
        if now - ts <= max_age_seconds:
            continue
        full_path = os.path.join(log_dir, name)
        try:
            os.remove(full_path)
        except OSError as e:
            logger.warning("Failed to delete expired audit log file %s: %s", full_path, e)
            continue
        logger.info("Deleted expired audit log file %s", full_path)
        deleted.append(name)
    return deleted
