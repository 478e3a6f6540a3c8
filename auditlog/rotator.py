"""Copy-then-truncate rotation of the live audit log into timestamped backups."""

import logging
import os
import shutil
import time

from auditlog.errors import LogFileError
from auditlog.lock import AuditLogLock

logger = logging.getLogger(__name__)


def backup_filename(log_filename: str, timestamp: float) -> str:
    """Name of the backup taken at *timestamp* (unix seconds, truncated)."""
    return f"{log_filename}.{int(timestamp)}"


def parse_backup_timestamp(filename: str, log_filename: str) -> int | None:
    """Extract the unix-seconds suffix from a backup filename. Returns None on failure."""
    prefix = log_filename + "."
    name = os.path.basename(filename)
    if not name.startswith(prefix):
        return None
    suffix = name[len(prefix):]
    if not suffix.isascii() or not suffix.isdigit():
        return None
    return int(suffix)


def is_backup_file(filename: str, log_filename: str) -> bool:
    return parse_backup_timestamp(filename, log_filename) is not None


class Rotator:
    """Detaches the live audit log's contents into an immutable backup file.

    The live file is never removed or replaced, only truncated in place, so a
    writer holding it open in append mode keeps a valid descriptor.
    """

    def __init__(self, audit_log_path: str, lock: AuditLogLock, time_func=None):
        self._path = audit_log_path
        self._log_dir = os.path.dirname(audit_log_path) or "."
        self._log_filename = os.path.basename(audit_log_path)
        self._lock = lock
        self._time_func = time_func or time.time
        self._last_suffix: int | None = None

    def has_pending_data(self) -> bool:
        """True if the live file exists and is non-empty."""
        try:
            return os.stat(self._path).st_size > 0
        except FileNotFoundError:
            return False
        except OSError as e:
            raise LogFileError(f"failed to stat audit log: {e}") from e

    def _create_backup(self):
        """Exclusively create the next backup file. Returns (path, file object)."""
        suffix = int(self._time_func())
        if self._last_suffix is not None and suffix <= self._last_suffix:
            suffix = self._last_suffix + 1
        while True:
            path = os.path.join(self._log_dir, backup_filename(self._log_filename, suffix))
            try:
                f = open(path, "xb")
            except FileExistsError:
                suffix += 1
                continue
            self._last_suffix = suffix
            return path, f

    def rotate(self) -> str:
        """Copy the live file to a new backup and truncate it. Returns the backup path.

        Holds the shared lock for the whole operation, so request handling
        blocks until the rotation is done.
        """
        with self._lock:
            try:
                src = open(self._path, "rb")
            except OSError as e:
                raise LogFileError(f"failed to open audit log: {e}") from e

            with src:
                try:
                    backup_path, dst = self._create_backup()
                except OSError as e:
                    raise LogFileError(f"failed to create copy of audit log: {e}") from e

                with dst:
                    try:
                        shutil.copyfileobj(src, dst)
                        dst.flush()
                        os.fsync(dst.fileno())
                    except OSError as e:
                        raise LogFileError(f"failed to copy audit log contents: {e}") from e

            try:
                os.truncate(self._path, 0)
            except OSError as e:
                raise LogFileError(f"failed to truncate audit log: {e}") from e

        logger.debug("Rotated %s to %s", self._path, backup_path)
        return backup_path
