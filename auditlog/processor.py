"""Background audit log processor: periodic rotate-and-parse and backup expiration jobs."""

import enum
import logging
import threading
import time

from auditlog.config import ProcessorConfig
from auditlog.directives import apply_audit_directives
from auditlog.errors import ShutdownTimeout
from auditlog.expirer import expire_backup_files
from auditlog.handler import DefaultRecordHandler, RecordHandler
from auditlog.lock import AuditLogLock
from auditlog.parser import process_file
from auditlog.rotator import Rotator

logger = logging.getLogger(__name__)


class ProcessorState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


class LogProcessor:
    """Continuously rotates, parses and expires the inspection engine's audit log.

    Two independent jobs, each on its own thread:

    - processing: every ``processing_interval`` seconds, if the live log has
      data, rotate it into a backup file and feed each record to the handler;
    - expiration: every ``expiration_interval`` seconds, delete backup files
      older than ``log_expiration``.

    ``lock`` is shared with request handling (see AuditLogLock). The handler
    is fixed at construction.
    """

    def __init__(self, config: ProcessorConfig, handler: RecordHandler | None = None,
                 lock: AuditLogLock | None = None, time_func=None):
        self._config = config.validate()
        self._time_func = time_func or time.time
        self._lock = lock or AuditLogLock()
        self._handler = handler if handler is not None else DefaultRecordHandler()
        self._rotator = Rotator(config.audit_log_path, self._lock, time_func=self._time_func)

        self._stop_signal = threading.Event()
        self._state_lock = threading.Lock()
        self._state = ProcessorState.IDLE
        self._threads: dict[str, threading.Thread] = {}
        self._done: dict[str, threading.Event] = {}

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def lock(self) -> AuditLogLock:
        return self._lock

    @property
    def state(self) -> ProcessorState:
        with self._state_lock:
            if self._state is ProcessorState.STOPPING and all(d.is_set() for d in self._done.values()):
                self._state = ProcessorState.STOPPED
            return self._state

    def apply_audit_directives(self, engine_config):
        """Point the inspection engine's audit writer at the managed live log."""
        logger.info("Setting audit log directives to support log processing")
        return apply_audit_directives(engine_config, self._config.audit_log_path)

    # ------------------------------------------------------------------
    # Tick bodies
    # ------------------------------------------------------------------

    def process_once(self) -> str | None:
        """Rotate and parse the live log if it has data. Returns the backup path, if any."""
        if not self._rotator.has_pending_data():
            return None

        logger.info("Detected audit log data, starting processing")
        backup_path = self._rotator.rotate()
        process_file(backup_path, self._handler)
        return backup_path

    def expire_once(self) -> list[str]:
        return expire_backup_files(
            self._config.log_dir,
            self._config.log_filename,
            self._config.log_expiration,
            time_func=self._time_func,
        )

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------

    def start_processing_job(self) -> bool:
        """Start the processing job thread. Returns False if no interval is configured."""
        interval = self._config.processing_interval
        if not interval:
            logger.warning("Audit log processing interval not set, processing job disabled")
            return False
        logger.info("Starting audit log processing job (interval=%ss)", interval)
        self._start_job("processing", interval, self.process_once)
        return True

    def start_expiration_job(self) -> bool:
        """Start the expiration job thread. Returns False if no interval is configured."""
        interval = self._config.expiration_interval
        if not interval:
            logger.warning("Audit log expiration interval not set, expiration job disabled")
            return False
        logger.info(
            "Starting audit log expiration job (interval=%ss, expiration=%ss)",
            interval, self._config.log_expiration,
        )
        self._start_job("expiration", interval, self.expire_once)
        return True

    def _start_job(self, name: str, interval: float, tick):
        with self._state_lock:
            if self._state in (ProcessorState.STOPPING, ProcessorState.STOPPED):
                raise RuntimeError(f"cannot start {name} job after stop")
            if name in self._threads:
                raise RuntimeError(f"{name} job already started")
            done = threading.Event()
            thread = threading.Thread(
                target=self._job_loop,
                args=(name, interval, tick, done),
                name=f"audit-log-{name}",
                daemon=True,
            )
            self._done[name] = done
            self._threads[name] = thread
            self._state = ProcessorState.RUNNING
            thread.start()

    def _job_loop(self, name: str, interval: float, tick, done: threading.Event):
        try:
            while not self._stop_signal.wait(interval):
                try:
                    tick()
                except Exception:
                    logger.exception("Audit log %s job tick failed", name)
        finally:
            logger.debug("Audit log %s job exited", name)
            done.set()

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    def stop(self, timeout: float | None = None):
        """Signal both jobs to stop and wait for them to finish their current tick.

        Raises ShutdownTimeout if they have not finished within *timeout*
        seconds; they keep running to completion in the background.
        """
        logger.info("Stopping audit log processor...")
        with self._state_lock:
            if self._state is not ProcessorState.STOPPED:
                self._state = ProcessorState.STOPPING
            done_events = list(self._done.items())
        self._stop_signal.set()

        deadline = None if timeout is None else time.monotonic() + timeout
        for name, done in done_events:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            if not done.wait(remaining):
                raise ShutdownTimeout(f"audit log {name} job did not stop within {timeout}s")

        with self._state_lock:
            self._state = ProcessorState.STOPPED
        logger.info("Audit log processor stopped gracefully")
