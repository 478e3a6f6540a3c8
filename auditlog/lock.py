"""Exclusive lock shared between log rotation and request handling."""

import threading


class AuditLogLock:
    """Token guarding the live audit log file.

    The inspection engine appends to the live file while a request is being
    handled, and the rotator copies and truncates that same file. Both sides
    must hold this lock for the whole of their critical section:

    - request handling takes it before invoking the engine, so requests block
      while a rotation is in flight;
    - rotation takes it for the copy-then-truncate sequence, so a rotation
      waits for in-flight requests to finish writing.

    Use it as a context manager (``with processor.lock:``). A request path
    that must not wait forever can call ``acquire(timeout)`` and, when it
    returns True, ``release()`` afterwards.
    """

    def __init__(self):
        self._lock = threading.Lock()

    def acquire(self, timeout: float = -1) -> bool:
        return self._lock.acquire(timeout=timeout)

    def release(self):
        self._lock.release()

    def __enter__(self):
        self._lock.acquire()
        return self

    def __exit__(self, exc_type, exc, tb):
        self._lock.release()
